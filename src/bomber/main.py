"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bomber.achievements.router import router as achievements_router
from bomber.challenges.router import router as challenges_router
from bomber.config import get_settings
from bomber.database import close_db, create_schema, init_db
from bomber.drives.router import router as drives_router
from bomber.health.router import router as health_router
from bomber.leaderboard.router import router as leaderboard_router
from bomber.middleware import setup_middleware
from bomber.progression.router import router as progression_router
from bomber.redis_client import close_redis, init_redis
from bomber.rewards.router import router as rewards_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.database_url.startswith("sqlite"):
        # No Alembic for SQLite; build the schema from the models
        await create_schema()
    if settings.redis_url:
        await init_redis(settings.redis_url)
    else:
        logger.info("BOMBER_REDIS_URL is empty; rate limiting and live events are disabled")

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Bomber Progression API",
        description="Progression and rewards economy for the Bomber driving-distance game",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(progression_router)
    app.include_router(drives_router)
    app.include_router(leaderboard_router)
    app.include_router(achievements_router)
    app.include_router(challenges_router)
    app.include_router(rewards_router)

    return app


app = create_app()
