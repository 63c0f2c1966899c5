"""Shared test fixtures.

Every test gets its own SQLite file, built from the ORM metadata. Redis is
left uninitialized unless a test installs ``fake_redis``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date, timedelta
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bomber.challenges.daily import current_challenge
from bomber.config import get_settings
from bomber.database import close_db, create_schema, get_session_factory, init_db, run_in_transaction
from bomber.main import create_app
from bomber.progression.tuning import EconomyTuning
from bomber.redis_client import close_redis
from bomber.users.service import get_or_create_user


class FakePipeline:
    def __init__(self, store: FakeRedis) -> None:
        self.store = store
        self.ops: list[tuple[str, str]] = []

    def incr(self, key: str) -> FakePipeline:
        self.ops.append(("incr", key))
        return self

    def expire(self, key: str, _seconds: int) -> FakePipeline:
        self.ops.append(("expire", key))
        return self

    async def execute(self) -> list[Any]:
        results: list[Any] = []
        for op, key in self.ops:
            if op == "incr":
                self.store.counters[key] = self.store.counters.get(key, 0) + 1
                results.append(self.store.counters[key])
            else:
                results.append(True)
        return results


class FakeRedis:
    """In-memory stand-in for the handful of Redis calls the app makes."""

    def __init__(self) -> None:
        self.counters: dict[str, int] = {}
        self.published: list[tuple[str, str]] = []

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        return 1

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None


@pytest_asyncio.fixture
async def database(tmp_path, monkeypatch) -> AsyncGenerator[None, None]:
    """Fresh SQLite database per test."""
    monkeypatch.setenv("BOMBER_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'bomber.db'}")
    monkeypatch.setenv("BOMBER_LOG_FORMAT", "console")
    get_settings.cache_clear()

    await init_db(get_settings().database_url)
    await create_schema()
    yield
    await close_db()
    await close_redis()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def session_factory(database) -> async_sessionmaker[AsyncSession]:
    return get_session_factory()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for service calls and assertions.

    SQLite takes the write lock at BEGIN, so commit before handing control to
    anything that opens its own session.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def tuning() -> EconomyTuning:
    return EconomyTuning()


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    """Install an in-memory Redis as the process-wide client."""
    fake = FakeRedis()
    monkeypatch.setattr("bomber.redis_client._pool", fake)
    return fake


@pytest_asyncio.fixture
async def app(database) -> FastAPI:
    """Fresh app per test; tests pin the clock through ``app.dependency_overrides``."""
    return create_app()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP test client against a fresh app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def make_user(database) -> Callable[..., Awaitable[int]]:
    """Create a user in its own committed transaction and return the id."""

    async def _make(username: str = "bomber", display_name: str | None = None) -> int:
        async def _create(db: AsyncSession) -> int:
            user, _ = await get_or_create_user(db, username, display_name)
            return user.id

        return await run_in_transaction(_create)

    return _make


def day_with_challenge(challenge_id: str, start: date = date(2026, 3, 1)) -> date:
    """First date on or after ``start`` whose daily challenge is ``challenge_id``."""
    for offset in range(31):
        day = start + timedelta(days=offset)
        if current_challenge(day).id == challenge_id:
            return day
    msg = f"no day found for {challenge_id}"
    raise LookupError(msg)


def drive_payload(distance: int = 300, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "distance": distance,
        "carry": distance - 20,
        "roll": 20,
        "ball_speed": 165.0,
        "launch_angle": 12.5,
        "wind": 0.0,
        "crosswind": 0.0,
        "night_mode": False,
    }
    payload.update(overrides)
    return payload
