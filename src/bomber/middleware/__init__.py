"""Middleware registration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bomber.config import Settings
from bomber.middleware.error_handler import setup_error_handlers
from bomber.middleware.logging import setup_logging
from bomber.middleware.rate_limit import RateLimitMiddleware
from bomber.middleware.request_id import RequestIdMiddleware

# Headers the game client reads to back off after a 429 or 503
EXPOSED_HEADERS = ["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit", "Retry-After"]


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register logging, error handlers and middleware.

    Starlette runs middleware in reverse-add order, so CORS is added last to
    wrap everything, including 429s from the rate limiter. Players are
    identified by path, not cookies, so credentials are never allowed.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        writes_per_window=settings.rate_limit_writes,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-Id"],
        expose_headers=EXPOSED_HEADERS,
        max_age=settings.cors_max_age_seconds,
    )
