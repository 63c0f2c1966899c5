"""Redis-backed fixed-window rate limiting middleware."""

import time
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from bomber.redis_client import get_redis

# Paths exempt from rate limiting
_EXEMPT_PATHS = frozenset({"/health", "/ready", "/version"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limit requests per client IP with fixed-window Redis counters.

    Mutating requests (POST) draw from their own, smaller budget so a client
    hammering drive submissions cannot starve its own profile reads.
    """

    def __init__(
        self,
        app: Any,  # noqa: ANN401
        requests_per_window: int = 100,
        writes_per_window: int = 30,
        window_seconds: int = 60,
    ) -> None:
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.writes_per_window = writes_per_window
        self.window_seconds = window_seconds

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Check rate limit, return 429 if exceeded."""
        if request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        bucket, limit = (
            ("write", self.writes_per_window) if request.method == "POST" else ("read", self.requests_per_window)
        )
        window = int(time.time()) // self.window_seconds
        rate_key = f"bomber:ratelimit:{bucket}:{client_ip}:{window}"

        try:
            redis = get_redis()
        except RuntimeError:
            # Redis not initialized: pass through without rate limiting
            return await call_next(request)

        pipe = redis.pipeline()
        pipe.incr(rate_key)
        pipe.expire(rate_key, self.window_seconds + 1)
        results: list[Any] = await pipe.execute()

        current_count: int = results[0]
        if current_count > limit:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(limit),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - current_count))
        response.headers["X-RateLimit-Limit"] = str(limit)
        return response
