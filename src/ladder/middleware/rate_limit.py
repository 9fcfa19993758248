"""Fixed window rate limiting keyed by client IP.

Counters live in Redis. With Redis disabled or unreachable the limiter
lets every request through without rate-limit headers.
"""

import time
from collections.abc import Iterable
from typing import Any

from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ladder.redis_client import get_optional_redis


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Answer 429 once a client exceeds ``limit`` requests in a window."""

    def __init__(
        self,
        app: Any,  # noqa: ANN401
        limit: int = 100,
        window_seconds: int = 60,
        exempt_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.limit = limit
        self.window_seconds = window_seconds
        self.exempt_paths = frozenset(exempt_paths)

    async def _count(self, client_ip: str) -> int | None:
        client = get_optional_redis()
        if client is None:
            return None
        key = f"ratelimit:{client_ip}:{int(time.time()) // self.window_seconds}"
        try:
            pipe = client.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window_seconds + 1)
            results: list[Any] = await pipe.execute()
        except RedisError:
            return None
        return int(results[0])

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        count = await self._count(request.client.host if request.client else "unknown")
        if count is None:
            return await call_next(request)

        headers = {"X-RateLimit-Limit": str(self.limit)}
        if count > self.limit:
            headers["X-RateLimit-Remaining"] = "0"
            headers["Retry-After"] = str(self.window_seconds)
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later.", "code": "RATE_LIMITED"},
                headers=headers,
            )

        response = await call_next(request)
        headers["X-RateLimit-Remaining"] = str(self.limit - count)
        response.headers.update(headers)
        return response
