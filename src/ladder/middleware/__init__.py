"""HTTP middleware stack.

Starlette wraps middleware in reverse registration order. Requests pass
through CORS, then request context, then the rate limiter, so throttled
and failed responses still carry CORS and request-id headers.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ladder.config import Settings
from ladder.middleware.error_handler import setup_error_handlers
from ladder.middleware.logging import setup_logging
from ladder.middleware.rate_limit import RateLimitMiddleware
from ladder.middleware.request_id import REQUEST_ID_HEADER, RequestContextMiddleware

PROBE_PATHS = ("/health", "/ready")


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        limit=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
        exempt_paths=PROBE_PATHS,
    )
    app.add_middleware(RequestContextMiddleware, quiet_paths=PROBE_PATHS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER, "X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After"],
    )
