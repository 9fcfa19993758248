"""Optional Redis connection.

Redis backs the rate limiter and the notification channels. Neither is
required for check-ins, ranks or badges, so an empty ``LADDER_REDIS_URL``
runs the service without it and every caller sees ``None``.
"""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

_client: redis.Redis | None = None


async def init_redis(url: str | None, max_connections: int = 20) -> redis.Redis | None:
    """Open the shared client, or leave Redis disabled when no URL is configured."""
    global _client  # noqa: PLW0603
    if not url:
        logger.info("Redis disabled; rate limiting and notifications are off")
        _client = None
        return None
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )
    return _client


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_optional_redis() -> redis.Redis | None:
    """The shared client, or None when Redis is disabled."""
    return _client


async def redis_status() -> str:
    """Readiness string for Redis: ``ok``, ``disabled`` or ``error: ...``."""
    client = get_optional_redis()
    if client is None:
        return "disabled"
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        return f"error: {exc}"
    return "ok"
