"""Shared FastAPI dependencies.

Clock, RNG and badge dispatcher are resolved here so tests can override
them with ``app.dependency_overrides``.
"""

import random
from collections.abc import AsyncGenerator

from fastapi import Request

from ladder.badges.dispatcher import BadgeDispatcher
from ladder.clock import Clock, utc_now
from ladder.config import get_settings
from ladder.database import get_session as _get_session
from ladder.redis_client import get_optional_redis

get_db = _get_session


async def get_redis_dep() -> AsyncGenerator[object, None]:
    """Yield the Redis client, or None when Redis is not configured."""
    yield get_optional_redis()


def get_clock() -> Clock:
    """Source of "now" for date-sensitive operations."""
    return utc_now


def get_rng(request: Request) -> random.Random:
    """Lottery RNG. Seeded once per app when ``lottery_seed`` is set."""
    rng = getattr(request.app.state, "lottery_rng", None)
    if rng is None:
        rng = random.Random(get_settings().lottery_seed)
        request.app.state.lottery_rng = rng
    return rng


def get_badge_dispatcher(request: Request) -> BadgeDispatcher | None:
    """Background badge dispatcher, or None to evaluate inline."""
    return getattr(request.app.state, "badge_dispatcher", None)
