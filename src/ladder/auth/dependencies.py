"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
import structlog
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.auth.jwt import verify_token
from ladder.badges.catalog import BadgeType
from ladder.badges.dispatcher import BadgeDispatcher, schedule_badge_evaluation
from ladder.clock import Clock
from ladder.database import get_session
from ladder.db.models import User
from ladder.dependencies import get_badge_dispatcher, get_clock, get_redis_dep
from ladder.errors import ProfileNotFoundError
from ladder.users.service import get_user_by_id, record_login

logger = structlog.get_logger()

_bearer = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
    clock: Clock = Depends(get_clock),
    dispatcher: BadgeDispatcher | None = Depends(get_badge_dispatcher),
) -> User:
    """
    Verify the bearer token and return the User.

    Also records the day's login; the first authenticated request of a UTC
    day advances the login streak and queues LOGIN badge evaluation.
    Raises 401/403 on failure.
    """
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user = await get_user_by_id(db, int(payload["sub"]))
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    if user.is_banned:
        raise HTTPException(status_code=403, detail="Account is banned")
    structlog.contextvars.bind_contextvars(user_id=user.id)

    now = clock()
    try:
        first_today = await record_login(db, user.id, now=now)
    except ProfileNotFoundError:
        logger.warning("login_without_profile", user_id=user.id)
        first_today = False
    if first_today:
        await schedule_badge_evaluation(db, redis, dispatcher, user.id, [BadgeType.LOGIN], now=now)
    return user
