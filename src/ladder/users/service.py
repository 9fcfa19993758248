"""User and progression-profile access, plus daily login tracking."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.clock import utc_day
from ladder.db.models import User, UserProfile
from ladder.errors import ProfileNotFoundError
from ladder.progression.levels import required_exp_for_level

logger = logging.getLogger(__name__)


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by primary key."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    """Fetch a user by username."""
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, username: str, nickname: str | None = None) -> User:
    """Create a user with a fresh progression profile (level 1, 0 exp)."""
    user = User(username=username, nickname=nickname)
    db.add(user)
    await db.flush()
    db.add(UserProfile(
        user_id=user.id,
        total_points=0,
        current_level=1,
        current_exp=0,
        next_level_exp=required_exp_for_level(1),
    ))
    await db.commit()
    return user


async def get_profile(db: AsyncSession, user_id: int, *, for_update: bool = False) -> UserProfile:
    """Load the progression snapshot or raise ProfileNotFoundError.

    ``for_update`` takes a row lock and refreshes the in-session copy, for
    read-modify-write sequences.
    """
    stmt = select(UserProfile).where(UserProfile.user_id == user_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    profile = result.scalar_one_or_none()
    if profile is None:
        raise ProfileNotFoundError()
    return profile


async def record_login(db: AsyncSession, user_id: int, now: datetime | None = None) -> bool:
    """Record activity for the UTC day of ``now``.

    Returns True on the first login of a day. The login streak continues if
    the previous login was yesterday and restarts at 1 after a gap.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    today = utc_day(now)

    profile = await get_profile(db, user_id, for_update=True)
    if profile.last_login_date == today:
        return False

    if profile.last_login_date == today - timedelta(days=1):
        profile.consecutive_login_days += 1
    else:
        profile.consecutive_login_days = 1
    profile.total_login_days += 1
    profile.last_login_date = today
    await db.commit()

    logger.debug(
        "Login recorded for user %d: streak=%d total=%d",
        user_id, profile.consecutive_login_days, profile.total_login_days,
    )
    return True
