"""Daily check-in orchestration.

One check-in per user per UTC day. The reward, snapshot update and rank
check-in counter are written in a single transaction; rank promotion and
badge evaluation run afterwards and never fail the check-in.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.badges.catalog import BadgeType
from ladder.badges.dispatcher import BadgeDispatcher, schedule_badge_evaluation
from ladder.clock import utc_day
from ladder.db.models import CheckIn, Rank
from ladder.errors import AlreadyCheckedInError
from ladder.notifications import CHANNEL_CHECK_IN, CHANNEL_LEVEL_UP, publish_event
from ladder.points.service import (
    EXP_CHECK_IN,
    EXP_LEVEL_BONUS,
    POINTS_CHECK_IN,
    record_experience,
    record_points,
)
from ladder.progression.levels import level_for_exp
from ladder.progression.rewards import check_in_experience, check_in_points
from ladder.ranks.ladder import DEFAULT_LADDER, RankLadder
from ladder.ranks.service import RankProgress, check_and_upgrade_rank, ensure_current_season_rank
from ladder.users.service import get_profile

logger = structlog.get_logger()


@dataclass
class CheckInResult:
    check_in_id: int
    check_in_date: date
    points_earned: int
    exp_earned: int
    consecutive_days: int
    level_up: bool
    level: int
    total_points: int
    rank_up: bool = False
    star_up: bool = False
    rank_name: str | None = None
    stars: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


async def get_check_in(db: AsyncSession, user_id: int, day: date) -> CheckIn | None:
    """The user's check-in for ``day``, if any."""
    result = await db.execute(
        select(CheckIn).where(CheckIn.user_id == user_id, CheckIn.check_in_date == day)
    )
    return result.scalar_one_or_none()


async def get_last_check_in(db: AsyncSession, user_id: int) -> CheckIn | None:
    """Most recent check-in by date."""
    result = await db.execute(
        select(CheckIn)
        .where(CheckIn.user_id == user_id)
        .order_by(CheckIn.check_in_date.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def calculate_consecutive_days(db: AsyncSession, user_id: int, today: date) -> int:
    """Streak length including a check-in made ``today``.

    Continues the streak stored on yesterday's record; any gap restarts at 1.
    """
    last = await get_last_check_in(db, user_id)
    if last is None or last.check_in_date >= today:
        return 1
    if last.check_in_date == today - timedelta(days=1):
        return last.consecutive_days + 1
    return 1


async def perform_check_in(
    db: AsyncSession,
    redis: object,
    user_id: int,
    now: datetime | None = None,
    dispatcher: BadgeDispatcher | None = None,
    ladder: RankLadder = DEFAULT_LADDER,
) -> CheckInResult:
    """Record today's check-in for a user.

    1. Reject if a check-in for today (UTC) exists.
    2. Bring the user's rank up to the current season.
    3. Atomically: write the check-in, credit points and experience,
       recompute the level, bump streak/total counters and the active
       rank's check-in count, append ledger entries.
    4. Apply at most one star or rank promotion (failures are logged).
    5. Hand badge evaluation to the dispatcher (or run it inline).
    """
    if now is None:
        now = datetime.now(timezone.utc)
    today = utc_day(now)

    if await get_check_in(db, user_id, today) is not None:
        raise AlreadyCheckedInError()

    user_rank = await ensure_current_season_rank(db, user_id, now=now, ladder=ladder)

    try:
        profile = await get_profile(db, user_id, for_update=True)
        consecutive = await calculate_consecutive_days(db, user_id, today)
        points = check_in_points(consecutive)
        exp = check_in_experience(profile.consecutive_login_days, consecutive)
        rank = await db.get(Rank, profile.current_rank_id) if profile.current_rank_id else None

        record = CheckIn(
            user_id=user_id,
            check_in_date=today,
            points_earned=points,
            exp_earned=exp,
            consecutive_days=consecutive,
            rank_level=rank.level if rank is not None else None,
            created_at=now,
        )
        db.add(record)

        previous_level = profile.current_level
        profile.total_points += points
        profile.current_exp += exp
        level_info = level_for_exp(profile.current_exp, start_level=previous_level)
        level_up = level_info.level > previous_level
        profile.current_level = level_info.level
        profile.next_level_exp = level_info.next_level_exp
        profile.consecutive_check_in_days = consecutive
        profile.total_check_in_days += 1
        if user_rank is not None:
            user_rank.check_in_count += 1

        record_points(db, user_id, points, POINTS_CHECK_IN, f"每日打卡获得 {points} 积分", now)
        record_experience(db, user_id, exp, EXP_CHECK_IN, f"每日打卡获得 {exp} 经验", now)
        if level_up:
            record_experience(db, user_id, 0, EXP_LEVEL_BONUS, f"升级到 {level_info.level} 级", now)

        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise AlreadyCheckedInError() from None
    except Exception:
        await db.rollback()
        raise

    result = CheckInResult(
        check_in_id=record.id,
        check_in_date=today,
        points_earned=points,
        exp_earned=exp,
        consecutive_days=consecutive,
        level_up=level_up,
        level=level_info.level,
        total_points=profile.total_points,
    )
    logger.info(
        "check_in_recorded",
        user_id=user_id,
        consecutive_days=consecutive,
        points=points,
        exp=exp,
        user_level=level_info.level,
    )

    progress = RankProgress()
    try:
        progress = await check_and_upgrade_rank(db, redis, user_id, now=now, ladder=ladder)
    except Exception:
        logger.warning("rank_promotion_failed", user_id=user_id, exc_info=True)
        await db.rollback()
    result.rank_up = progress.rank_up
    result.star_up = progress.star_up
    result.rank_name = progress.rank_name
    result.stars = progress.stars

    await publish_event(redis, CHANNEL_CHECK_IN, {
        "user_id": user_id,
        "date": today.isoformat(),
        "consecutive_days": consecutive,
        "points": points,
        "exp": exp,
    })
    if level_up:
        await publish_event(redis, CHANNEL_LEVEL_UP, {
            "user_id": user_id,
            "old_level": previous_level,
            "new_level": level_info.level,
        })

    badge_types = [BadgeType.CHECK_IN]
    if level_up:
        badge_types.append(BadgeType.LEVEL)
    if progress.upgraded:
        badge_types.append(BadgeType.RANK)
    if progress.rank_up:
        badge_types.append(BadgeType.MILESTONE)
    await schedule_badge_evaluation(db, redis, dispatcher, user_id, badge_types, now=now)

    return result


async def get_today_status(db: AsyncSession, user_id: int, now: datetime | None = None) -> dict[str, Any]:
    """Whether the user checked in today, the live streak, and today's reward."""
    if now is None:
        now = datetime.now(timezone.utc)
    today = utc_day(now)

    record = await get_check_in(db, user_id, today)
    if record is not None:
        return {
            "day": today,
            "checked_in": True,
            "consecutive_days": record.consecutive_days,
            "points": record.points_earned,
            "exp": record.exp_earned,
        }

    profile = await get_profile(db, user_id)
    upcoming = await calculate_consecutive_days(db, user_id, today)
    return {
        "day": today,
        "checked_in": False,
        "consecutive_days": upcoming - 1,
        "points": check_in_points(upcoming),
        "exp": check_in_experience(profile.consecutive_login_days, upcoming),
    }


async def get_check_in_history(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[CheckIn], int]:
    """Paginated check-ins, newest first, with the total count."""
    total = (await db.execute(
        select(func.count()).select_from(CheckIn).where(CheckIn.user_id == user_id)
    )).scalar_one()
    result = await db.execute(
        select(CheckIn)
        .where(CheckIn.user_id == user_id)
        .order_by(CheckIn.check_in_date.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total
