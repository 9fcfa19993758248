"""Points and experience ledgers.

The snapshot on ``user_profiles`` holds the running totals; every delta is
also appended here with a type tag so balances can be audited.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.clock import as_utc
from ladder.db.models import ExperienceLedger, PointLedger, User, UserProfile

POINTS_CHECK_IN = "CHECK_IN"
POINTS_LOTTERY = "LOTTERY"
POINTS_CONSUME = "CONSUME"

EXP_CHECK_IN = "CHECK_IN"
EXP_LEVEL_BONUS = "LEVEL_BONUS"


def record_points(
    db: AsyncSession,
    user_id: int,
    amount: int,
    type_: str,
    description: str | None = None,
    now: datetime | None = None,
) -> PointLedger:
    """Append a point delta to the session. Caller owns the transaction."""
    entry = PointLedger(
        user_id=user_id,
        amount=amount,
        type=type_,
        description=description,
        created_at=now or datetime.now(timezone.utc),
    )
    db.add(entry)
    return entry


def record_experience(
    db: AsyncSession,
    user_id: int,
    amount: int,
    type_: str,
    description: str | None = None,
    now: datetime | None = None,
) -> ExperienceLedger:
    """Append an experience delta to the session. Caller owns the transaction."""
    entry = ExperienceLedger(
        user_id=user_id,
        amount=amount,
        type=type_,
        description=description,
        created_at=now or datetime.now(timezone.utc),
    )
    db.add(entry)
    return entry


async def get_points_history(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    limit: int = 20,
    type_: str | None = None,
) -> tuple[list[PointLedger], int]:
    """Paginated ledger entries, newest first, with the total count."""
    filters = [PointLedger.user_id == user_id]
    if type_ is not None:
        filters.append(PointLedger.type == type_)

    total = (await db.execute(
        select(func.count()).select_from(PointLedger).where(*filters)
    )).scalar_one()
    result = await db.execute(
        select(PointLedger)
        .where(*filters)
        .order_by(PointLedger.created_at.desc(), PointLedger.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def get_points_leaderboard(db: AsyncSession, limit: int = 50) -> list[dict[str, Any]]:
    """Users ordered by point balance."""
    result = await db.execute(
        select(UserProfile.total_points, UserProfile.current_level, User.id, User.username, User.nickname)
        .join(User, User.id == UserProfile.user_id)
        .order_by(UserProfile.total_points.desc(), User.id)
        .limit(limit)
    )
    return [
        {
            "position": i,
            "user_id": row.id,
            "username": row.username,
            "nickname": row.nickname,
            "total_points": row.total_points,
            "level": row.current_level,
        }
        for i, row in enumerate(result.all(), start=1)
    ]


async def get_points_statistics(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Balance plus earned sums for today, the last 7 days and the last 30 days.

    Only positive deltas count as earnings; ``by_type`` nets every entry.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    now = as_utc(now)
    start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    async def _earned_since(since: datetime) -> int:
        result = await db.execute(
            select(func.coalesce(func.sum(PointLedger.amount), 0)).where(
                PointLedger.user_id == user_id,
                PointLedger.amount > 0,
                PointLedger.created_at >= since,
            )
        )
        return int(result.scalar_one())

    by_type_result = await db.execute(
        select(PointLedger.type, func.sum(PointLedger.amount))
        .where(PointLedger.user_id == user_id)
        .group_by(PointLedger.type)
    )
    balance = (await db.execute(
        select(UserProfile.total_points).where(UserProfile.user_id == user_id)
    )).scalar_one_or_none()

    return {
        "total_points": balance or 0,
        "today": await _earned_since(start_of_today),
        "week": await _earned_since(start_of_today - timedelta(days=6)),
        "month": await _earned_since(start_of_today - timedelta(days=29)),
        "by_type": {type_: int(total) for type_, total in by_type_result.all()},
    }
