"""Badge seeding, evaluation and awarding.

Awards are idempotent: ``has_badge`` short-circuits and the
UNIQUE(user_id, badge_id) constraint catches concurrent passes.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.badges.catalog import BADGE_CATALOG, BadgeCatalog, BadgeCondition, BadgeType
from ladder.badges.rules import ProgressSnapshot, check_condition, first_time_allowed
from ladder.db.models import Badge, Rank, UserBadge
from ladder.notifications import CHANNEL_BADGE_EARNED, publish_event
from ladder.users.service import get_profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AwardedBadge:
    """Detached view of a newly awarded badge."""

    id: int
    name: str
    description: str
    icon: str
    type: str
    rarity: str
    achieved_at: datetime


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


async def seed_badges(db: AsyncSession, catalog: BadgeCatalog = BADGE_CATALOG) -> int:
    """Insert catalog badges missing by name. Flushes; caller commits."""
    result = await db.execute(select(Badge.name))
    existing = set(result.scalars().all())

    inserted = 0
    for order, entry in enumerate(catalog, start=1):
        if entry.name in existing:
            continue
        db.add(Badge(
            name=entry.name,
            description=entry.description,
            icon=entry.icon,
            type=entry.type.value,
            rarity=entry.rarity.value,
            condition=entry.condition.to_dict(),
            sort_order=order,
        ))
        inserted += 1

    if inserted:
        await db.flush()
        logger.info("Seeded %d badges", inserted)
    return inserted


async def list_badges(
    db: AsyncSession,
    badge_type: str | None = None,
    rarity: str | None = None,
    user_id: int | None = None,
) -> list[dict[str, Any]]:
    """Badge definitions in catalog order, optionally marked with the user's holdings."""
    stmt = select(Badge).order_by(Badge.sort_order, Badge.id)
    if badge_type is not None:
        stmt = stmt.where(Badge.type == badge_type)
    if rarity is not None:
        stmt = stmt.where(Badge.rarity == rarity)
    badges = list((await db.execute(stmt)).scalars().all())

    achieved: dict[int, datetime] = {}
    if user_id is not None:
        held = await db.execute(
            select(UserBadge.badge_id, UserBadge.achieved_at).where(UserBadge.user_id == user_id)
        )
        achieved = {badge_id: achieved_at for badge_id, achieved_at in held.all()}

    return [
        {
            "id": b.id,
            "name": b.name,
            "description": b.description,
            "icon": b.icon,
            "type": b.type,
            "rarity": b.rarity,
            "condition": b.condition,
            "achieved": b.id in achieved,
            "achieved_at": achieved.get(b.id),
        }
        for b in badges
    ]


async def get_user_badges(db: AsyncSession, user_id: int) -> list[UserBadge]:
    """Badges held by a user, most recent first."""
    result = await db.execute(
        select(UserBadge)
        .where(UserBadge.user_id == user_id)
        .order_by(UserBadge.achieved_at.desc(), UserBadge.id.desc())
    )
    return list(result.unique().scalars().all())


async def get_user_badge_statistics(db: AsyncSession, user_id: int) -> dict[str, Any]:
    """Totals and per-type / per-rarity progress through the catalog."""
    totals = await db.execute(select(Badge.type, Badge.rarity, Badge.id))
    held_ids = set((await db.execute(
        select(UserBadge.badge_id).where(UserBadge.user_id == user_id)
    )).scalars().all())

    by_type: dict[str, dict[str, int]] = {}
    by_rarity: dict[str, dict[str, int]] = {}
    total = achieved = 0
    for badge_type, rarity, badge_id in totals.all():
        is_held = badge_id in held_ids
        total += 1
        achieved += is_held
        for bucket, key in ((by_type, badge_type), (by_rarity, rarity)):
            entry = bucket.setdefault(key, {"total": 0, "achieved": 0})
            entry["total"] += 1
            entry["achieved"] += is_held

    return {
        "total": total,
        "achieved": achieved,
        "completion_percent": round(achieved / total * 100, 2) if total else 0.0,
        "by_type": by_type,
        "by_rarity": by_rarity,
    }


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


async def has_badge(db: AsyncSession, user_id: int, badge_id: int) -> bool:
    """Check if user already has a specific badge."""
    result = await db.execute(
        select(UserBadge.id).where(
            UserBadge.user_id == user_id,
            UserBadge.badge_id == badge_id,
        )
    )
    return result.first() is not None


async def check_first_time(
    db: AsyncSession,
    user_id: int,
    badge_type: str,
    condition: BadgeCondition,
) -> bool:
    """True unless the condition is first-time gated and the user holds a badge of that type."""
    if not condition.first_time:
        return True
    result = await db.execute(
        select(func.count())
        .select_from(UserBadge)
        .join(Badge, Badge.id == UserBadge.badge_id)
        .where(UserBadge.user_id == user_id, Badge.type == badge_type)
    )
    return first_time_allowed(condition, result.scalar_one())


async def build_snapshot(db: AsyncSession, user_id: int) -> ProgressSnapshot:
    """Capture the values badge conditions are tested against."""
    profile = await get_profile(db, user_id)
    rank = await db.get(Rank, profile.current_rank_id) if profile.current_rank_id else None
    return ProgressSnapshot(
        consecutive_check_in_days=profile.consecutive_check_in_days,
        total_check_in_days=profile.total_check_in_days,
        consecutive_login_days=profile.consecutive_login_days,
        total_login_days=profile.total_login_days,
        level=profile.current_level,
        rank_level=rank.level if rank is not None else None,
        rank_name=rank.name if rank is not None else None,
    )


async def evaluate_badges(
    db: AsyncSession,
    redis: object,
    user_id: int,
    badge_types: list[BadgeType] | None = None,
    now: datetime | None = None,
) -> list[AwardedBadge]:
    """Award every eligible badge of the given types (all types when None).

    1. Snapshot the profile and current holdings once.
    2. Test each unheld badge against that snapshot; first-time badges also
       need zero holdings of their type, and at most one is awarded per type.
    3. Commit each award on its own so one failure does not block the rest.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    snapshot = await build_snapshot(db, user_id)

    stmt = select(Badge).order_by(Badge.sort_order, Badge.id)
    if badge_types:
        stmt = stmt.where(Badge.type.in_([t.value for t in badge_types]))
    candidates = [
        (b.id, b.name, b.description, b.icon, b.type, b.rarity, b.condition)
        for b in (await db.execute(stmt)).scalars().all()
    ]

    held = await db.execute(
        select(UserBadge.badge_id, Badge.type)
        .join(Badge, Badge.id == UserBadge.badge_id)
        .where(UserBadge.user_id == user_id)
    )
    held_rows = held.all()
    held_ids = {badge_id for badge_id, _ in held_rows}
    held_by_type = Counter(badge_type for _, badge_type in held_rows)

    awarded: list[AwardedBadge] = []
    first_time_claimed: set[str] = set()
    for badge_id, name, description, icon, badge_type, rarity, raw_condition in candidates:
        if badge_id in held_ids:
            continue
        try:
            condition = BadgeCondition.from_dict(raw_condition)
        except (TypeError, ValueError):
            logger.warning("Skipping badge %s with invalid condition", name, exc_info=True)
            continue
        if not check_condition(snapshot, condition):
            continue
        if condition.first_time:
            if badge_type in first_time_claimed or not first_time_allowed(condition, held_by_type[badge_type]):
                continue

        if not await _award(db, user_id, badge_id, now):
            continue
        if condition.first_time:
            first_time_claimed.add(badge_type)
        awarded.append(AwardedBadge(badge_id, name, description, icon, badge_type, rarity, now))

    for badge in awarded:
        logger.info("User %d earned badge %s", user_id, badge.name)
        await publish_event(redis, CHANNEL_BADGE_EARNED, {
            "user_id": user_id,
            "badge_id": badge.id,
            "badge_name": badge.name,
            "type": badge.type,
            "rarity": badge.rarity,
        })
    return awarded


async def _award(db: AsyncSession, user_id: int, badge_id: int, now: datetime) -> bool:
    """Insert one user_badges row in its own transaction."""
    if await has_badge(db, user_id, badge_id):
        return False
    db.add(UserBadge(user_id=user_id, badge_id=badge_id, achieved_at=now))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return False  # Race condition: badge already awarded
    except SQLAlchemyError:
        await db.rollback()
        logger.warning("Failed to award badge %d to user %d", badge_id, user_id, exc_info=True)
        return False
    return True
