"""Rank service: seeding, placement, promotion, season rollover and demotion.

Only the current season's UserRank rows are mutated. A profile's
``current_rank_id`` always points at a tier of the season it was last
brought up to date in; ``ensure_current_season_rank`` rolls it forward
lazily, ``handle_season_inheritance`` does the same in bulk.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.clock import utc_day
from ladder.db.models import CheckIn, Rank, User, UserProfile, UserRank
from ladder.errors import RankNotFoundError
from ladder.notifications import CHANNEL_RANK_UP, publish_event
from ladder.progression.season import current_season
from ladder.ranks.ladder import (
    DEFAULT_LADDER,
    RankLadder,
    can_upgrade_rank,
    can_upgrade_star,
    rank_downgrade,
    season_inheritance,
    star_threshold,
)
from ladder.users.service import get_profile

logger = logging.getLogger(__name__)


@dataclass
class RankProgress:
    """Outcome of one promotion check. At most one of star_up/rank_up is set."""

    star_up: bool = False
    rank_up: bool = False
    rank_level: int | None = None
    rank_name: str | None = None
    stars: int | None = None

    @property
    def upgraded(self) -> bool:
        return self.star_up or self.rank_up

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Tier table
# ---------------------------------------------------------------------------


async def seed_ranks(db: AsyncSession, season: int, ladder: RankLadder = DEFAULT_LADDER) -> int:
    """Insert the ladder's tiers for ``season`` if missing. Flushes; caller commits.

    Returns the number of tiers inserted.
    """
    result = await db.execute(select(Rank.level).where(Rank.season == season))
    existing = set(result.scalars().all())

    inserted = 0
    for tier in ladder:
        if tier.level in existing:
            continue
        db.add(Rank(
            season=season,
            level=tier.level,
            name=tier.name,
            min_stars=tier.min_stars,
            max_stars=tier.max_stars,
            required_check_ins=tier.required_check_ins,
        ))
        inserted += 1

    if inserted:
        await db.flush()
        logger.info("Seeded %d rank tiers for season %d", inserted, season)
    return inserted


async def list_ranks(db: AsyncSession, season: int) -> list[Rank]:
    """All tiers of a season, lowest first."""
    result = await db.execute(
        select(Rank).where(Rank.season == season).order_by(Rank.level)
    )
    return list(result.scalars().all())


async def get_rank_by_level(db: AsyncSession, season: int, level: int) -> Rank | None:
    """Fetch one tier of a season."""
    result = await db.execute(
        select(Rank).where(Rank.season == season, Rank.level == level)
    )
    return result.scalar_one_or_none()


async def get_or_seed_rank(
    db: AsyncSession,
    season: int,
    level: int,
    ladder: RankLadder = DEFAULT_LADDER,
) -> Rank:
    """Fetch a tier, seeding the season's table on demand."""
    rank = await get_rank_by_level(db, season, level)
    if rank is not None:
        return rank
    await seed_ranks(db, season, ladder)
    rank = await get_rank_by_level(db, season, level)
    if rank is None:
        raise RankNotFoundError(f"Rank level {level} is not defined")
    return rank


async def get_user_rank(db: AsyncSession, user_id: int, rank_id: int, season: int) -> UserRank | None:
    """Fetch the progress record for one (user, rank, season)."""
    result = await db.execute(
        select(UserRank).where(
            UserRank.user_id == user_id,
            UserRank.rank_id == rank_id,
            UserRank.season == season,
        )
    )
    return result.unique().scalar_one_or_none()


async def _activate_rank(
    db: AsyncSession,
    profile: UserProfile,
    rank: Rank,
    stars: int,
    *,
    reset_existing: bool = False,
) -> UserRank:
    """Point the profile at ``rank``, creating its progress record if needed."""
    user_rank = await get_user_rank(db, profile.user_id, rank.id, rank.season)
    if user_rank is None:
        user_rank = UserRank(
            user_id=profile.user_id,
            rank_id=rank.id,
            season=rank.season,
            stars=stars,
            check_in_count=0,
        )
        db.add(user_rank)
    elif reset_existing:
        user_rank.stars = stars
        user_rank.check_in_count = 0
    profile.current_rank_id = rank.id
    await db.flush()
    return user_rank


# ---------------------------------------------------------------------------
# Placement & season rollover
# ---------------------------------------------------------------------------


async def ensure_current_season_rank(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
    ladder: RankLadder = DEFAULT_LADDER,
) -> UserRank | None:
    """Return the user's active progress record for the current season.

    1. No rank yet: place on the lowest tier with its minimum stars.
    2. Rank from an earlier season: apply season inheritance once.
    3. Rank in the current season: return its record as-is.

    Commits when anything was created. Returns None only if the active
    rank has no progress record, which is logged and left untouched.
    """
    season = current_season(now)
    profile = await get_profile(db, user_id)

    rank = await db.get(Rank, profile.current_rank_id) if profile.current_rank_id else None
    if rank is None:
        lowest = ladder.lowest
        start = await get_or_seed_rank(db, season, lowest.level, ladder)
        user_rank = await _activate_rank(db, profile, start, lowest.min_stars)
        await db.commit()
        logger.info("User %d placed on rank %s (season %d)", user_id, start.name, season)
        return user_rank

    if rank.season < season:
        previous = await get_user_rank(db, user_id, rank.id, rank.season)
        last_stars = previous.stars if previous is not None else rank.min_stars
        level, stars = season_inheritance(rank.level, last_stars, ladder)
        target = await get_or_seed_rank(db, season, level, ladder)
        user_rank = await _activate_rank(db, profile, target, stars)
        await db.commit()
        logger.info(
            "User %d inherited rank %s %d★ into season %d (from %s %d★, season %d)",
            user_id, target.name, stars, season, rank.name, last_stars, rank.season,
        )
        return user_rank

    user_rank = await get_user_rank(db, user_id, rank.id, rank.season)
    if user_rank is None:
        logger.warning("User %d has no progress record for rank %d", user_id, rank.id)
    return user_rank


async def handle_season_inheritance(
    db: AsyncSession,
    from_season: int,
    to_season: int,
    ladder: RankLadder = DEFAULT_LADDER,
) -> int:
    """Carry every active ``from_season`` rank into ``to_season``.

    Users who already have a ``to_season`` record are skipped, so re-running
    the rollover is harmless. Returns the number of users carried over.
    """
    await seed_ranks(db, to_season, ladder)

    result = await db.execute(
        select(UserRank, UserProfile)
        .join(
            UserProfile,
            and_(
                UserProfile.user_id == UserRank.user_id,
                UserProfile.current_rank_id == UserRank.rank_id,
            ),
        )
        .where(UserRank.season == from_season)
    )
    rows = result.unique().all()

    migrated_result = await db.execute(
        select(UserRank.user_id).where(UserRank.season == to_season).distinct()
    )
    already_migrated = set(migrated_result.scalars().all())

    carried = 0
    for user_rank, profile in rows:
        if user_rank.user_id in already_migrated:
            continue
        level, stars = season_inheritance(user_rank.rank.level, user_rank.stars, ladder)
        target = await get_or_seed_rank(db, to_season, level, ladder)
        await _activate_rank(db, profile, target, stars)
        carried += 1

    await db.commit()
    logger.info("Season %d -> %d rollover carried %d users", from_season, to_season, carried)
    return carried


# ---------------------------------------------------------------------------
# Promotion
# ---------------------------------------------------------------------------


async def check_and_upgrade_rank(
    db: AsyncSession,
    redis: object,
    user_id: int,
    now: datetime | None = None,
    ladder: RankLadder = DEFAULT_LADDER,
) -> RankProgress:
    """Apply at most one star or rank promotion based on the active check-in count.

    A star is tried first; when one is granted the tier check is skipped
    until the next call. A promotion is also stamped on the day's check-in,
    which is where inactivity demotion counts from.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    season = current_season(now)
    profile = await get_profile(db, user_id)
    rank = await db.get(Rank, profile.current_rank_id) if profile.current_rank_id else None
    if rank is None or rank.season != season:
        return RankProgress()

    user_rank = await get_user_rank(db, user_id, rank.id, season)
    if user_rank is None:
        return RankProgress()

    count = user_rank.check_in_count
    if can_upgrade_star(rank.level, user_rank.stars, rank.max_stars) and count >= star_threshold(user_rank.stars):
        user_rank.stars += 1
        await db.commit()
        logger.info("User %d gained a star on %s (%d★)", user_id, rank.name, user_rank.stars)
        return RankProgress(star_up=True, rank_level=rank.level, rank_name=rank.name, stars=user_rank.stars)

    if can_upgrade_rank(rank.level, user_rank.stars, rank.max_stars, count, rank.required_check_ins):
        next_tier = ladder.next_tier(rank.level)
        if next_tier is not None:
            next_rank = await get_or_seed_rank(db, season, next_tier.level, ladder)
            await _activate_rank(db, profile, next_rank, next_tier.min_stars, reset_existing=True)
            await db.execute(
                update(CheckIn)
                .where(CheckIn.user_id == user_id, CheckIn.check_in_date == utc_day(now))
                .values(rank_level=next_rank.level)
            )
            await db.commit()
            logger.info("User %d promoted %s -> %s", user_id, rank.name, next_rank.name)
            await publish_event(redis, CHANNEL_RANK_UP, {
                "user_id": user_id,
                "from_level": rank.level,
                "to_level": next_rank.level,
                "rank_name": next_rank.name,
                "season": season,
            })
            return RankProgress(
                rank_up=True,
                rank_level=next_rank.level,
                rank_name=next_rank.name,
                stars=next_tier.min_stars,
            )

    return RankProgress(rank_level=rank.level, rank_name=rank.name, stars=user_rank.stars)


# ---------------------------------------------------------------------------
# Inactivity demotion
# ---------------------------------------------------------------------------


async def handle_rank_downgrade(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
    ladder: RankLadder = DEFAULT_LADDER,
) -> int | None:
    """Demote one tier per calendar month since the last check-in.

    Measured from the tier held after that check-in, including any
    promotion it earned, so repeated runs do not compound. Only ever lowers the rank. Returns the resulting level.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    await ensure_current_season_rank(db, user_id, now=now, ladder=ladder)

    profile = await get_profile(db, user_id)
    rank = await db.get(Rank, profile.current_rank_id) if profile.current_rank_id else None
    if rank is None:
        return None

    result = await db.execute(
        select(CheckIn)
        .where(CheckIn.user_id == user_id)
        .order_by(CheckIn.check_in_date.desc())
        .limit(1)
    )
    last = result.scalar_one_or_none()
    if last is None:
        new_level = rank_downgrade(None, rank.level, now)
    else:
        new_level = rank_downgrade(last.check_in_date, last.rank_level or rank.level, now)

    if new_level >= rank.level:
        return rank.level

    target = await get_or_seed_rank(db, rank.season, new_level, ladder)
    await _activate_rank(db, profile, target, target.min_stars)
    await db.commit()
    logger.info("User %d demoted %s -> %s for inactivity", user_id, rank.name, target.name)
    return new_level


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_user_rank_status(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
    ladder: RankLadder = DEFAULT_LADDER,
) -> dict[str, Any]:
    """Current tier, stars and what the next promotion needs."""
    user_rank = await ensure_current_season_rank(db, user_id, now=now, ladder=ladder)
    profile = await get_profile(db, user_id)
    rank = await db.get(Rank, profile.current_rank_id) if profile.current_rank_id else None
    if rank is None:
        raise RankNotFoundError()

    stars = user_rank.stars if user_rank is not None else rank.min_stars
    count = user_rank.check_in_count if user_rank is not None else 0
    next_tier = ladder.next_tier(rank.level)
    return {
        "season": rank.season,
        "rank_id": rank.id,
        "rank_level": rank.level,
        "rank_name": rank.name,
        "stars": stars,
        "max_stars": rank.max_stars,
        "check_in_count": count,
        "required_check_ins": rank.required_check_ins,
        "next_star_at": (
            star_threshold(stars) if can_upgrade_star(rank.level, stars, rank.max_stars) else None
        ),
        "next_rank_name": next_tier.name if next_tier is not None else None,
    }


async def get_rank_leaderboard(db: AsyncSession, season: int, limit: int = 50) -> list[dict[str, Any]]:
    """Users ordered by active tier, then stars, then check-ins in that tier."""
    result = await db.execute(
        select(UserRank, User)
        .join(
            UserProfile,
            and_(
                UserProfile.user_id == UserRank.user_id,
                UserProfile.current_rank_id == UserRank.rank_id,
            ),
        )
        .join(User, User.id == UserRank.user_id)
        .join(Rank, Rank.id == UserRank.rank_id)
        .where(UserRank.season == season)
        .order_by(Rank.level.desc(), UserRank.stars.desc(), UserRank.check_in_count.desc(), UserRank.user_id)
        .limit(limit)
    )
    return [
        {
            "position": i,
            "user_id": user.id,
            "username": user.username,
            "nickname": user.nickname,
            "rank_level": user_rank.rank.level,
            "rank_name": user_rank.rank.name,
            "stars": user_rank.stars,
            "check_in_count": user_rank.check_in_count,
        }
        for i, (user_rank, user) in enumerate(result.unique().all(), start=1)
    ]

