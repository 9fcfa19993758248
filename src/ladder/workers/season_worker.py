"""Season maintenance jobs: rollover and inactivity demotion.

Both jobs are idempotent and safe to re-run:
- season_rollover: daily; carries active ranks into the current season
  for users who have not been rolled over on demand yet.
- inactivity_demotion: daily; one tier per calendar month without a check-in.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ladder.db.models import User, UserProfile
from ladder.progression.season import current_season
from ladder.ranks.service import (
    get_user_rank_status,
    handle_rank_downgrade,
    handle_season_inheritance,
    seed_ranks,
)

logger = logging.getLogger(__name__)


async def season_rollover(ctx: dict, now: datetime | None = None) -> int:  # type: ignore[type-arg]
    """Seed the current season and carry the previous season's ranks into it."""
    season = current_season(now or datetime.now(timezone.utc))
    async with ctx["session_factory"]() as db:
        await seed_ranks(db, season)
        await db.commit()
        if season <= 1:
            return 0
        carried = await handle_season_inheritance(db, season - 1, season)
    if carried:
        logger.info("Rolled %d users into season %d", carried, season)
    return carried


async def inactivity_demotion(ctx: dict, now: datetime | None = None) -> int:  # type: ignore[type-arg]
    """Apply inactivity demotion to every non-banned user. Returns users demoted."""
    now = now or datetime.now(timezone.utc)
    factory = ctx["session_factory"]

    async with factory() as db:
        result = await db.execute(
            select(UserProfile.user_id, UserProfile.current_rank_id)
            .join(User, User.id == UserProfile.user_id)
            .where(User.is_banned.is_(False), UserProfile.current_rank_id.isnot(None))
        )
        candidates = [row.user_id for row in result.all()]

    demoted = 0
    for user_id in candidates:
        async with factory() as db:
            try:
                before = (await get_user_rank_status(db, user_id, now=now))["rank_level"]
                after = await handle_rank_downgrade(db, user_id, now=now)
            except SQLAlchemyError:
                logger.warning("Inactivity demotion failed for user %d", user_id, exc_info=True)
                await db.rollback()
                continue
            if after is not None and after < before:
                demoted += 1

    logger.info("Inactivity demotion: %d of %d users demoted", demoted, len(candidates))
    return demoted

