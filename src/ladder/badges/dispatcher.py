"""Non-blocking badge evaluation.

Callers of a primary operation (check-in, login) hand evaluation off here
and return immediately. Failures are logged and never reach the caller.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ladder.badges.catalog import BadgeType
from ladder.badges.service import evaluate_badges

logger = logging.getLogger(__name__)


class BadgeDispatcher:
    """Runs badge evaluation as tracked background tasks, each on its own session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], redis: object = None) -> None:
        self._session_factory = session_factory
        self._redis = redis
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(
        self,
        user_id: int,
        badge_types: list[BadgeType],
        now: datetime | None = None,
    ) -> asyncio.Task[None]:
        """Schedule an evaluation pass and return without waiting for it."""
        task = asyncio.create_task(self._run(user_id, badge_types, now))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, user_id: int, badge_types: list[BadgeType], now: datetime | None) -> None:
        try:
            async with self._session_factory() as db:
                await evaluate_badges(db, self._redis, user_id, badge_types, now=now)
        except Exception:
            logger.exception(
                "Badge evaluation failed for user %d (types=%s)",
                user_id, [t.value for t in badge_types],
            )

    async def drain(self) -> None:
        """Wait for every scheduled pass to finish (used on shutdown and in tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


async def schedule_badge_evaluation(
    db: AsyncSession,
    redis: object,
    dispatcher: BadgeDispatcher | None,
    user_id: int,
    badge_types: list[BadgeType],
    now: datetime | None = None,
) -> None:
    """Dispatch in the background, or evaluate inline on ``db`` when no dispatcher is set.

    The inline path is still best-effort: errors are logged and the session
    is rolled back.
    """
    if dispatcher is not None:
        dispatcher.dispatch(user_id, badge_types, now=now)
        return
    try:
        await evaluate_badges(db, redis, user_id, badge_types, now=now)
    except Exception:
        logger.exception("Inline badge evaluation failed for user %d", user_id)
        await db.rollback()
