"""arq entry point for the season maintenance worker.

Run with: arq ladder.workers.settings.WorkerSettings

Both jobs are meant to run once a day shortly after 00:00 UTC, rollover
first, so a demotion never lands on a season that has not been seeded.
"""

from __future__ import annotations

import logging

from ladder.config import get_settings
from ladder.database import close_db, get_session_factory, init_db
from ladder.workers.season_worker import inactivity_demotion, season_rollover

logger = logging.getLogger(__name__)


async def startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Open the database and hand the session factory to the jobs."""
    await init_db(get_settings().database_url)
    ctx["session_factory"] = get_session_factory()
    logger.info("Season worker started")


async def shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    await close_db()
    logger.info("Season worker stopped")


class WorkerSettings:
    functions = [season_rollover, inactivity_demotion]
    on_startup = startup
    on_shutdown = shutdown
    max_jobs = 1
    job_timeout = 3600
