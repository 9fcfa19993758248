"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ladder.badges.dispatcher import BadgeDispatcher
from ladder.badges.router import router as badges_router
from ladder.badges.service import seed_badges
from ladder.checkin.router import router as checkin_router
from ladder.config import get_settings
from ladder.database import close_db, get_session_factory, init_db
from ladder.health.router import router as health_router
from ladder.items.router import router as items_router
from ladder.lottery.router import router as lottery_router
from ladder.middleware import setup_middleware
from ladder.points.router import router as points_router
from ladder.progression.season import current_season
from ladder.ranks.router import router as ranks_router
from ladder.ranks.service import seed_ranks
from ladder.redis_client import close_redis, get_optional_redis, init_redis
from ladder.users.router import router as users_router

logger = logging.getLogger(__name__)


async def seed_catalogs() -> None:
    """Seed badge definitions and the current season's rank tiers (idempotent)."""
    async with get_session_factory()() as db:
        await seed_badges(db)
        await seed_ranks(db, current_season())
        await db.commit()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url, settings.redis_max_connections)

    try:
        await seed_catalogs()
    except Exception:
        logger.warning("Catalog seeding failed (tables may not exist yet)", exc_info=True)

    dispatcher: BadgeDispatcher | None = None
    if settings.badge_evaluation == "background":
        dispatcher = BadgeDispatcher(get_session_factory(), get_optional_redis())
    app.state.badge_dispatcher = dispatcher

    yield

    if dispatcher is not None:
        await dispatcher.drain()
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Ladder API",
        description="Check-in streaks, levels, seasonal ranks, badges and a points lottery",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(checkin_router)
    app.include_router(ranks_router)
    app.include_router(badges_router)
    app.include_router(lottery_router)
    app.include_router(items_router)
    app.include_router(points_router)

    return app


app = create_app()
