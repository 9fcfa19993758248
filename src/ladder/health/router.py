"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.clock import Clock
from ladder.config import get_settings
from ladder.database import get_session
from ladder.db.models import Badge, Rank
from ladder.dependencies import get_clock
from ladder.progression.season import current_season
from ladder.redis_client import redis_status

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    clock: Clock = Depends(get_clock),  # noqa: B008
) -> dict[str, object]:
    """Readiness probe: database, seeded catalogs for the current season, Redis."""
    checks: dict[str, object] = {}

    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {exc}"

    if checks["database"] == "ok":
        season = current_season(clock())
        rank_count = (await db.execute(
            select(func.count()).select_from(Rank).where(Rank.season == season)
        )).scalar_one()
        badge_count = (await db.execute(select(func.count()).select_from(Badge))).scalar_one()
        checks["catalogs"] = "ok" if rank_count and badge_count else f"missing (season {season})"

    checks["redis"] = await redis_status()

    # A disabled Redis counts as healthy.
    healthy = all(v in ("ok", "disabled") for v in checks.values())
    return {"status": "ready" if healthy else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version, environment and the current season."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
        "season": str(current_season()),
    }
