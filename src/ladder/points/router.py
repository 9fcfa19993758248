"""Points API: ledger history, leaderboard, statistics."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.auth.dependencies import get_current_user
from ladder.clock import Clock
from ladder.config import get_settings
from ladder.db.models import User
from ladder.dependencies import get_clock, get_db
from ladder.points.schemas import (
    PointEntryResponse,
    PointsHistoryResponse,
    PointsLeaderboardEntry,
    PointsStatisticsResponse,
)
from ladder.points.service import get_points_history, get_points_leaderboard, get_points_statistics

router = APIRouter(prefix="/api/v1/points", tags=["Points"])


@router.get("/history", response_model=PointsHistoryResponse)
async def history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    type: Literal["CHECK_IN", "LOTTERY", "CONSUME"] | None = Query(None),  # noqa: A002
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PointsHistoryResponse:
    """Paginated ledger entries, newest first."""
    limit = min(limit, get_settings().history_page_size_max)
    entries, total = await get_points_history(db, user.id, page=page, limit=limit, type_=type)
    return PointsHistoryResponse(
        entries=[PointEntryResponse.model_validate(e) for e in entries],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/leaderboard", response_model=list[PointsLeaderboardEntry])
async def leaderboard(
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> list[PointsLeaderboardEntry]:
    """Users by point balance."""
    return [PointsLeaderboardEntry(**e) for e in await get_points_leaderboard(db, limit=limit)]


@router.get("/statistics", response_model=PointsStatisticsResponse)
async def statistics(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> PointsStatisticsResponse:
    """Balance and recent earnings."""
    return PointsStatisticsResponse(**await get_points_statistics(db, user.id, now=clock()))
