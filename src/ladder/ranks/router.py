"""Rank API: tier table, the caller's rank, season leaderboard."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.auth.dependencies import get_current_user
from ladder.clock import Clock
from ladder.db.models import User
from ladder.dependencies import get_clock, get_db
from ladder.progression.season import current_season
from ladder.ranks.schemas import (
    RankLeaderboardEntry,
    RankLeaderboardResponse,
    RankListResponse,
    RankTierResponse,
    UserRankStatusResponse,
)
from ladder.ranks.service import get_rank_leaderboard, get_user_rank_status, list_ranks, seed_ranks

router = APIRouter(prefix="/api/v1/ranks", tags=["Ranks"])


@router.get("", response_model=RankListResponse)
async def ranks(
    season: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> RankListResponse:
    """Tier table of a season (the current one by default)."""
    season = season or current_season(clock())
    tiers = await list_ranks(db, season)
    if not tiers and season == current_season(clock()):
        await seed_ranks(db, season)
        await db.commit()
        tiers = await list_ranks(db, season)
    return RankListResponse(season=season, ranks=[RankTierResponse.model_validate(t) for t in tiers])


@router.get("/me", response_model=UserRankStatusResponse)
async def my_rank(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> UserRankStatusResponse:
    """The caller's tier, stars and progress toward the next promotion."""
    return UserRankStatusResponse(**await get_user_rank_status(db, user.id, now=clock()))


@router.get("/leaderboard", response_model=RankLeaderboardResponse)
async def leaderboard(
    season: int | None = Query(None, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> RankLeaderboardResponse:
    """Highest tiers first, then stars."""
    season = season or current_season(clock())
    entries = await get_rank_leaderboard(db, season, limit=limit)
    return RankLeaderboardResponse(season=season, entries=[RankLeaderboardEntry(**e) for e in entries])
