"""Lottery API: draw, prize table, history, statistics."""

from __future__ import annotations

import random

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.auth.dependencies import get_current_user
from ladder.clock import Clock
from ladder.config import get_settings
from ladder.db.models import User
from ladder.dependencies import get_clock, get_db, get_rng
from ladder.lottery.prizes import PrizeType
from ladder.lottery.schemas import (
    LotteryDrawResponse,
    LotteryHistoryResponse,
    LotteryResultResponse,
    LotteryStatisticsResponse,
    PrizeResponse,
)
from ladder.lottery.service import (
    draw_lottery,
    get_lottery_history,
    get_lottery_statistics,
    get_prize_configs,
)
from ladder.users.service import get_profile

router = APIRouter(prefix="/api/v1/lottery", tags=["Lottery"])


@router.post("/draw", response_model=LotteryResultResponse)
async def draw(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    rng: random.Random = Depends(get_rng),
    clock: Clock = Depends(get_clock),
) -> LotteryResultResponse:
    """Spend points on one draw. 400 INSUFFICIENT_POINTS when the balance is short."""
    result = await draw_lottery(db, user.id, rng=rng, now=clock(), cost=get_settings().lottery_cost)
    profile = await get_profile(db, user.id)
    return LotteryResultResponse(
        draw=LotteryDrawResponse.model_validate(result),
        balance=profile.total_points,
    )


@router.get("/prizes", response_model=list[PrizeResponse])
async def prizes() -> list[PrizeResponse]:
    """Prize table with selection probabilities."""
    return [PrizeResponse(**p) for p in get_prize_configs()]


@router.get("/history", response_model=LotteryHistoryResponse)
async def history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    prize_type: PrizeType | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> LotteryHistoryResponse:
    """Paginated draws, newest first."""
    limit = min(limit, get_settings().history_page_size_max)
    draws, total = await get_lottery_history(
        db, user.id, page=page, limit=limit, prize_type=prize_type.value if prize_type else None,
    )
    return LotteryHistoryResponse(
        draws=[LotteryDrawResponse.model_validate(d) for d in draws],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/statistics", response_model=LotteryStatisticsResponse)
async def statistics(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> LotteryStatisticsResponse:
    """Draw counts and points spent/won."""
    return LotteryStatisticsResponse(**await get_lottery_statistics(db, user.id))
