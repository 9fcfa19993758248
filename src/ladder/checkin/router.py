"""Check-in API: perform today's check-in, today's status, history."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.auth.dependencies import get_current_user
from ladder.badges.dispatcher import BadgeDispatcher
from ladder.checkin.schemas import (
    CheckInHistoryResponse,
    CheckInRecordResponse,
    CheckInResponse,
    TodayStatusResponse,
)
from ladder.checkin.service import get_check_in_history, get_today_status, perform_check_in
from ladder.clock import Clock
from ladder.config import get_settings
from ladder.db.models import User
from ladder.dependencies import get_badge_dispatcher, get_clock, get_db, get_redis_dep

router = APIRouter(prefix="/api/v1/checkin", tags=["Check-in"])


@router.post("", response_model=CheckInResponse)
async def check_in(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: object = Depends(get_redis_dep),
    clock: Clock = Depends(get_clock),
    dispatcher: BadgeDispatcher | None = Depends(get_badge_dispatcher),
) -> CheckInResponse:
    """Check in for today. 409 ALREADY_CHECKED_IN on a repeat."""
    result = await perform_check_in(db, redis, user.id, now=clock(), dispatcher=dispatcher)
    return CheckInResponse(**result.to_dict())


@router.get("/today", response_model=TodayStatusResponse)
async def today(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> TodayStatusResponse:
    """Whether the user has checked in today and what today's reward is."""
    return TodayStatusResponse(**await get_today_status(db, user.id, now=clock()))


@router.get("/history", response_model=CheckInHistoryResponse)
async def history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CheckInHistoryResponse:
    """Paginated check-in history, newest first."""
    limit = min(limit, get_settings().history_page_size_max)
    records, total = await get_check_in_history(db, user.id, page=page, limit=limit)
    return CheckInHistoryResponse(
        records=[CheckInRecordResponse.model_validate(r) for r in records],
        total=total,
        page=page,
        limit=limit,
    )
