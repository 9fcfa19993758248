"""Badge API: catalog, the caller's badges and statistics, on-demand evaluation."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.auth.dependencies import get_current_user
from ladder.badges.catalog import BadgeRarity, BadgeType
from ladder.badges.schemas import (
    BadgeResponse,
    BadgeStatisticsResponse,
    EvaluateBadgesRequest,
    EvaluateBadgesResponse,
    UserBadgeResponse,
)
from ladder.badges.service import (
    evaluate_badges,
    get_user_badge_statistics,
    get_user_badges,
    list_badges,
)
from ladder.clock import Clock
from ladder.db.models import User
from ladder.dependencies import get_clock, get_db, get_redis_dep

router = APIRouter(prefix="/api/v1/badges", tags=["Badges"])


@router.get("", response_model=list[BadgeResponse])
async def badges(
    type: BadgeType | None = Query(None),  # noqa: A002
    rarity: BadgeRarity | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[BadgeResponse]:
    """All badges, marked with whether the caller holds them."""
    rows = await list_badges(
        db,
        badge_type=type.value if type else None,
        rarity=rarity.value if rarity else None,
        user_id=user.id,
    )
    return [BadgeResponse(**row) for row in rows]


@router.get("/me", response_model=list[UserBadgeResponse])
async def my_badges(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[UserBadgeResponse]:
    """Badges the caller holds, newest first."""
    held = await get_user_badges(db, user.id)
    return [
        UserBadgeResponse(
            id=ub.badge.id,
            name=ub.badge.name,
            description=ub.badge.description,
            icon=ub.badge.icon,
            type=ub.badge.type,
            rarity=ub.badge.rarity,
            achieved_at=ub.achieved_at,
        )
        for ub in held
    ]


@router.get("/me/statistics", response_model=BadgeStatisticsResponse)
async def my_badge_statistics(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BadgeStatisticsResponse:
    """Catalog completion overall, per type and per rarity."""
    return BadgeStatisticsResponse(**await get_user_badge_statistics(db, user.id))


@router.post("/me/evaluate", response_model=EvaluateBadgesResponse)
async def evaluate_my_badges(
    body: EvaluateBadgesRequest | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: object = Depends(get_redis_dep),
    clock: Clock = Depends(get_clock),
) -> EvaluateBadgesResponse:
    """Run an evaluation pass now (all types unless narrowed) and return new awards."""
    awarded = await evaluate_badges(db, redis, user.id, body.types if body else None, now=clock())
    return EvaluateBadgesResponse(awarded=[
        UserBadgeResponse(
            id=b.id,
            name=b.name,
            description=b.description,
            icon=b.icon,
            type=b.type,
            rarity=b.rarity,
            achieved_at=b.achieved_at,
        )
        for b in awarded
    ])
