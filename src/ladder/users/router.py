"""User profile API."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.auth.dependencies import get_current_user
from ladder.clock import Clock
from ladder.db.models import User
from ladder.dependencies import get_clock, get_db
from ladder.progression.levels import level_progress
from ladder.ranks.service import get_user_rank_status
from ladder.users.schemas import LevelProgressResponse, ProfileResponse
from ladder.users.service import get_profile

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get("/me", response_model=ProfileResponse)
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> ProfileResponse:
    """The caller's progression snapshot with level progress and current rank."""
    rank = await get_user_rank_status(db, user.id, now=clock())
    profile = await get_profile(db, user.id)
    return ProfileResponse(
        id=user.id,
        username=user.username,
        nickname=user.nickname,
        avatar_url=user.avatar_url,
        total_points=profile.total_points,
        current_level=profile.current_level,
        current_exp=profile.current_exp,
        next_level_exp=profile.next_level_exp,
        level_progress=LevelProgressResponse(**level_progress(profile.current_exp, profile.current_level)),
        consecutive_check_in_days=profile.consecutive_check_in_days,
        total_check_in_days=profile.total_check_in_days,
        consecutive_login_days=profile.consecutive_login_days,
        total_login_days=profile.total_login_days,
        last_login_date=profile.last_login_date,
        rank_name=rank["rank_name"],
        rank_level=rank["rank_level"],
        stars=rank["stars"],
        season=rank["season"],
    )
