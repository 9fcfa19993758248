"""Pydantic schemas for user profile responses."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel


class LevelProgressResponse(BaseModel):
    level: int
    exp_into_level: int
    exp_for_level: int
    next_level_exp: int
    percent: float


class ProfileResponse(BaseModel):
    id: int
    username: str
    nickname: str | None = None
    avatar_url: str | None = None
    total_points: int
    current_level: int
    current_exp: int
    next_level_exp: int
    level_progress: LevelProgressResponse
    consecutive_check_in_days: int
    total_check_in_days: int
    consecutive_login_days: int
    total_login_days: int
    last_login_date: date | None = None
    rank_name: str | None = None
    rank_level: int | None = None
    stars: int | None = None
    season: int
