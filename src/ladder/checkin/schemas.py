"""Pydantic schemas for check-in API responses."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict


class CheckInResponse(BaseModel):
    check_in_id: int
    check_in_date: date
    points_earned: int
    exp_earned: int
    consecutive_days: int
    level_up: bool
    level: int
    total_points: int
    rank_up: bool
    star_up: bool
    rank_name: str | None = None
    stars: int | None = None


class TodayStatusResponse(BaseModel):
    day: date
    checked_in: bool
    consecutive_days: int
    points: int
    exp: int


class CheckInRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    check_in_date: date
    points_earned: int
    exp_earned: int
    consecutive_days: int
    rank_level: int | None = None
    created_at: datetime | None = None


class CheckInHistoryResponse(BaseModel):
    records: list[CheckInRecordResponse]
    total: int
    page: int
    limit: int
