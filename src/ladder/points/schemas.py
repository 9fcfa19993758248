"""Pydantic schemas for points API responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class PointEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    amount: int
    type: str
    description: str | None = None
    created_at: datetime


class PointsHistoryResponse(BaseModel):
    entries: list[PointEntryResponse]
    total: int
    page: int
    limit: int


class PointsLeaderboardEntry(BaseModel):
    position: int
    user_id: int
    username: str
    nickname: str | None = None
    total_points: int
    level: int


class PointsStatisticsResponse(BaseModel):
    total_points: int
    today: int
    week: int
    month: int
    by_type: dict[str, int]
