"""Pydantic schemas for badge API requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from ladder.badges.catalog import BadgeType


class BadgeResponse(BaseModel):
    id: int
    name: str
    description: str
    icon: str
    type: str
    rarity: str
    condition: dict[str, Any]
    achieved: bool = False
    achieved_at: datetime | None = None


class UserBadgeResponse(BaseModel):
    id: int
    name: str
    description: str
    icon: str
    type: str
    rarity: str
    achieved_at: datetime


class BadgeProgress(BaseModel):
    total: int
    achieved: int


class BadgeStatisticsResponse(BaseModel):
    total: int
    achieved: int
    completion_percent: float
    by_type: dict[str, BadgeProgress]
    by_rarity: dict[str, BadgeProgress]


class EvaluateBadgesRequest(BaseModel):
    types: list[BadgeType] | None = None


class EvaluateBadgesResponse(BaseModel):
    awarded: list[UserBadgeResponse]
