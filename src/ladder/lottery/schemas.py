"""Pydantic schemas for lottery API responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class PrizeResponse(BaseModel):
    id: str
    name: str
    type: str
    value: int
    weight: int
    icon: str
    description: str
    probability: float


class LotteryDrawResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    prize_type: str
    prize_ref: str | None = None
    prize_name: str
    prize_value: int | None = None
    cost: int
    created_at: datetime


class LotteryResultResponse(BaseModel):
    draw: LotteryDrawResponse
    balance: int


class LotteryHistoryResponse(BaseModel):
    draws: list[LotteryDrawResponse]
    total: int
    page: int
    limit: int


class LotteryStatisticsResponse(BaseModel):
    total_draws: int
    total_cost: int
    red_packet_points: int
    by_type: dict[str, int]
