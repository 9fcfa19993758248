"""Pydantic schemas for inventory API responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class ItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    type: str
    effect: dict[str, Any]
    icon: str
    rarity: str


class UserItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item: ItemResponse
    quantity: int
    is_used: bool
    used_at: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime


class ItemEffectResponse(BaseModel):
    type: str
    value: int
    duration: int
    effective_at: datetime
    expires_at: datetime
