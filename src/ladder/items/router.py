"""Inventory API: item catalog, the caller's items, item use."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.auth.dependencies import get_current_user
from ladder.clock import Clock
from ladder.db.models import User
from ladder.dependencies import get_clock, get_db
from ladder.items.schemas import ItemEffectResponse, ItemResponse, UserItemResponse
from ladder.items.service import get_user_items, list_items, use_item

router = APIRouter(prefix="/api/v1/items", tags=["Items"])


@router.get("", response_model=list[ItemResponse])
async def items(db: AsyncSession = Depends(get_db)) -> list[ItemResponse]:
    """Item definitions granted so far."""
    return [ItemResponse.model_validate(i) for i in await list_items(db)]


@router.get("/me", response_model=list[UserItemResponse])
async def my_items(
    include_used: bool = Query(False),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[UserItemResponse]:
    """The caller's inventory stacks."""
    stacks = await get_user_items(db, user.id, include_used=include_used)
    return [UserItemResponse.model_validate(s) for s in stacks]


@router.post("/me/{user_item_id}/use", response_model=ItemEffectResponse)
async def use_my_item(
    user_item_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> ItemEffectResponse:
    """Consume one unit. 404 ITEM_NOT_FOUND or 400 ITEM_EXPIRED on failure."""
    return ItemEffectResponse(**await use_item(db, user.id, user_item_id, now=clock()))
