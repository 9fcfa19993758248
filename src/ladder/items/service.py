"""Inventory: item definitions, per-user stacks, and item use."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.clock import as_utc
from ladder.db.models import Item, UserItem
from ladder.errors import ItemExpiredError, ItemNotFoundError
from ladder.lottery.prizes import PrizeConfig

logger = logging.getLogger(__name__)


async def get_item_by_name(db: AsyncSession, name: str) -> Item | None:
    """Fetch an item definition by name."""
    result = await db.execute(select(Item).where(Item.name == name))
    return result.scalar_one_or_none()


async def list_items(db: AsyncSession) -> list[Item]:
    """All item definitions created so far."""
    result = await db.execute(select(Item).order_by(Item.rarity, Item.name))
    return list(result.scalars().all())


async def get_or_create_item(db: AsyncSession, prize: PrizeConfig) -> Item:
    """Item definition for an ITEM prize, created on first grant."""
    item = await get_item_by_name(db, prize.name)
    if item is not None:
        return item
    item_type = prize.item_type or "EXP_BOOST"
    item = Item(
        name=prize.name,
        description=prize.description,
        type=item_type,
        effect={"type": item_type, "value": prize.value, "duration": prize.duration_days},
        icon=prize.icon or prize.id,
        rarity="COMMON",
    )
    db.add(item)
    await db.flush()
    logger.info("Created item definition %s (%s)", item.name, item_type)
    return item


async def grant_item(
    db: AsyncSession,
    user_id: int,
    prize: PrizeConfig,
    now: datetime | None = None,
) -> UserItem:
    """Add one unit of an ITEM prize to the user's inventory. Caller commits.

    An unused, unexpired stack of the same item is incremented; otherwise a
    new stack expiring ``prize.duration_days`` from ``now`` is created.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    item = await get_or_create_item(db, prize)

    result = await db.execute(
        select(UserItem)
        .where(
            UserItem.user_id == user_id,
            UserItem.item_id == item.id,
            UserItem.is_used.is_(False),
        )
        .order_by(UserItem.created_at.desc())
    )
    for stack in result.unique().scalars().all():
        if stack.expires_at is None or as_utc(stack.expires_at) > as_utc(now):
            stack.quantity += 1
            await db.flush()
            return stack

    stack = UserItem(
        user_id=user_id,
        item_id=item.id,
        quantity=1,
        expires_at=now + timedelta(days=prize.duration_days),
        created_at=now,
    )
    db.add(stack)
    await db.flush()
    return stack


async def get_user_items(db: AsyncSession, user_id: int, include_used: bool = False) -> list[UserItem]:
    """Inventory stacks, newest first."""
    stmt = select(UserItem).where(UserItem.user_id == user_id)
    if not include_used:
        stmt = stmt.where(UserItem.is_used.is_(False))
    result = await db.execute(stmt.order_by(UserItem.created_at.desc(), UserItem.id.desc()))
    return list(result.unique().scalars().all())


async def use_item(
    db: AsyncSession,
    user_id: int,
    user_item_id: int,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Consume one unit of a stack and report the effect window it opens.

    Boost effects are reported to the caller; they are not applied to the
    check-in formulas.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    result = await db.execute(
        select(UserItem).where(
            UserItem.id == user_item_id,
            UserItem.user_id == user_id,
            UserItem.is_used.is_(False),
        )
    )
    stack = result.unique().scalar_one_or_none()
    if stack is None or stack.quantity <= 0:
        raise ItemNotFoundError()
    if stack.expires_at is not None and as_utc(now) > as_utc(stack.expires_at):
        raise ItemExpiredError()

    effect = stack.item.effect or {}
    duration = int(effect.get("duration") or 1)

    if stack.quantity == 1:
        stack.is_used = True
        stack.used_at = now
    else:
        stack.quantity -= 1
    await db.commit()

    logger.info("User %d used item %s", user_id, stack.item.name)
    return {
        "type": effect.get("type") or stack.item.type,
        "value": int(effect.get("value") or 0),
        "duration": duration,
        "effective_at": now,
        "expires_at": now + timedelta(days=duration),
    }
