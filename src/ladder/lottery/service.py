"""Lottery draws: cost deduction, prize resolution and prize effects in one transaction."""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.db.models import LotteryDraw
from ladder.errors import InsufficientPointsError
from ladder.items.service import grant_item
from ladder.lottery.prizes import DEFAULT_PRIZES, LOTTERY_COST, PrizeTable, PrizeType
from ladder.points.service import POINTS_CONSUME, POINTS_LOTTERY, record_points
from ladder.users.service import get_profile

logger = structlog.get_logger()


async def draw_lottery(
    db: AsyncSession,
    user_id: int,
    rng: random.Random | None = None,
    now: datetime | None = None,
    prizes: PrizeTable = DEFAULT_PRIZES,
    cost: int = LOTTERY_COST,
) -> LotteryDraw:
    """Spend ``cost`` points on one weighted draw and apply the prize.

    RED_PACKET credits points, ITEM lands in the inventory, LIMITED_REWARD
    is recorded only. All-or-nothing: any failure rolls back the deduction.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    profile = await get_profile(db, user_id, for_update=True)
    if profile.total_points < cost:
        balance = profile.total_points
        await db.rollback()
        raise InsufficientPointsError(required=cost, balance=balance)

    try:
        profile.total_points -= cost
        record_points(db, user_id, -cost, POINTS_CONSUME, f"抽奖消耗 {cost} 积分", now)

        prize = prizes.draw(rng)
        prize_ref: str | None = None
        prize_value: int | None = prize.value

        if prize.type is PrizeType.RED_PACKET:
            profile.total_points += prize.value
            record_points(db, user_id, prize.value, POINTS_LOTTERY, f"抽奖获得红包：{prize.name}", now)
        elif prize.type is PrizeType.ITEM:
            stack = await grant_item(db, user_id, prize, now=now)
            prize_ref = str(stack.item_id)
        else:
            # Limited rewards have no redeemable effect yet; the draw row is the record.
            prize_ref = prize.id
            prize_value = None

        draw = LotteryDraw(
            user_id=user_id,
            prize_type=prize.type.value,
            prize_ref=prize_ref,
            prize_name=prize.name,
            prize_value=prize_value,
            cost=cost,
            created_at=now,
        )
        db.add(draw)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "lottery_drawn",
        user_id=user_id,
        prize_id=prize.id,
        prize_type=prize.type.value,
        balance=profile.total_points,
    )
    return draw


def get_prize_configs(prizes: PrizeTable = DEFAULT_PRIZES) -> list[dict[str, Any]]:
    """Prize catalog with selection probability in percent."""
    return [
        {
            "id": p.id,
            "name": p.name,
            "type": p.type.value,
            "value": p.value,
            "weight": p.weight,
            "icon": p.icon,
            "description": p.description,
            "probability": prizes.probability(p),
        }
        for p in prizes
    ]


async def get_lottery_history(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    limit: int = 20,
    prize_type: str | None = None,
) -> tuple[list[LotteryDraw], int]:
    """Paginated draws, newest first, with the total count."""
    filters = [LotteryDraw.user_id == user_id]
    if prize_type is not None:
        filters.append(LotteryDraw.prize_type == prize_type)

    total = (await db.execute(
        select(func.count()).select_from(LotteryDraw).where(*filters)
    )).scalar_one()
    result = await db.execute(
        select(LotteryDraw)
        .where(*filters)
        .order_by(LotteryDraw.created_at.desc(), LotteryDraw.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def get_lottery_statistics(db: AsyncSession, user_id: int) -> dict[str, Any]:
    """Draw count, points spent, red-packet points won, and draws per prize type."""
    result = await db.execute(
        select(
            LotteryDraw.prize_type,
            func.count(),
            func.coalesce(func.sum(LotteryDraw.cost), 0),
            func.coalesce(func.sum(LotteryDraw.prize_value), 0),
        )
        .where(LotteryDraw.user_id == user_id)
        .group_by(LotteryDraw.prize_type)
    )

    by_type: dict[str, int] = {t.value: 0 for t in PrizeType}
    total_draws = total_cost = points_won = 0
    for prize_type, count, cost, value in result.all():
        by_type[prize_type] = count
        total_draws += count
        total_cost += int(cost)
        if prize_type == PrizeType.RED_PACKET.value:
            points_won += int(value)

    return {
        "total_draws": total_draws,
        "total_cost": total_cost,
        "red_packet_points": points_won,
        "by_type": by_type,
    }
