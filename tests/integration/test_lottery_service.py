"""Integration tests for lottery draws and their prize effects."""

from __future__ import annotations

import random

import pytest
from sqlalchemy import func, select

from ladder.db.models import LotteryDraw, PointLedger, UserItem
from ladder.errors import InsufficientPointsError
from ladder.lottery.service import (
    draw_lottery,
    get_lottery_history,
    get_lottery_statistics,
    get_prize_configs,
)
from ladder.users.service import get_profile

# Rolls landing on specific entries of the default prize table.
ROLL_SMALL_RED_PACKET = 0
ROLL_EXP_BOOST_1 = 600
ROLL_LIMITED_FRAME = 1040


class FixedRandom(random.Random):
    """RNG whose uniform() always returns the configured roll."""

    def __init__(self, roll: float) -> None:
        super().__init__(0)
        self.roll = roll

    def uniform(self, a: float, b: float) -> float:
        return self.roll


async def _fund(db, user_id: int, points: int) -> None:
    profile = await get_profile(db, user_id)
    profile.total_points = points
    await db.commit()


class TestBalance:
    """The draw cost is checked and deducted atomically."""

    @pytest.mark.asyncio
    async def test_insufficient_points(self, db_session, user, clock):
        await _fund(db_session, user.id, 49)

        with pytest.raises(InsufficientPointsError) as exc_info:
            await draw_lottery(db_session, user.id, FixedRandom(0), now=clock())
        assert exc_info.value.required == 50
        assert exc_info.value.balance == 49

        profile = await get_profile(db_session, user.id)
        assert profile.total_points == 49
        draws = (await db_session.execute(select(func.count()).select_from(LotteryDraw))).scalar_one()
        assert draws == 0

    @pytest.mark.asyncio
    async def test_exact_balance_is_enough(self, db_session, user, clock):
        await _fund(db_session, user.id, 50)
        await draw_lottery(db_session, user.id, FixedRandom(ROLL_LIMITED_FRAME), now=clock())

        profile = await get_profile(db_session, user.id)
        assert profile.total_points == 0


class TestPrizeEffects:
    """What each prize type does to the user's state."""

    @pytest.mark.asyncio
    async def test_red_packet_credits_points(self, db_session, user, clock):
        await _fund(db_session, user.id, 100)

        draw = await draw_lottery(db_session, user.id, FixedRandom(ROLL_SMALL_RED_PACKET), now=clock())
        assert draw.prize_type == "RED_PACKET"
        assert draw.prize_name == "小红包"
        assert draw.prize_value == 10
        assert draw.cost == 50

        profile = await get_profile(db_session, user.id)
        assert profile.total_points == 60
        ledger = (await db_session.execute(
            select(PointLedger.amount, PointLedger.type).order_by(PointLedger.id)
        )).all()
        assert [tuple(row) for row in ledger] == [(-50, "CONSUME"), (10, "LOTTERY")]

    @pytest.mark.asyncio
    async def test_item_lands_in_inventory(self, db_session, user, clock):
        await _fund(db_session, user.id, 100)

        draw = await draw_lottery(db_session, user.id, FixedRandom(ROLL_EXP_BOOST_1), now=clock())
        assert draw.prize_type == "ITEM"
        assert draw.prize_name == "经验加成卡（1天）"

        stack = (await db_session.execute(select(UserItem))).unique().scalar_one()
        assert stack.quantity == 1
        assert stack.item.type == "EXP_BOOST"
        assert draw.prize_ref == str(stack.item_id)

    @pytest.mark.asyncio
    async def test_same_item_stacks(self, db_session, user, clock):
        await _fund(db_session, user.id, 100)
        await draw_lottery(db_session, user.id, FixedRandom(ROLL_EXP_BOOST_1), now=clock())
        await draw_lottery(db_session, user.id, FixedRandom(ROLL_EXP_BOOST_1), now=clock())

        stacks = (await db_session.execute(select(UserItem))).unique().scalars().all()
        assert [s.quantity for s in stacks] == [2]

    @pytest.mark.asyncio
    async def test_expired_stack_starts_a_new_one(self, db_session, user, clock):
        await _fund(db_session, user.id, 100)
        await draw_lottery(db_session, user.id, FixedRandom(ROLL_EXP_BOOST_1), now=clock())
        clock.advance(days=2)
        await draw_lottery(db_session, user.id, FixedRandom(ROLL_EXP_BOOST_1), now=clock())

        stacks = (await db_session.execute(select(UserItem))).unique().scalars().all()
        assert sorted(s.quantity for s in stacks) == [1, 1]

    @pytest.mark.asyncio
    async def test_limited_reward_is_recorded_only(self, db_session, user, clock):
        await _fund(db_session, user.id, 100)

        draw = await draw_lottery(db_session, user.id, FixedRandom(ROLL_LIMITED_FRAME), now=clock())
        assert draw.prize_type == "LIMITED_REWARD"
        assert draw.prize_ref == "limited-reward-1"
        assert draw.prize_value is None

        profile = await get_profile(db_session, user.id)
        assert profile.total_points == 50
        items = (await db_session.execute(select(func.count()).select_from(UserItem))).scalar_one()
        assert items == 0


class TestReads:
    """Catalog, history and statistics."""

    def test_prize_configs(self):
        configs = get_prize_configs()
        assert len(configs) == 13
        assert configs[0]["id"] == "red-packet-1"
        assert configs[0]["probability"] == 28.17

    @pytest.mark.asyncio
    async def test_history_and_statistics(self, db_session, user, clock):
        await _fund(db_session, user.id, 150)
        for roll in (ROLL_SMALL_RED_PACKET, ROLL_EXP_BOOST_1, ROLL_LIMITED_FRAME):
            await draw_lottery(db_session, user.id, FixedRandom(roll), now=clock())
            clock.advance(minutes=1)

        draws, total = await get_lottery_history(db_session, user.id)
        assert total == 3
        assert [d.prize_type for d in draws] == ["LIMITED_REWARD", "ITEM", "RED_PACKET"]

        only_items, item_total = await get_lottery_history(db_session, user.id, prize_type="ITEM")
        assert item_total == 1
        assert only_items[0].prize_type == "ITEM"

        stats = await get_lottery_statistics(db_session, user.id)
        assert stats == {
            "total_draws": 3,
            "total_cost": 150,
            "red_packet_points": 10,
            "by_type": {"RED_PACKET": 1, "ITEM": 1, "LIMITED_REWARD": 1},
        }

    @pytest.mark.asyncio
    async def test_seeded_draws_are_reproducible(self, db_session, user, clock):
        await _fund(db_session, user.id, 1000)
        first = [(await draw_lottery(db_session, user.id, random.Random(11), now=clock())).prize_name for _ in range(3)]
        second = [(await draw_lottery(db_session, user.id, random.Random(11), now=clock())).prize_name for _ in range(3)]
        assert first == second
