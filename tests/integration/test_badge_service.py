"""Integration tests for badge evaluation, first-time gating and statistics."""

from __future__ import annotations

import pytest
from sqlalchemy import select

from ladder.badges.catalog import BadgeCondition, BadgeType
from ladder.badges.dispatcher import BadgeDispatcher, schedule_badge_evaluation
from ladder.badges.service import (
    check_first_time,
    evaluate_badges,
    get_user_badge_statistics,
    get_user_badges,
    has_badge,
    list_badges,
)
from ladder.database import get_session_factory
from ladder.db.models import Badge, UserRank
from ladder.ranks.service import get_or_seed_rank
from ladder.users.service import get_profile

pytestmark = pytest.mark.filterwarnings("error::sqlalchemy.exc.SADeprecationWarning")


async def _set_profile(db, user_id: int, **values) -> None:
    profile = await get_profile(db, user_id)
    for key, value in values.items():
        setattr(profile, key, value)
    await db.commit()


async def _badge_id(db, name: str) -> int:
    return (await db.execute(select(Badge.id).where(Badge.name == name))).scalar_one()


class TestEvaluate:
    """Awarding against a progression snapshot."""

    @pytest.mark.asyncio
    async def test_thresholds_across_types(self, db_session, user, clock):
        await _set_profile(db_session, user.id, consecutive_check_in_days=7, total_check_in_days=10)

        awarded = await evaluate_badges(db_session, None, user.id, now=clock())
        assert [b.name for b in awarded] == ["初来乍到", "坚持不懈", "累计打卡 10 次", "首次晋升"]
        assert all(b.achieved_at == clock() for b in awarded)

    @pytest.mark.asyncio
    async def test_restricted_to_requested_types(self, db_session, user, clock):
        await _set_profile(db_session, user.id, consecutive_check_in_days=7, total_check_in_days=10)

        awarded = await evaluate_badges(db_session, None, user.id, [BadgeType.LOGIN], now=clock())
        assert awarded == []

    @pytest.mark.asyncio
    async def test_second_pass_awards_nothing(self, db_session, user, clock):
        await _set_profile(db_session, user.id, total_check_in_days=1)

        first = await evaluate_badges(db_session, None, user.id, [BadgeType.CHECK_IN], now=clock())
        second = await evaluate_badges(db_session, None, user.id, [BadgeType.CHECK_IN], now=clock())
        assert [b.name for b in first] == ["初来乍到"]
        assert second == []

    @pytest.mark.asyncio
    async def test_rank_badge_matches_exact_tier(self, db_session, user, clock):
        rank = await get_or_seed_rank(db_session, 1, 3)
        db_session.add(UserRank(user_id=user.id, rank_id=rank.id, season=1, stars=1, check_in_count=0))
        await _set_profile(db_session, user.id, current_rank_id=rank.id)

        awarded = await evaluate_badges(db_session, None, user.id, [BadgeType.RANK], now=clock())
        assert [b.name for b in awarded] == ["黄金荣耀"]

    @pytest.mark.asyncio
    async def test_login_badge(self, db_session, user, clock):
        await _set_profile(db_session, user.id, total_login_days=1, consecutive_login_days=1)

        awarded = await evaluate_badges(db_session, None, user.id, [BadgeType.LOGIN], now=clock())
        assert [b.name for b in awarded] == ["初次见面"]
        assert awarded[0].type == "LOGIN"
        assert awarded[0].rarity == "COMMON"


class TestFirstTime:
    """First-time badges need zero holdings of their type."""

    @pytest.mark.asyncio
    async def test_blocked_once_type_is_held(self, db_session, user, clock):
        await _set_profile(db_session, user.id, consecutive_check_in_days=7, total_check_in_days=0)
        first = await evaluate_badges(db_session, None, user.id, [BadgeType.CHECK_IN], now=clock())
        assert [b.name for b in first] == ["坚持不懈"]

        await _set_profile(db_session, user.id, total_check_in_days=1)
        second = await evaluate_badges(db_session, None, user.id, [BadgeType.CHECK_IN], now=clock())
        assert second == []

    @pytest.mark.asyncio
    async def test_one_first_time_badge_per_type_per_pass(self, db_session, user, clock):
        rank = await get_or_seed_rank(db_session, 1, 3)
        db_session.add(UserRank(user_id=user.id, rank_id=rank.id, season=1, stars=1, check_in_count=0))
        await _set_profile(db_session, user.id, current_rank_id=rank.id, current_level=25)

        awarded = await evaluate_badges(db_session, None, user.id, [BadgeType.MILESTONE], now=clock())
        assert [b.name for b in awarded] == ["首次晋升"]

    @pytest.mark.asyncio
    async def test_check_first_time(self, db_session, user, clock):
        gated = BadgeCondition(first_time=True)
        assert await check_first_time(db_session, user.id, "CHECK_IN", gated)

        await _set_profile(db_session, user.id, consecutive_check_in_days=7)
        await evaluate_badges(db_session, None, user.id, [BadgeType.CHECK_IN], now=clock())

        assert not await check_first_time(db_session, user.id, "CHECK_IN", gated)
        assert await check_first_time(db_session, user.id, "LOGIN", gated)
        assert await check_first_time(db_session, user.id, "CHECK_IN", BadgeCondition(level=1))


class TestReads:
    """Catalog listing, holdings and statistics."""

    @pytest.mark.asyncio
    async def test_holdings_and_statistics(self, db_session, user, clock):
        await _set_profile(db_session, user.id, total_check_in_days=1, total_login_days=1)
        await evaluate_badges(db_session, None, user.id, [BadgeType.CHECK_IN, BadgeType.LOGIN], now=clock())

        held = await get_user_badges(db_session, user.id)
        assert {ub.badge.name for ub in held} == {"初来乍到", "初次见面"}
        assert await has_badge(db_session, user.id, await _badge_id(db_session, "初来乍到"))

        stats = await get_user_badge_statistics(db_session, user.id)
        assert stats["total"] == 36
        assert stats["achieved"] == 2
        assert stats["completion_percent"] == 5.56
        assert stats["by_type"]["CHECK_IN"] == {"total": 9, "achieved": 1}
        assert stats["by_rarity"]["COMMON"]["achieved"] == 2

    @pytest.mark.asyncio
    async def test_list_filters_and_marks_achieved(self, db_session, user, clock):
        await _set_profile(db_session, user.id, total_check_in_days=1)
        await evaluate_badges(db_session, None, user.id, [BadgeType.CHECK_IN], now=clock())

        badges = await list_badges(db_session, badge_type="CHECK_IN", user_id=user.id)
        assert len(badges) == 9
        assert badges[0]["name"] == "初来乍到"
        assert badges[0]["achieved"] is True
        assert badges[1]["achieved"] is False

        legendary = await list_badges(db_session, rarity="LEGENDARY")
        assert all(b["rarity"] == "LEGENDARY" for b in legendary)


class TestDispatcher:
    """Background evaluation never blocks or fails the caller."""

    @pytest.mark.asyncio
    async def test_dispatch_then_drain(self, db_session, user, clock):
        await _set_profile(db_session, user.id, total_check_in_days=1)
        dispatcher = BadgeDispatcher(get_session_factory())

        await schedule_badge_evaluation(db_session, None, dispatcher, user.id, [BadgeType.CHECK_IN], now=clock())
        assert dispatcher.pending == 1
        await dispatcher.drain()

        assert dispatcher.pending == 0
        assert await has_badge(db_session, user.id, await _badge_id(db_session, "初来乍到"))

    @pytest.mark.asyncio
    async def test_failures_are_contained(self, database, clock):
        dispatcher = BadgeDispatcher(get_session_factory())
        dispatcher.dispatch(4242, [BadgeType.CHECK_IN], now=clock())
        await dispatcher.drain()
        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_inline_failure_is_contained(self, db_session, clock):
        await schedule_badge_evaluation(db_session, None, None, 4242, [BadgeType.CHECK_IN], now=clock())
