"""Integration tests for the daily check-in orchestrator."""

from __future__ import annotations

import logging
from datetime import date

import pytest
from sqlalchemy import select

from ladder.checkin.service import (
    calculate_consecutive_days,
    get_check_in_history,
    get_today_status,
    perform_check_in,
)
from ladder.db.models import CheckIn, ExperienceLedger, PointLedger, UserBadge
from ladder.errors import AlreadyCheckedInError, ProfileNotFoundError
from ladder.users.service import get_profile


class TestFirstCheckIn:
    """A brand-new user's first check-in."""

    @pytest.mark.asyncio
    async def test_rewards_and_snapshot(self, db_session, user, clock):
        result = await perform_check_in(db_session, None, user.id, now=clock())

        assert result.check_in_date == date(2026, 3, 10)
        assert result.consecutive_days == 1
        assert result.points_earned == 6
        assert result.exp_earned == 12
        assert result.level == 1
        assert result.level_up is False
        assert result.total_points == 6

        profile = await get_profile(db_session, user.id)
        assert profile.total_points == 6
        assert profile.current_exp == 12
        assert profile.consecutive_check_in_days == 1
        assert profile.total_check_in_days == 1

    @pytest.mark.asyncio
    async def test_places_user_on_lowest_rank(self, db_session, user, clock):
        result = await perform_check_in(db_session, None, user.id, now=clock())
        assert result.rank_name == "倔强黑铁"
        assert result.stars == 1
        assert result.rank_up is False and result.star_up is False

        record = (await db_session.execute(select(CheckIn))).scalar_one()
        assert record.rank_level == 1

    @pytest.mark.asyncio
    async def test_writes_ledger_entries(self, db_session, user, clock):
        await perform_check_in(db_session, None, user.id, now=clock())

        points = (await db_session.execute(select(PointLedger))).scalars().all()
        exp = (await db_session.execute(select(ExperienceLedger))).scalars().all()
        assert [(p.amount, p.type) for p in points] == [(6, "CHECK_IN")]
        assert [(e.amount, e.type) for e in exp] == [(12, "CHECK_IN")]

    @pytest.mark.asyncio
    async def test_awards_first_check_in_badge_inline(self, db_session, user, clock):
        await perform_check_in(db_session, None, user.id, now=clock())

        held = (await db_session.execute(
            select(UserBadge).where(UserBadge.user_id == user.id)
        )).unique().scalars().all()
        assert [ub.badge.name for ub in held] == ["初来乍到"]

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session, clock):
        with pytest.raises(ProfileNotFoundError):
            await perform_check_in(db_session, None, 9999, now=clock())


class TestOncePerDay:
    """At most one check-in per UTC day."""

    @pytest.mark.asyncio
    async def test_second_check_in_same_day_is_rejected(self, db_session, user, clock):
        await perform_check_in(db_session, None, user.id, now=clock())
        clock.advance(hours=11)

        with pytest.raises(AlreadyCheckedInError):
            await perform_check_in(db_session, None, user.id, now=clock())

        profile = await get_profile(db_session, user.id)
        assert profile.total_points == 6
        assert profile.total_check_in_days == 1

    @pytest.mark.asyncio
    async def test_next_utc_day_is_allowed(self, db_session, user, clock):
        await perform_check_in(db_session, None, user.id, now=clock())
        clock.advance(hours=12)  # 00:00 UTC on the 11th
        result = await perform_check_in(db_session, None, user.id, now=clock())
        assert result.check_in_date == date(2026, 3, 11)


class TestStreak:
    """Consecutive-day counting."""

    @pytest.mark.asyncio
    async def test_three_days_in_a_row(self, db_session, user, clock):
        results = []
        for _ in range(3):
            results.append(await perform_check_in(db_session, None, user.id, now=clock()))
            clock.advance(days=1)

        assert [r.consecutive_days for r in results] == [1, 2, 3]
        assert [r.points_earned for r in results] == [6, 7, 8]
        assert [r.exp_earned for r in results] == [12, 14, 16]

    @pytest.mark.asyncio
    async def test_gap_restarts_streak(self, db_session, user, clock):
        await perform_check_in(db_session, None, user.id, now=clock())
        clock.advance(days=1)
        await perform_check_in(db_session, None, user.id, now=clock())
        clock.advance(days=2)
        result = await perform_check_in(db_session, None, user.id, now=clock())

        assert result.consecutive_days == 1
        profile = await get_profile(db_session, user.id)
        assert profile.consecutive_check_in_days == 1
        assert profile.total_check_in_days == 3

    @pytest.mark.asyncio
    async def test_login_streak_feeds_experience(self, db_session, user, clock):
        profile = await get_profile(db_session, user.id)
        profile.consecutive_login_days = 4
        await db_session.commit()

        result = await perform_check_in(db_session, None, user.id, now=clock())
        assert result.exp_earned == 10 + 4 + 2

    @pytest.mark.asyncio
    async def test_calculate_consecutive_days_without_history(self, db_session, user):
        assert await calculate_consecutive_days(db_session, user.id, date(2026, 3, 10)) == 1


class TestLevelUp:
    """Crossing an experience threshold during a check-in."""

    @pytest.mark.asyncio
    async def test_level_up_is_reported_and_ledgered(self, db_session, user, clock):
        profile = await get_profile(db_session, user.id)
        profile.current_exp = 95
        await db_session.commit()

        result = await perform_check_in(db_session, None, user.id, now=clock())
        assert result.level_up is True
        assert result.level == 2

        profile = await get_profile(db_session, user.id)
        assert profile.current_level == 2
        assert profile.next_level_exp == 282

        bonus = (await db_session.execute(
            select(ExperienceLedger).where(ExperienceLedger.type == "LEVEL_BONUS")
        )).scalar_one()
        assert bonus.amount == 0

    @pytest.mark.asyncio
    async def test_log_line_keeps_user_level(self, db_session, user, clock, caplog):
        caplog.set_level(logging.INFO)
        profile = await get_profile(db_session, user.id)
        profile.current_exp = 95
        await db_session.commit()

        await perform_check_in(db_session, None, user.id, now=clock())

        events = [
            r.msg for r in caplog.records
            if isinstance(r.msg, dict) and r.msg.get("event") == "check_in_recorded"
        ]
        assert len(events) == 1
        assert events[0]["user_level"] == 2
        assert events[0]["level"] == "info"


class TestTodayStatus:
    """Read-side view of today's check-in."""

    @pytest.mark.asyncio
    async def test_before_check_in(self, db_session, user, clock):
        status = await get_today_status(db_session, user.id, now=clock())
        assert status["checked_in"] is False
        assert status["consecutive_days"] == 0
        assert status["points"] == 6

    @pytest.mark.asyncio
    async def test_after_check_in(self, db_session, user, clock):
        await perform_check_in(db_session, None, user.id, now=clock())
        status = await get_today_status(db_session, user.id, now=clock())
        assert status["checked_in"] is True
        assert status["consecutive_days"] == 1
        assert status["points"] == 6
        assert status["exp"] == 12

    @pytest.mark.asyncio
    async def test_history_newest_first(self, db_session, user, clock):
        for _ in range(3):
            await perform_check_in(db_session, None, user.id, now=clock())
            clock.advance(days=1)

        records, total = await get_check_in_history(db_session, user.id, page=1, limit=2)
        assert total == 3
        assert [r.check_in_date for r in records] == [date(2026, 3, 12), date(2026, 3, 11)]
