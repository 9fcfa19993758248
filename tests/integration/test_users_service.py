"""Integration tests for users and daily login tracking."""

from __future__ import annotations

import pytest

from ladder.errors import ProfileNotFoundError
from ladder.users.service import get_profile, get_user_by_username, record_login


class TestCreateUser:
    """A new user gets a level-1 profile."""

    @pytest.mark.asyncio
    async def test_profile_defaults(self, db_session, user):
        profile = await get_profile(db_session, user.id)
        assert profile.current_level == 1
        assert profile.current_exp == 0
        assert profile.next_level_exp == 100
        assert profile.total_points == 0
        assert profile.current_rank_id is None

    @pytest.mark.asyncio
    async def test_lookup_by_username(self, db_session, user):
        found = await get_user_by_username(db_session, "alice")
        assert found is not None
        assert found.id == user.id
        assert await get_user_by_username(db_session, "nobody") is None

    @pytest.mark.asyncio
    async def test_missing_profile(self, db_session):
        with pytest.raises(ProfileNotFoundError):
            await get_profile(db_session, 12345)


class TestRecordLogin:
    """Login streak bookkeeping."""

    @pytest.mark.asyncio
    async def test_first_login_of_day(self, db_session, user, clock):
        assert await record_login(db_session, user.id, now=clock()) is True
        clock.advance(hours=3)
        assert await record_login(db_session, user.id, now=clock()) is False

        profile = await get_profile(db_session, user.id)
        assert profile.consecutive_login_days == 1
        assert profile.total_login_days == 1

    @pytest.mark.asyncio
    async def test_streak_and_gap(self, db_session, user, clock):
        await record_login(db_session, user.id, now=clock())
        clock.advance(days=1)
        await record_login(db_session, user.id, now=clock())
        profile = await get_profile(db_session, user.id)
        assert profile.consecutive_login_days == 2

        clock.advance(days=3)
        await record_login(db_session, user.id, now=clock())
        profile = await get_profile(db_session, user.id)
        assert profile.consecutive_login_days == 1
        assert profile.total_login_days == 3
