"""Shared test fixtures.

Every test gets its own SQLite database file with the schema created from
the ORM metadata, the badge catalog and season-1 rank tiers seeded, and a
frozen clock.
"""

from __future__ import annotations

import random
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.auth.jwt import create_access_token
from ladder.badges.service import seed_badges
from ladder.database import close_db, get_engine, get_session_factory, init_db
from ladder.db.base import Base
from ladder.db.models import User
from ladder.dependencies import get_badge_dispatcher, get_clock, get_redis_dep, get_rng
from ladder.main import create_app
from ladder.progression.season import current_season
from ladder.ranks.service import seed_ranks
from ladder.users.service import create_user

# Mid-season-1 Tuesday, well away from month and season boundaries.
START = datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[None, None]:
    """Fresh SQLite schema with catalogs seeded."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'ladder.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with get_session_factory()() as session:
        await seed_badges(session)
        await seed_ranks(session, current_season(START))
        await session.commit()
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session."""
    async with get_session_factory()() as session:
        yield session


@pytest_asyncio.fixture
async def user(db_session: AsyncSession) -> User:
    """A fresh user with a level-1 profile."""
    return await create_user(db_session, "alice", nickname="Alice")


@pytest_asyncio.fixture
async def app(database, clock: FrozenClock) -> FastAPI:
    """App with the clock pinned, no Redis, a seeded RNG and inline badge evaluation."""
    application = create_app()
    application.dependency_overrides[get_clock] = lambda: clock
    application.dependency_overrides[get_redis_dep] = lambda: None
    application.dependency_overrides[get_rng] = lambda: random.Random(7)
    application.dependency_overrides[get_badge_dispatcher] = lambda: None
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated async HTTP client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, user: User) -> AsyncClient:
    """Client carrying a bearer token for ``user``."""
    token = create_access_token(user.id, user.username)
    client.headers["Authorization"] = f"Bearer {token}"
    return client
