"""Health endpoint tests."""

import pytest
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from ladder import redis_client


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    """GET /health returns 200 with healthy status."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_readiness_without_redis(client: AsyncClient) -> None:
    """GET /ready passes with the database up, catalogs seeded and Redis disabled."""
    response = await client.get("/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["checks"]["database"] == "ok"
    assert data["checks"]["catalogs"] == "ok"
    assert data["checks"]["redis"] == "disabled"
    assert data["status"] == "ready"


class _DownRedis:
    async def ping(self) -> bool:
        raise RedisConnectionError("connection refused")


@pytest.mark.asyncio
async def test_readiness_degraded_when_redis_unreachable(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A configured but unreachable Redis degrades readiness."""
    monkeypatch.setattr(redis_client, "get_optional_redis", lambda: _DownRedis())
    data = (await client.get("/ready")).json()
    assert data["checks"]["redis"] == "error: connection refused"
    assert data["status"] == "degraded"


@pytest.mark.asyncio
async def test_readiness_flags_unseeded_season(client: AsyncClient, clock) -> None:
    """A season without rank tiers is reported as missing."""
    clock.advance(days=200)
    response = await client.get("/ready")
    assert response.json()["checks"]["catalogs"] == "missing (season 2)"


@pytest.mark.asyncio
async def test_version(client: AsyncClient) -> None:
    """GET /version returns version, environment and season."""
    response = await client.get("/version")
    assert response.status_code == 200
    data = response.json()
    assert data["version"] == "0.1.0"
    assert "environment" in data
    assert int(data["season"]) >= 1
