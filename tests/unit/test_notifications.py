"""Notification publishing is best-effort."""

from __future__ import annotations

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from ladder.notifications import CHANNEL_CHECK_IN, publish_event


class _RecordingRedis:
    def __init__(self) -> None:
        self.published: list[tuple[str, str]] = []

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        return 1


class _BrokenRedis:
    async def publish(self, channel: str, message: str) -> int:
        raise RedisConnectionError("connection refused")


@pytest.mark.asyncio
async def test_publishes_json_payload():
    redis = _RecordingRedis()
    assert await publish_event(redis, CHANNEL_CHECK_IN, {"user_id": 1, "rank": "黄金"}) is True

    channel, message = redis.published[0]
    assert channel == "pubsub:check_in"
    assert json.loads(message) == {"user_id": 1, "rank": "黄金"}
    assert "黄金" in message


@pytest.mark.asyncio
async def test_no_redis_is_a_no_op():
    assert await publish_event(None, CHANNEL_CHECK_IN, {"user_id": 1}) is False


@pytest.mark.asyncio
async def test_failures_are_swallowed():
    assert await publish_event(_BrokenRedis(), CHANNEL_CHECK_IN, {"user_id": 1}) is False
