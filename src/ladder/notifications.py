"""Best-effort Redis pub/sub notifications for dashboards and overlays."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

CHANNEL_CHECK_IN = "pubsub:check_in"
CHANNEL_LEVEL_UP = "pubsub:level_up"
CHANNEL_RANK_UP = "pubsub:rank_up"
CHANNEL_BADGE_EARNED = "pubsub:badge_earned"


async def publish_event(redis: object, channel: str, payload: dict[str, Any]) -> bool:
    """Publish a JSON payload. Never raises; returns False when nothing was sent."""
    if redis is None:
        return False
    try:
        await redis.publish(channel, json.dumps(payload, default=str, ensure_ascii=False))  # type: ignore[attr-defined]
    except Exception:
        logger.warning("Failed to publish %s notification", channel, exc_info=True)
        return False
    return True
