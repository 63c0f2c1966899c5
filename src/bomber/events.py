"""Best-effort pub/sub notifications for the game client's live feed."""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

CHANNEL_LEVEL_UP = "bomber:level_up"
CHANNEL_ACHIEVEMENT = "bomber:achievement"
CHANNEL_CHEST_EARNED = "bomber:chest_earned"


async def publish(redis: object, channel: str, payload: dict[str, Any]) -> bool:
    """Publish one event. Never raises; returns False if Redis is absent or failed."""
    if redis is None:
        return False
    try:
        await redis.publish(channel, json.dumps(payload, default=str))  # type: ignore[attr-defined]
    except Exception:
        logger.warning("Failed to publish %s event", channel, exc_info=True)
        return False
    return True


async def publish_submission(redis: object, result: Any) -> int:
    """Publish the level-up, achievement and chest events of a committed drive or chest open."""
    if redis is None or result.replayed:
        return 0
    sent = 0
    if result.level_up:
        sent += await publish(redis, CHANNEL_LEVEL_UP, {"user_id": result.user_id, **result.level_up})
    for achievement_id in result.new_achievements:
        sent += await publish(redis, CHANNEL_ACHIEVEMENT, {"user_id": result.user_id, "achievement_id": achievement_id})
    for chest_id in result.chests_earned:
        sent += await publish(redis, CHANNEL_CHEST_EARNED, {"user_id": result.user_id, "chest_id": chest_id})
    return sent
