"""Pydantic response models for achievement endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class AchievementRewardResponse(BaseModel):
    coins: int = 0
    gems: int = 0
    xp: int = 0
    chest_type: str | None = None


class AchievementDefResponse(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    color: str
    trigger_type: str
    trigger_config: dict[str, Any] = {}
    reward: AchievementRewardResponse


class AllAchievementsResponse(BaseModel):
    achievements: list[AchievementDefResponse]


class UnlockedAchievementResponse(BaseModel):
    achievement_id: str
    name: str
    unlocked_at: datetime


class UserAchievementsResponse(BaseModel):
    user_id: int
    unlocked: list[UnlockedAchievementResponse]
    total_available: int
    total_unlocked: int
