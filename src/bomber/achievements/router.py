"""Achievement catalog and per-player unlock endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.achievements.evaluator import get_unlocked
from bomber.achievements.schemas import (
    AchievementDefResponse,
    AchievementRewardResponse,
    AllAchievementsResponse,
    UnlockedAchievementResponse,
    UserAchievementsResponse,
)
from bomber.database import get_session
from bomber.rewards.catalog import ACHIEVEMENTS, get_achievement
from bomber.users.service import require_user

router = APIRouter(prefix="/api/bomber", tags=["Achievements"])


@router.get("/achievements", response_model=AllAchievementsResponse)
async def list_achievements():
    """Get all achievement definitions."""
    return AllAchievementsResponse(
        achievements=[
            AchievementDefResponse(
                id=a.id,
                name=a.name,
                description=a.description,
                icon=a.icon,
                color=a.color,
                trigger_type=a.trigger_type,
                trigger_config=dict(a.trigger_config),
                reward=AchievementRewardResponse(**a.reward.to_dict()),
            )
            for a in ACHIEVEMENTS
        ]
    )


@router.get("/achievements/{user_id}", response_model=UserAchievementsResponse)
async def get_user_achievements(user_id: int, db: AsyncSession = Depends(get_session)):
    """Get a player's unlocked achievements, oldest first."""
    await require_user(db, user_id)
    unlocks = await get_unlocked(db, user_id)
    return UserAchievementsResponse(
        user_id=user_id,
        unlocked=[
            UnlockedAchievementResponse(
                achievement_id=u.achievement_id,
                name=get_achievement(u.achievement_id).name,
                unlocked_at=u.unlocked_at,
            )
            for u in unlocks
        ],
        total_available=len(ACHIEVEMENTS),
        total_unlocked=len(unlocks),
    )
