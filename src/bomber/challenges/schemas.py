"""Pydantic response models for daily challenge endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel

from bomber.rewards.catalog import ChallengeDef


class ChallengeRewardResponse(BaseModel):
    coins: int = 0
    gems: int = 0
    xp: int = 0


class ChallengeResponse(BaseModel):
    id: str
    title: str
    description: str
    target_distance: int
    condition: str
    reward: ChallengeRewardResponse

    @classmethod
    def from_def(cls, challenge: ChallengeDef) -> ChallengeResponse:
        return cls(
            id=challenge.id,
            title=challenge.title,
            description=challenge.description,
            target_distance=challenge.target_distance,
            condition=challenge.condition,
            reward=ChallengeRewardResponse(
                coins=challenge.reward.coins, gems=challenge.reward.gems, xp=challenge.reward.xp
            ),
        )


class DailyChallengeStatusResponse(BaseModel):
    user_id: int
    active_date: date
    challenge: ChallengeResponse
    claimed: bool
    claimed_at: datetime | None = None


class ClaimResponse(BaseModel):
    user_id: int
    active_date: date
    status: str  # granted | already_claimed | not_qualified
    challenge: ChallengeResponse
    reward: ChallengeRewardResponse | None = None
    chests_earned: list[int] = []
