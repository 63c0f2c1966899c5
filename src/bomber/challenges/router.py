"""Daily challenge endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.challenges.daily import ClaimResult, best_drive_on, challenge_status, claim
from bomber.challenges.schemas import (
    ChallengeResponse,
    ChallengeRewardResponse,
    ClaimResponse,
    DailyChallengeStatusResponse,
)
from bomber.database import get_session, run_in_transaction
from bomber.dependencies import get_today, get_tuning, server_today
from bomber.progression.tuning import EconomyTuning
from bomber.users.service import require_user

router = APIRouter(prefix="/api/bomber", tags=["Daily Challenge"])


@router.get("/daily-challenge/{user_id}", response_model=DailyChallengeStatusResponse)
async def get_daily_challenge(
    user_id: int,
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_session),
):
    """Today's challenge and whether the player has claimed it."""
    await require_user(db, user_id)
    status = await challenge_status(db, user_id, today)
    return DailyChallengeStatusResponse(
        user_id=user_id,
        active_date=today,
        challenge=ChallengeResponse.from_def(status["challenge"]),
        claimed=status["claimed"],
        claimed_at=status["claimed_at"],
    )


@router.post("/daily-challenge/{user_id}/claim", response_model=ClaimResponse)
async def claim_daily_challenge(
    user_id: int,
    today: date = Depends(server_today),
    tuning: EconomyTuning = Depends(get_tuning),
):
    """Claim today's challenge against the player's drives recorded today."""

    async def _claim(db: AsyncSession) -> ClaimResult:
        await require_user(db, user_id)
        stats = await best_drive_on(db, user_id, today)
        return await claim(db, user_id, today, stats, tuning=tuning)

    result = await run_in_transaction(_claim)
    return ClaimResponse(
        user_id=user_id,
        active_date=today,
        status=result.status,
        challenge=ChallengeResponse.from_def(result.challenge),
        reward=ChallengeRewardResponse(**{k: result.reward[k] for k in ("coins", "gems", "xp")})
        if result.reward else None,
        chests_earned=result.chests_earned,
    )
