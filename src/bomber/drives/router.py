"""Drive submission endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.database import run_in_transaction
from bomber.dependencies import get_redis_dep, get_tuning
from bomber.drives.orchestrator import SubmissionResult, submit_drive
from bomber.drives.schemas import (
    ChallengeReward,
    DivisionChange,
    DriveEvent,
    LevelChange,
    SubmissionResponse,
)
from bomber.events import publish_submission
from bomber.leaderboard.router import rank_response
from bomber.progression.schemas import ProfileSummary
from bomber.progression.tuning import EconomyTuning

router = APIRouter(prefix="/api/bomber", tags=["Drives"])


@router.post("/drives/{user_id}", response_model=SubmissionResponse)
async def post_drive(
    user_id: int,
    event: DriveEvent,
    tuning: EconomyTuning = Depends(get_tuning),
    redis: object = Depends(get_redis_dep),
):
    """Submit one drive and get back everything it changed.

    Send ``client_drive_id`` to make retries safe: a repeated id returns
    ``replayed: true`` and changes nothing.
    """

    async def _submit(db: AsyncSession) -> SubmissionResult:
        return await submit_drive(db, user_id, event, tuning=tuning)

    result = await run_in_transaction(_submit)
    await publish_submission(redis, result)

    return SubmissionResponse(
        xp_gained=result.xp_gained,
        level_up=LevelChange(**result.level_up) if result.level_up else None,
        division_change=DivisionChange(**result.division_change) if result.division_change else None,
        new_achievements=result.new_achievements,
        chests_earned=result.chests_earned,
        challenge_reward=ChallengeReward(**result.challenge_reward) if result.challenge_reward else None,
        new_rank=rank_response(user_id, result.new_rank) if result.new_rank else None,
        profile=ProfileSummary.from_profile(result.profile, tuning),
        replayed=result.replayed,
        warnings=result.warnings,
    )
