"""Leaderboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.database import get_session
from bomber.leaderboard.schemas import (
    LeaderboardEntryResponse,
    LeaderboardResponse,
    PersonalDrive,
    PersonalTopResponse,
    RankResponse,
)
from bomber.leaderboard.service import RankInfo, personal_top, rank_of, top_n
from bomber.users.service import require_user

router = APIRouter(prefix="/api/bomber/leaderboard", tags=["Leaderboard"])

_PERIOD = "^(daily|weekly|monthly|alltime)$"


def rank_response(user_id: int, info: RankInfo | None) -> RankResponse:
    if info is None:
        return RankResponse(user_id=user_id)
    return RankResponse(
        user_id=user_id,
        rank=info.rank,
        best_distance=info.best_distance,
        total_ranked=info.total_ranked,
        percentile=info.percentile,
        ranked=True,
    )


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(
    limit: int = Query(default=50, ge=1, le=100),
    venue_id: str | None = Query(default=None, max_length=64),
    period: str = Query(default="alltime", pattern=_PERIOD),
    db: AsyncSession = Depends(get_session),
):
    """Longest drives, ties going to whoever hit it first."""
    rows = await top_n(db, limit, venue_id=venue_id, period=period)
    return LeaderboardResponse(
        period=period,
        venue_id=venue_id,
        entries=[
            LeaderboardEntryResponse(
                rank=row["rank"],
                entry_id=row["entry"].id,
                user_id=row["entry"].user_id,
                username=row["username"],
                display_name=row["display_name"],
                distance=row["entry"].distance,
                ball_speed=row["entry"].ball_speed,
                launch_angle=row["entry"].launch_angle,
                wind=row["entry"].wind,
                night_mode=row["entry"].night_mode,
                venue_id=row["entry"].venue_id,
                driver_id=row["entry"].driver_id,
                ball_id=row["entry"].ball_id,
                created_at=row["entry"].created_at,
            )
            for row in rows
        ],
    )


@router.get("/rank/{user_id}", response_model=RankResponse)
async def get_rank(
    user_id: int,
    venue_id: str | None = Query(default=None, max_length=64),
    period: str = Query(default="alltime", pattern=_PERIOD),
    db: AsyncSession = Depends(get_session),
):
    """The player's rank by best drive; ``ranked`` is false when they have none."""
    await require_user(db, user_id)
    return rank_response(user_id, await rank_of(db, user_id, venue_id=venue_id, period=period))


@router.get("/personal/{user_id}", response_model=PersonalTopResponse)
async def get_personal_top(
    user_id: int,
    limit: int = Query(default=10, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """The player's own longest drives."""
    await require_user(db, user_id)
    entries = await personal_top(db, user_id, limit)
    return PersonalTopResponse(
        user_id=user_id,
        drives=[
            PersonalDrive(
                entry_id=e.id,
                distance=e.distance,
                ball_speed=e.ball_speed,
                launch_angle=e.launch_angle,
                wind=e.wind,
                night_mode=e.night_mode,
                venue_id=e.venue_id,
                created_at=e.created_at,
            )
            for e in entries
        ],
    )
