"""Profile, level, division, venue and daily-reward endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.database import run_in_transaction
from bomber.dependencies import get_tuning, server_today
from bomber.progression.divisions import DIVISIONS
from bomber.progression.ledger import claim_daily_reward, get_or_create_profile
from bomber.progression.level_curve import level_table
from bomber.progression.schemas import (
    AllDivisionsResponse,
    AllLevelsResponse,
    AllVenuesResponse,
    DivisionResponse,
    LevelEntry,
    ProfileSummary,
    VenueResponse,
    VenueUnlocksResponse,
)
from bomber.progression.tuning import EconomyTuning
from bomber.progression.venues import unlocked_venues
from bomber.rewards.catalog import VENUES, VenueDef
from bomber.rewards.chest_service import list_chests
from bomber.rewards.equipment_service import list_equipment
from bomber.rewards.schemas import ChestResponse, OwnedEquipmentResponse

router = APIRouter(prefix="/api/bomber", tags=["Progression"])


class ProfileResponse(BaseModel):
    profile: ProfileSummary
    equipment: list[OwnedEquipmentResponse]
    pending_chests: list[ChestResponse]


def _venue(v: VenueDef) -> VenueResponse:
    return VenueResponse(
        venue_id=v.venue_id,
        name=v.name,
        tier=v.tier,
        hole_number=v.hole_number,
        min_division=DIVISIONS[v.min_division_rank].id,
        min_drives=v.min_drives,
        min_best_distance=v.min_best_distance,
    )


@router.get("/profile/{user_id}", response_model=ProfileResponse)
async def get_profile(user_id: int, tuning: EconomyTuning = Depends(get_tuning)):
    """Profile with derived level/division, owned equipment and pending chests."""

    async def _load(db: AsyncSession) -> ProfileResponse:
        profile = await get_or_create_profile(db, user_id)
        equipped = {("driver", profile.equipped_driver_id), ("ball", profile.equipped_ball_id)}
        return ProfileResponse(
            profile=ProfileSummary.from_profile(profile, tuning),
            equipment=[
                OwnedEquipmentResponse.from_row(r, equipped=(r.equipment_type, r.equipment_id) in equipped)
                for r in await list_equipment(db, user_id)
            ],
            pending_chests=[ChestResponse.from_row(c) for c in await list_chests(db, user_id, pending_only=True)],
        )

    return await run_in_transaction(_load)


@router.get("/levels", response_model=AllLevelsResponse)
async def list_levels(
    max_level: int = Query(default=50, ge=1, le=500),
    tuning: EconomyTuning = Depends(get_tuning),
):
    """Get level thresholds."""
    return AllLevelsResponse(
        levels=[
            LevelEntry(**row)
            for row in level_table(max_level, tuning.level_xp_base, tuning.level_xp_growth)
        ]
    )


@router.get("/divisions", response_model=AllDivisionsResponse)
async def list_divisions():
    """Get the division ladder."""
    return AllDivisionsResponse(divisions=[DivisionResponse.from_division(d) for d in DIVISIONS])


@router.get("/venues", response_model=AllVenuesResponse)
async def list_venues():
    return AllVenuesResponse(venues=[_venue(v) for v in VENUES])


@router.get("/venues/unlocks/{user_id}", response_model=VenueUnlocksResponse)
async def venue_unlocks(user_id: int):
    """Venues unlocked by the player's current division, drive count and best distance."""

    async def _load(db: AsyncSession) -> VenueUnlocksResponse:
        profile = await get_or_create_profile(db, user_id)
        unlocked = unlocked_venues(profile.xp, profile.total_drives, profile.best_distance)
        return VenueUnlocksResponse(
            user_id=user_id,
            unlocked=[_venue(v) for v in unlocked],
            locked=[_venue(v) for v in VENUES if v not in unlocked],
        )

    return await run_in_transaction(_load)


@router.post("/daily-reward/{user_id}", response_model=ChestResponse)
async def daily_reward(user_id: int, today: date = Depends(server_today)):
    """Queue today's daily chest. 409 if already claimed today."""

    async def _claim(db: AsyncSession) -> ChestResponse:
        return ChestResponse.from_row(await claim_daily_reward(db, user_id, today))

    return await run_in_transaction(_claim)
