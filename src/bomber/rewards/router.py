"""Equipment and chest endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.database import get_session, run_in_transaction
from bomber.dependencies import get_redis_dep, get_tuning
from bomber.events import publish_submission
from bomber.progression.ledger import get_or_create_profile
from bomber.progression.tuning import EconomyTuning
from bomber.rewards.catalog import BALLS, DRIVERS
from bomber.rewards.chest_service import OpenResult, list_chests, open_chest
from bomber.rewards.equipment_service import equip_item, list_equipment, upgrade_equipment
from bomber.rewards.schemas import (
    ChestListResponse,
    ChestResponse,
    EquipmentActionRequest,
    EquipmentCatalogResponse,
    EquipmentDefResponse,
    OwnedEquipmentListResponse,
    OwnedEquipmentResponse,
    RewardBundleResponse,
)
from bomber.users.service import require_user

router = APIRouter(prefix="/api/bomber", tags=["Rewards"])


async def _owned_list(db: AsyncSession, user_id: int) -> OwnedEquipmentListResponse:
    profile = await get_or_create_profile(db, user_id)
    rows = await list_equipment(db, user_id)
    equipped = {("driver", profile.equipped_driver_id), ("ball", profile.equipped_ball_id)}
    return OwnedEquipmentListResponse(
        user_id=user_id,
        equipped_driver_id=profile.equipped_driver_id,
        equipped_ball_id=profile.equipped_ball_id,
        items=[
            OwnedEquipmentResponse.from_row(r, equipped=(r.equipment_type, r.equipment_id) in equipped)
            for r in rows
        ],
    )


@router.get("/equipment", response_model=EquipmentCatalogResponse)
async def equipment_catalog():
    """All drivers and balls."""
    return EquipmentCatalogResponse(
        drivers=[EquipmentDefResponse.from_def(d) for d in DRIVERS],
        balls=[EquipmentDefResponse.from_def(b) for b in BALLS],
    )


@router.get("/equipment/{user_id}", response_model=OwnedEquipmentListResponse)
async def get_owned_equipment(user_id: int):
    """Equipment the player owns, with the equipped items flagged."""
    return await run_in_transaction(lambda db: _owned_list(db, user_id))


@router.post("/equipment/{user_id}/equip", response_model=OwnedEquipmentListResponse)
async def equip(user_id: int, body: EquipmentActionRequest):
    """Equip an owned driver or ball."""

    async def _equip(db: AsyncSession) -> OwnedEquipmentListResponse:
        await equip_item(db, user_id, body.equipment_type, body.equipment_id)
        return await _owned_list(db, user_id)

    return await run_in_transaction(_equip)


@router.post("/equipment/{user_id}/upgrade", response_model=OwnedEquipmentResponse)
async def upgrade(
    user_id: int,
    body: EquipmentActionRequest,
    tuning: EconomyTuning = Depends(get_tuning),
):
    """Spend duplicates and coins to level up an item."""

    async def _upgrade(db: AsyncSession) -> OwnedEquipmentResponse:
        row = await upgrade_equipment(db, user_id, body.equipment_type, body.equipment_id, tuning)
        return OwnedEquipmentResponse.from_row(row)

    return await run_in_transaction(_upgrade)


@router.get("/chests/{user_id}", response_model=ChestListResponse)
async def get_chests(
    user_id: int,
    pending_only: bool = Query(default=False),
    db: AsyncSession = Depends(get_session),
):
    """The player's chests, oldest first."""
    await require_user(db, user_id)
    chests = await list_chests(db, user_id, pending_only=pending_only)
    return ChestListResponse(user_id=user_id, chests=[ChestResponse.from_row(c) for c in chests])


@router.post("/chests/{chest_id}/open", response_model=RewardBundleResponse)
async def open_chest_endpoint(
    chest_id: int,
    tuning: EconomyTuning = Depends(get_tuning),
    redis: object = Depends(get_redis_dep),
):
    """Open a chest. Opening it again returns the same contents and unlocks nothing."""

    async def _open(db: AsyncSession) -> OpenResult:
        return await open_chest(db, chest_id, tuning=tuning)

    opened = await run_in_transaction(_open)
    await publish_submission(redis, opened)
    return RewardBundleResponse.from_bundle(
        opened.chest, opened.bundle, opened.already_opened, opened.chests_earned, opened.new_achievements
    )
