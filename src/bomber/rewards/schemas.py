"""Pydantic request/response models for equipment and chest endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from bomber.db.models import Chest, EquipmentOwnership
from bomber.rewards.catalog import RARITY_COLORS, EquipmentDef, Rarity
from bomber.rewards.loot import EquipmentDrop, RewardBundle


# --- Equipment ---


class EquipmentDefResponse(BaseModel):
    id: str
    name: str
    type: str
    rarity: str
    rarity_color: str
    description: str
    speed_bonus: int
    accuracy_bonus: int
    distance_bonus: int
    roll_bonus: int
    dupes_to_upgrade: int

    @classmethod
    def from_def(cls, item: EquipmentDef) -> EquipmentDefResponse:
        return cls(
            id=item.id,
            name=item.name,
            type=item.type,
            rarity=item.rarity.value,
            rarity_color=RARITY_COLORS[item.rarity],
            description=item.description,
            speed_bonus=item.speed_bonus,
            accuracy_bonus=item.accuracy_bonus,
            distance_bonus=item.distance_bonus,
            roll_bonus=item.roll_bonus,
            dupes_to_upgrade=item.dupes_to_upgrade,
        )


class EquipmentCatalogResponse(BaseModel):
    drivers: list[EquipmentDefResponse]
    balls: list[EquipmentDefResponse]


class OwnedEquipmentResponse(BaseModel):
    equipment_type: str
    equipment_id: str
    rarity: str
    level: int
    duplicates_owned: int
    equipped: bool = False
    acquired_at: datetime

    @classmethod
    def from_row(cls, row: EquipmentOwnership, equipped: bool = False) -> OwnedEquipmentResponse:
        return cls(
            equipment_type=row.equipment_type,
            equipment_id=row.equipment_id,
            rarity=Rarity(row.rarity).value,
            level=row.level,
            duplicates_owned=row.duplicates_owned,
            equipped=equipped,
            acquired_at=row.acquired_at,
        )


class OwnedEquipmentListResponse(BaseModel):
    user_id: int
    equipped_driver_id: str
    equipped_ball_id: str
    items: list[OwnedEquipmentResponse]


class EquipmentActionRequest(BaseModel):
    equipment_type: str = Field(pattern="^(driver|ball)$")
    equipment_id: str = Field(min_length=1, max_length=64)


# --- Chests ---


class ChestResponse(BaseModel):
    chest_id: int
    chest_type: str
    source: str
    earned_at: datetime
    opened_at: datetime | None = None

    @classmethod
    def from_row(cls, chest: Chest) -> ChestResponse:
        return cls(
            chest_id=chest.id,
            chest_type=chest.chest_type,
            source=chest.source,
            earned_at=chest.earned_at,
            opened_at=chest.opened_at,
        )


class ChestListResponse(BaseModel):
    user_id: int
    chests: list[ChestResponse]


class EquipmentDropResponse(BaseModel):
    equipment_type: str
    equipment_id: str
    rarity: str
    coins: int = 0

    @classmethod
    def from_drop(cls, drop: EquipmentDrop) -> EquipmentDropResponse:
        return cls(
            equipment_type=drop.equipment_type,
            equipment_id=drop.equipment_id,
            rarity=drop.rarity,
            coins=drop.coins,
        )


class RewardBundleResponse(BaseModel):
    chest_id: int
    chest_type: str
    coins: int
    gems: int
    xp: int
    equipment: list[EquipmentDropResponse]
    duplicates: list[EquipmentDropResponse]
    opened_at: datetime | None = None
    already_opened: bool = False
    chests_earned: list[int] = []
    new_achievements: list[str] = []

    @classmethod
    def from_bundle(
        cls,
        chest: Chest,
        bundle: RewardBundle,
        already_opened: bool,
        chests_earned: list[int] | None = None,
        new_achievements: list[str] | None = None,
    ) -> RewardBundleResponse:
        return cls(
            chest_id=chest.id,
            chest_type=bundle.chest_type,
            coins=bundle.coins,
            gems=bundle.gems,
            xp=bundle.xp,
            equipment=[EquipmentDropResponse.from_drop(d) for d in bundle.equipment],
            duplicates=[EquipmentDropResponse.from_drop(d) for d in bundle.duplicates],
            opened_at=chest.opened_at,
            already_opened=already_opened,
            chests_earned=chests_earned or [],
            new_achievements=new_achievements or [],
        )
