"""Equipment ownership: grants, duplicates, equipping and upgrades."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.db.models import EquipmentOwnership, PlayerProfile
from bomber.errors import InsufficientFundsError, NotFoundError, ValidationError
from bomber.progression.ledger import credit_currency, get_or_create_profile
from bomber.progression.tuning import EconomyTuning
from bomber.rewards.catalog import EQUIPMENT_TYPES, get_equipment

logger = logging.getLogger(__name__)


async def get_owned(
    db: AsyncSession,
    user_id: int,
    equipment_type: str,
    equipment_id: str,
    *,
    for_update: bool = False,
) -> EquipmentOwnership | None:
    stmt = select(EquipmentOwnership).where(
        EquipmentOwnership.user_id == user_id,
        EquipmentOwnership.equipment_type == equipment_type,
        EquipmentOwnership.equipment_id == equipment_id,
    )
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def owned_keys(db: AsyncSession, user_id: int) -> set[tuple[str, str]]:
    """``(equipment_type, equipment_id)`` pairs the player owns."""
    result = await db.execute(
        select(EquipmentOwnership.equipment_type, EquipmentOwnership.equipment_id)
        .where(EquipmentOwnership.user_id == user_id)
    )
    return {(row.equipment_type, row.equipment_id) for row in result}


async def list_equipment(db: AsyncSession, user_id: int) -> list[EquipmentOwnership]:
    result = await db.execute(
        select(EquipmentOwnership)
        .where(EquipmentOwnership.user_id == user_id)
        .order_by(EquipmentOwnership.equipment_type, EquipmentOwnership.acquired_at, EquipmentOwnership.id)
    )
    return list(result.scalars().all())


async def grant_equipment(
    db: AsyncSession,
    user_id: int,
    equipment_type: str,
    equipment_id: str,
    now: datetime | None = None,
) -> tuple[EquipmentOwnership, bool]:
    """Give the player an item. Returns ``(row, is_new)``; a repeat bumps ``duplicates_owned``."""
    item = get_equipment(equipment_type, equipment_id)
    row = await get_owned(db, user_id, equipment_type, equipment_id, for_update=True)
    if row is not None:
        row.duplicates_owned += 1
        await db.flush()
        return row, False

    row = EquipmentOwnership(
        user_id=user_id,
        equipment_type=equipment_type,
        equipment_id=equipment_id,
        rarity=item.rarity.value,
        level=1,
        duplicates_owned=0,
        acquired_at=now or datetime.now(timezone.utc),
    )
    db.add(row)
    await db.flush()
    logger.info("User %d acquired %s %s", user_id, equipment_type, equipment_id)
    return row, True


async def equip_item(db: AsyncSession, user_id: int, equipment_type: str, equipment_id: str) -> PlayerProfile:
    """Equip an owned driver or ball."""
    if equipment_type not in EQUIPMENT_TYPES:
        msg = f"equipment_type must be one of {EQUIPMENT_TYPES}"
        raise ValidationError(msg)
    get_equipment(equipment_type, equipment_id)

    profile = await get_or_create_profile(db, user_id, for_update=True)
    if await get_owned(db, user_id, equipment_type, equipment_id) is None:
        msg = f"User {user_id} does not own {equipment_type} '{equipment_id}'"
        raise NotFoundError(msg)

    if equipment_type == "driver":
        profile.equipped_driver_id = equipment_id
    else:
        profile.equipped_ball_id = equipment_id
    profile.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return profile


def upgrade_cost(level: int, tuning: EconomyTuning | None = None) -> int:
    """Coins needed to take an item from ``level`` to ``level + 1``."""
    tuning = tuning or EconomyTuning()
    return tuning.upgrade_coin_cost * level


async def upgrade_equipment(
    db: AsyncSession,
    user_id: int,
    equipment_type: str,
    equipment_id: str,
    tuning: EconomyTuning | None = None,
) -> EquipmentOwnership:
    """Spend duplicates plus coins to raise an item's level by one."""
    tuning = tuning or EconomyTuning.from_settings()
    item = get_equipment(equipment_type, equipment_id)

    profile = await get_or_create_profile(db, user_id, for_update=True)
    row = await get_owned(db, user_id, equipment_type, equipment_id, for_update=True)
    if row is None:
        msg = f"User {user_id} does not own {equipment_type} '{equipment_id}'"
        raise NotFoundError(msg)

    if row.duplicates_owned < item.dupes_to_upgrade:
        msg = f"Need {item.dupes_to_upgrade} duplicates to upgrade, have {row.duplicates_owned}"
        raise InsufficientFundsError(msg)

    credit_currency(profile, coins=-upgrade_cost(row.level, tuning))
    row.duplicates_owned -= item.dupes_to_upgrade
    row.level += 1
    profile.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("User %d upgraded %s %s to level %d", user_id, equipment_type, equipment_id, row.level)
    return row
