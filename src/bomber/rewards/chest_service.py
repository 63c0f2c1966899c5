"""Chest lifecycle: queued on an event, opened once on demand."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.achievements.evaluator import AchievementEvaluator, count_equipment, snapshot_from_profile
from bomber.db.models import Chest
from bomber.errors import NotFoundError
from bomber.progression.ledger import credit_currency, get_or_create_profile, grant_xp
from bomber.progression.tuning import EconomyTuning
from bomber.rewards.catalog import get_chest_type
from bomber.rewards.equipment_service import grant_equipment, owned_keys
from bomber.rewards.loot import RewardBundle, roll_chest_contents

logger = logging.getLogger(__name__)


@dataclass
class OpenResult:
    chest: Chest
    bundle: RewardBundle
    already_opened: bool
    chests_earned: list[int] = field(default_factory=list)
    new_achievements: list[str] = field(default_factory=list)
    level_up: dict[str, int] | None = None

    @property
    def user_id(self) -> int:
        return self.chest.user_id

    @property
    def replayed(self) -> bool:
        return self.already_opened


async def get_chest(db: AsyncSession, chest_id: int, *, for_update: bool = False) -> Chest:
    stmt = select(Chest).where(Chest.id == chest_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    chest = result.scalar_one_or_none()
    if chest is None:
        msg = f"Chest {chest_id} not found"
        raise NotFoundError(msg)
    return chest


async def list_chests(db: AsyncSession, user_id: int, *, pending_only: bool = False) -> list[Chest]:
    stmt = select(Chest).where(Chest.user_id == user_id)
    if pending_only:
        stmt = stmt.where(Chest.opened_at.is_(None))
    result = await db.execute(stmt.order_by(Chest.earned_at.asc(), Chest.id.asc()))
    return list(result.scalars().all())


async def open_chest(
    db: AsyncSession,
    chest_id: int,
    *,
    user_id: int | None = None,
    now: datetime | None = None,
    rng: random.Random | None = None,
    tuning: EconomyTuning | None = None,
) -> OpenResult:
    """Open a chest, or return what it held if it was already opened.

    The first open rolls the contents and, in the caller's transaction, stores
    them on the chest and credits coins, gems, XP and equipment. Later opens
    never roll again.
    """
    chest = await get_chest(db, chest_id, for_update=True)
    if user_id is not None and chest.user_id != user_id:
        msg = f"Chest {chest_id} not found"
        raise NotFoundError(msg)

    if chest.opened_at is not None:
        return OpenResult(chest, RewardBundle.from_dict(chest.contents or {}), already_opened=True)

    now = now or datetime.now(timezone.utc)
    tuning = tuning or EconomyTuning.from_settings()
    profile = await get_or_create_profile(db, chest.user_id, for_update=True, now=now)
    chest_type = get_chest_type(chest.chest_type)
    bundle = roll_chest_contents(
        chest_type, await owned_keys(db, chest.user_id), rng, weights=tuning.rarity_weights(chest_type)
    )

    for drop in bundle.equipment + bundle.duplicates:
        await grant_equipment(db, chest.user_id, drop.equipment_type, drop.equipment_id, now)
    credit_currency(profile, bundle.coins, bundle.gems)

    chests_earned: list[int] = []
    level_up = None
    if bundle.xp:
        grant = await grant_xp(
            db, profile, bundle.xp, "chest", str(chest.id), f"Opened {chest.chest_type} chest",
            idempotency_key=f"chest:{chest.id}", now=now, tuning=tuning,
        )
        if grant is not None:
            chests_earned = grant.chest_ids
            if grant.new_level > grant.old_level:
                level_up = {"old_level": grant.old_level, "new_level": grant.new_level}

    profile.chests_opened += 1
    profile.updated_at = now
    chest.opened_at = now
    chest.contents = bundle.to_dict()
    await db.flush()

    logger.info(
        "User %d opened %s chest %d: %d coins, %d gems, %d xp, %d items, %d duplicates",
        chest.user_id, chest.chest_type, chest.id,
        bundle.coins, bundle.gems, bundle.xp, len(bundle.equipment), len(bundle.duplicates),
    )
    # Chest stats and XP can complete collection and level achievements
    evaluator = AchievementEvaluator(db, tuning)
    snapshot = snapshot_from_profile(profile, equipment_owned=await count_equipment(db, chest.user_id))
    unlocked = await evaluator.evaluate(chest.user_id, snapshot, now=now)

    return OpenResult(
        chest, bundle, already_opened=False,
        chests_earned=chests_earned + evaluator.chests_earned,
        new_achievements=unlocked,
        level_up=level_up,
    )
