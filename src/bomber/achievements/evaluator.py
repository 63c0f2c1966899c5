"""Achievement evaluator: snapshot predicates plus at-most-once unlocks."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.db.models import AchievementUnlock, EquipmentOwnership, PlayerProfile
from bomber.progression.divisions import division_from_xp
from bomber.progression.ledger import apply_reward, get_or_create_profile
from bomber.progression.tuning import EconomyTuning
from bomber.rewards.catalog import ACHIEVEMENTS, AchievementDef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatsSnapshot:
    total_drives: int = 0
    best_distance: int = 0
    last_distance: int = 0
    last_night_mode: bool = False
    current_streak: int = 0
    longest_streak: int = 0
    level: int = 1
    xp: int = 0
    division_rank: int = 0
    equipment_owned: int = 0
    chests_opened: int = 0


def snapshot_from_profile(
    profile: PlayerProfile,
    *,
    last_distance: int = 0,
    last_night_mode: bool = False,
    equipment_owned: int = 0,
) -> StatsSnapshot:
    return StatsSnapshot(
        total_drives=profile.total_drives,
        best_distance=profile.best_distance,
        last_distance=last_distance,
        last_night_mode=last_night_mode,
        current_streak=profile.current_streak,
        longest_streak=profile.longest_streak,
        level=profile.level,
        xp=profile.xp,
        division_rank=division_from_xp(profile.xp).rank,
        equipment_owned=equipment_owned,
        chests_opened=profile.chests_opened,
    )


_Predicate = Callable[[StatsSnapshot, dict[str, Any]], bool]

_PREDICATES: dict[str, _Predicate] = {
    "total_drives": lambda s, c: s.total_drives >= c["threshold"],
    "best_distance": lambda s, c: s.best_distance >= c["threshold"],
    "drive_distance": lambda s, c: s.total_drives >= c.get("min_drives", 1) and s.last_distance >= c["distance"],
    "night_distance": lambda s, c: s.last_night_mode and s.last_distance >= c["distance"],
    "streak": lambda s, c: max(s.current_streak, s.longest_streak) >= c["threshold"],
    "level": lambda s, c: s.level >= c["threshold"],
    "division": lambda s, c: s.division_rank >= c["rank"],
    "equipment_owned": lambda s, c: s.equipment_owned >= c["threshold"],
    "chests_opened": lambda s, c: s.chests_opened >= c["threshold"],
}


def is_satisfied(achievement: AchievementDef, snapshot: StatsSnapshot) -> bool:
    predicate = _PREDICATES.get(achievement.trigger_type)
    if predicate is None:
        logger.warning("No predicate for trigger type %s", achievement.trigger_type)
        return False
    return predicate(snapshot, achievement.trigger_config)


def qualifying_achievements(
    snapshot: StatsSnapshot,
    already_unlocked: Iterable[str] = (),
    catalog: Iterable[AchievementDef] = ACHIEVEMENTS,
) -> list[AchievementDef]:
    """Achievements the snapshot satisfies that are not unlocked yet, in catalog order."""
    unlocked = set(already_unlocked)
    return [a for a in catalog if a.id not in unlocked and is_satisfied(a, snapshot)]


async def get_unlocked(db: AsyncSession, user_id: int) -> list[AchievementUnlock]:
    result = await db.execute(
        select(AchievementUnlock)
        .where(AchievementUnlock.user_id == user_id)
        .order_by(AchievementUnlock.unlocked_at.asc(), AchievementUnlock.id.asc())
    )
    return list(result.scalars().all())


async def count_equipment(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(EquipmentOwnership).where(EquipmentOwnership.user_id == user_id)
    )
    return result.scalar_one()


class AchievementEvaluator:
    """Grants newly qualified achievements for one player inside the caller's transaction."""

    def __init__(self, db: AsyncSession, tuning: EconomyTuning | None = None) -> None:
        self.db = db
        self.tuning = tuning
        self.chests_earned: list[int] = []

    async def evaluate(
        self,
        user_id: int,
        snapshot: StatsSnapshot,
        already_unlocked: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> list[str]:
        """Return ids of achievements unlocked by this call (possibly empty).

        Each unlock row is inserted under a savepoint; a unique-key violation
        means another transaction got there first and the achievement is
        skipped without crediting its reward again.
        """
        if already_unlocked is None:
            already_unlocked = [u.achievement_id for u in await get_unlocked(self.db, user_id)]
        candidates = qualifying_achievements(snapshot, already_unlocked)
        if not candidates:
            return []

        now = now or datetime.now(timezone.utc)
        profile = await get_or_create_profile(self.db, user_id, for_update=True, now=now)
        awarded: list[str] = []

        for achievement in candidates:
            try:
                async with self.db.begin_nested():
                    self.db.add(AchievementUnlock(
                        user_id=user_id,
                        achievement_id=achievement.id,
                        unlocked_at=now,
                    ))
            except IntegrityError:
                logger.info("Achievement %s already unlocked for user %d", achievement.id, user_id)
                continue

            self.chests_earned += await apply_reward(
                self.db, profile, achievement.reward,
                source="achievement", source_id=achievement.id,
                description=f'Unlocked "{achievement.name}"',
                now=now, tuning=self.tuning,
            )
            awarded.append(achievement.id)
            logger.info("User %d unlocked achievement %s", user_id, achievement.id)

        return awarded


async def evaluate(
    db: AsyncSession,
    user_id: int,
    snapshot: StatsSnapshot,
    already_unlocked: Iterable[str] | None = None,
    *,
    now: datetime | None = None,
    tuning: EconomyTuning | None = None,
) -> list[str]:
    return await AchievementEvaluator(db, tuning).evaluate(user_id, snapshot, already_unlocked, now)
