"""Profile ledger: the only code that mutates PlayerProfile.

Every function here runs inside the caller's transaction. Callers that mutate
lock the profile row first (``get_or_create_profile(..., for_update=True)``),
which is what serializes concurrent drives for the same player.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.db.models import Chest, EquipmentOwnership, PlayerProfile, User, XPLedger
from bomber.errors import AlreadyClaimedError, InsufficientFundsError, NotFoundError, ValidationError
from bomber.progression.divisions import division_from_xp
from bomber.progression.level_curve import compute_level
from bomber.progression.streaks import next_streak
from bomber.progression.tuning import EconomyTuning
from bomber.progression.venues import is_unlocked
from bomber.rewards.catalog import (
    DEFAULT_BALL_ID,
    DEFAULT_DRIVER_ID,
    Rarity,
    Reward,
    chest_type_for_distance,
    chest_type_for_level,
    get_chest_type,
    get_equipment,
    get_venue,
)

if TYPE_CHECKING:
    from bomber.drives.schemas import DriveEvent

logger = logging.getLogger(__name__)


@dataclass
class XPGrant:
    amount: int
    old_level: int
    new_level: int
    old_division: str
    new_division: str
    chest_ids: list[int] = field(default_factory=list)


@dataclass
class ProfileDelta:
    """What one drive changed on the profile."""

    xp_gained: int
    xp_before: int
    xp_after: int
    old_level: int
    new_level: int
    old_division: str
    new_division: str
    streak_before: int
    streak_after: int
    best_distance_before: int
    best_distance_after: int
    chests_earned: list[int] = field(default_factory=list)

    @property
    def level_up(self) -> bool:
        return self.new_level > self.old_level

    @property
    def division_change(self) -> bool:
        return self.new_division != self.old_division

    @property
    def new_personal_best(self) -> bool:
        return self.best_distance_after > self.best_distance_before


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def compute_drive_xp(
    distance: int,
    night_mode: bool,
    streak: int,
    driver_rarity: Rarity | str,
    in_bounds: bool = True,
    tuning: EconomyTuning | None = None,
) -> int:
    """XP for one drive. Out-of-bounds drives only earn the participation base."""
    tuning = tuning or EconomyTuning()
    if not in_bounds:
        return tuning.base_drive_xp

    xp = tuning.base_drive_xp + distance // tuning.yards_per_xp
    if night_mode:
        xp += xp * tuning.night_mode_bonus_pct // 100
    xp += tuning.streak_bonus_per_day * min(max(streak - 1, 0), tuning.streak_bonus_cap_days)
    xp += tuning.rarity_xp_bonus * Rarity(driver_rarity).rank
    return xp


def refresh_derived(profile: PlayerProfile, tuning: EconomyTuning | None = None) -> None:
    """Rewrite the cached level/division columns from ``xp``."""
    tuning = tuning or EconomyTuning()
    profile.level = compute_level(profile.xp, tuning.level_xp_base, tuning.level_xp_growth)["level"]
    profile.division_id = division_from_xp(profile.xp).id


def credit_currency(profile: PlayerProfile, coins: int = 0, gems: int = 0) -> None:
    """Add (or with negative amounts, spend) coins and gems. Balances never go below zero."""
    if profile.coins + coins < 0:
        msg = f"Not enough coins: have {profile.coins}, need {-coins}"
        raise InsufficientFundsError(msg)
    if profile.gems + gems < 0:
        msg = f"Not enough gems: have {profile.gems}, need {-gems}"
        raise InsufficientFundsError(msg)
    profile.coins += coins
    profile.gems += gems


# ---------------------------------------------------------------------------
# Profile access
# ---------------------------------------------------------------------------


async def get_profile(db: AsyncSession, user_id: int, *, for_update: bool = False) -> PlayerProfile | None:
    stmt = select(PlayerProfile).where(PlayerProfile.user_id == user_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_or_create_profile(
    db: AsyncSession,
    user_id: int,
    *,
    for_update: bool = False,
    now: datetime | None = None,
) -> PlayerProfile:
    """Fetch a player's profile, creating it (xp=0, starter gear) on first use.

    Raises NotFoundError if the user does not exist.
    """
    profile = await get_profile(db, user_id, for_update=for_update)
    if profile is not None:
        return profile

    if await db.get(User, user_id) is None:
        msg = f"User {user_id} not found"
        raise NotFoundError(msg)

    now = now or datetime.now(timezone.utc)
    profile = PlayerProfile(
        user_id=user_id,
        xp=0,
        coins=0,
        gems=0,
        total_drives=0,
        best_distance=0,
        current_streak=0,
        longest_streak=0,
        equipped_driver_id=DEFAULT_DRIVER_ID,
        equipped_ball_id=DEFAULT_BALL_ID,
        chests_opened=0,
        level=1,
        division_id="bronze",
        created_at=now,
        updated_at=now,
    )
    try:
        async with db.begin_nested():
            db.add(profile)
            for equipment_type, equipment_id in (("driver", DEFAULT_DRIVER_ID), ("ball", DEFAULT_BALL_ID)):
                db.add(EquipmentOwnership(
                    user_id=user_id,
                    equipment_type=equipment_type,
                    equipment_id=equipment_id,
                    rarity=get_equipment(equipment_type, equipment_id).rarity.value,
                    level=1,
                    duplicates_owned=0,
                    acquired_at=now,
                ))
    except IntegrityError:
        # Created concurrently by another transaction
        logger.info("Profile for user %d created concurrently", user_id)
        profile = await get_profile(db, user_id, for_update=for_update)
        if profile is None:
            raise
        return profile

    logger.info("Created player profile for user %d", user_id)
    return profile


# ---------------------------------------------------------------------------
# Chests
# ---------------------------------------------------------------------------


async def enqueue_chest(
    db: AsyncSession,
    user_id: int,
    chest_type: str,
    source: str,
    source_id: str | None = None,
    now: datetime | None = None,
) -> Chest:
    """Create a pending (unopened) chest."""
    get_chest_type(chest_type)
    chest = Chest(
        user_id=user_id,
        chest_type=chest_type,
        source=source,
        source_id=source_id,
        earned_at=now or datetime.now(timezone.utc),
        opened_at=None,
        contents=None,
    )
    db.add(chest)
    await db.flush()
    logger.info("Queued %s chest %d for user %d (%s)", chest_type, chest.id, user_id, source)
    return chest


# ---------------------------------------------------------------------------
# XP
# ---------------------------------------------------------------------------


async def has_ledger_key(db: AsyncSession, idempotency_key: str) -> bool:
    result = await db.execute(select(XPLedger.id).where(XPLedger.idempotency_key == idempotency_key))
    return result.scalar_one_or_none() is not None


async def grant_xp(
    db: AsyncSession,
    profile: PlayerProfile,
    amount: int,
    source: str,
    source_id: str | None,
    description: str,
    idempotency_key: str | None = None,
    *,
    now: datetime | None = None,
    tuning: EconomyTuning | None = None,
) -> XPGrant | None:
    """Grant XP to a locked profile. Returns None if ``idempotency_key`` was already used.

    After granting:
    1. Insert into xp_ledger
    2. Add to profile.xp and rewrite the cached level/division
    3. Queue one chest per level gained
    """
    if amount < 0:
        msg = "XP grants cannot be negative"
        raise ValidationError(msg)
    if idempotency_key and await has_ledger_key(db, idempotency_key):
        return None

    now = now or datetime.now(timezone.utc)
    db.add(XPLedger(
        user_id=profile.user_id,
        amount=amount,
        source=source,
        source_id=source_id,
        description=description,
        idempotency_key=idempotency_key,
        created_at=now,
    ))

    old_level = profile.level
    old_division = profile.division_id
    profile.xp += amount
    refresh_derived(profile, tuning)
    profile.updated_at = now

    grant = XPGrant(amount, old_level, profile.level, old_division, profile.division_id)
    for level in range(old_level + 1, profile.level + 1):
        chest = await enqueue_chest(
            db, profile.user_id, chest_type_for_level(level), "level_up", f"level:{level}", now
        )
        grant.chest_ids.append(chest.id)
    if profile.level > old_level:
        logger.info("User %d levelled up %d -> %d", profile.user_id, old_level, profile.level)

    await db.flush()
    return grant


async def apply_reward(
    db: AsyncSession,
    profile: PlayerProfile,
    reward: Reward,
    *,
    source: str,
    source_id: str,
    description: str,
    now: datetime | None = None,
    tuning: EconomyTuning | None = None,
) -> list[int]:
    """Credit an achievement/challenge reward. Returns ids of any chests it queued."""
    now = now or datetime.now(timezone.utc)
    credit_currency(profile, reward.coins, reward.gems)
    chest_ids: list[int] = []
    if reward.xp:
        grant = await grant_xp(
            db, profile, reward.xp, source, source_id, description,
            idempotency_key=f"{source}:{source_id}:{profile.user_id}",
            now=now, tuning=tuning,
        )
        if grant is not None:
            chest_ids.extend(grant.chest_ids)
    if reward.chest_type:
        chest = await enqueue_chest(db, profile.user_id, reward.chest_type, source, source_id, now)
        chest_ids.append(chest.id)
    profile.updated_at = now
    await db.flush()
    return chest_ids


# ---------------------------------------------------------------------------
# Drives
# ---------------------------------------------------------------------------


async def _check_owned(db: AsyncSession, user_id: int, equipment_type: str, equipment_id: str) -> None:
    result = await db.execute(
        select(EquipmentOwnership.id).where(
            EquipmentOwnership.user_id == user_id,
            EquipmentOwnership.equipment_type == equipment_type,
            EquipmentOwnership.equipment_id == equipment_id,
        )
    )
    if result.scalar_one_or_none() is None:
        msg = f"Drive used a {equipment_type} the player does not own: {equipment_id}"
        raise ValidationError(msg)


async def apply_drive_result(
    db: AsyncSession,
    user_id: int,
    drive: DriveEvent,
    *,
    drive_key: str | None = None,
    today: date | None = None,
    now: datetime | None = None,
    tuning: EconomyTuning | None = None,
) -> ProfileDelta:
    """Apply one drive to the player's profile.

    Raises AlreadyClaimedError if ``drive_key`` was already applied.
    """
    tuning = tuning or EconomyTuning.from_settings()
    now = now or datetime.now(timezone.utc)
    today = today or now.date()

    profile = await get_or_create_profile(db, user_id, for_update=True, now=now)
    if drive_key and await has_ledger_key(db, drive_key):
        msg = f"Drive {drive_key} already applied"
        raise AlreadyClaimedError(msg)

    driver_id = drive.driver_id or profile.equipped_driver_id
    ball_id = drive.ball_id or profile.equipped_ball_id
    await _check_owned(db, user_id, "driver", driver_id)
    await _check_owned(db, user_id, "ball", ball_id)
    if drive.venue_id is not None:
        venue = get_venue(drive.venue_id)
        if not is_unlocked(venue, profile.xp, profile.total_drives, profile.best_distance):
            msg = f"Venue '{venue.venue_id}' is locked for user {user_id}"
            raise ValidationError(msg)
    driver = get_equipment("driver", driver_id)

    xp_before = profile.xp
    streak_before = profile.current_streak
    best_before = profile.best_distance

    profile.total_drives += 1
    if drive.in_bounds and drive.distance > profile.best_distance:
        profile.best_distance = drive.distance

    profile.current_streak, _ = next_streak(
        profile.current_streak, profile.last_played_date, today, tuning.streak_grace_days
    )
    profile.longest_streak = max(profile.longest_streak, profile.current_streak)
    if profile.last_played_date is None or today > profile.last_played_date:
        profile.last_played_date = today

    amount = compute_drive_xp(
        drive.distance, drive.night_mode, profile.current_streak, driver.rarity, drive.in_bounds, tuning
    )
    grant = await grant_xp(
        db, profile, amount, "drive", drive_key, f"{drive.distance} yard drive",
        idempotency_key=drive_key, now=now, tuning=tuning,
    )
    if grant is None:
        # Only reachable if the key was inserted between the check above and now
        msg = f"Drive {drive_key} already applied"
        raise AlreadyClaimedError(msg)

    delta = ProfileDelta(
        xp_gained=amount,
        xp_before=xp_before,
        xp_after=profile.xp,
        old_level=grant.old_level,
        new_level=grant.new_level,
        old_division=grant.old_division,
        new_division=grant.new_division,
        streak_before=streak_before,
        streak_after=profile.current_streak,
        best_distance_before=best_before,
        best_distance_after=profile.best_distance,
        chests_earned=list(grant.chest_ids),
    )

    if delta.new_personal_best and drive.distance >= tuning.personal_best_chest_min_yards:
        chest = await enqueue_chest(
            db, user_id, chest_type_for_distance(drive.distance), "personal_best", f"pb:{drive.distance}", now
        )
        delta.chests_earned.append(chest.id)

    await db.flush()
    return delta


# ---------------------------------------------------------------------------
# Daily login reward
# ---------------------------------------------------------------------------


async def claim_daily_reward(
    db: AsyncSession,
    user_id: int,
    today: date | None = None,
    now: datetime | None = None,
) -> Chest:
    """Queue the once-per-day "daily" chest. Raises AlreadyClaimedError on a repeat."""
    now = now or datetime.now(timezone.utc)
    today = today or now.date()
    profile = await get_or_create_profile(db, user_id, for_update=True, now=now)
    if profile.last_daily_reward_date is not None and profile.last_daily_reward_date >= today:
        msg = f"Daily reward already claimed for {today.isoformat()}"
        raise AlreadyClaimedError(msg)

    profile.last_daily_reward_date = today
    profile.updated_at = now
    return await enqueue_chest(db, user_id, "daily", "daily_reward", today.isoformat(), now)
