"""Drive submission: validate, then run every downstream stage for one drive.

The ledger update is the outcome of "a drive happened" and always commits
with the request. Leaderboard, achievement and challenge stages each run
under their own SAVEPOINT; if one fails it is rolled back on its own, logged,
and reported in ``warnings``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.achievements.evaluator import AchievementEvaluator, count_equipment, snapshot_from_profile
from bomber.challenges.daily import DriveStats, claim
from bomber.database import is_retryable
from bomber.db.models import PlayerProfile
from bomber.drives.schemas import DriveEvent
from bomber.errors import AlreadyClaimedError, ValidationError
from bomber.leaderboard.service import RankInfo, rank_of, record_drive
from bomber.progression.ledger import apply_drive_result, get_or_create_profile
from bomber.progression.tuning import EconomyTuning
from bomber.rewards.catalog import CatalogError, get_venue

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SubmissionResult:
    user_id: int
    profile: PlayerProfile
    xp_gained: int = 0
    level_up: dict[str, int] | None = None
    division_change: dict[str, str] | None = None
    new_achievements: list[str] = field(default_factory=list)
    chests_earned: list[int] = field(default_factory=list)
    challenge_reward: dict[str, Any] | None = None
    new_rank: RankInfo | None = None
    replayed: bool = False
    warnings: list[str] = field(default_factory=list)


def validate_drive(raw_event: DriveEvent | Mapping[str, Any], tuning: EconomyTuning) -> DriveEvent:
    """Parse and range-check a drive. Raises ValidationError; never touches state."""
    if isinstance(raw_event, DriveEvent):
        drive = raw_event
    else:
        try:
            drive = DriveEvent.model_validate(raw_event)
        except PydanticValidationError as exc:
            msg = f"Malformed drive: {exc.errors()[0]['msg']}"
            raise ValidationError(msg) from exc

    if drive.distance > tuning.max_drive_distance_yards:
        msg = f"distance {drive.distance} exceeds {tuning.max_drive_distance_yards} yards"
        raise ValidationError(msg)
    if drive.ball_speed > tuning.max_ball_speed_mph:
        msg = f"ball_speed {drive.ball_speed} exceeds {tuning.max_ball_speed_mph} mph"
        raise ValidationError(msg)
    if abs(drive.wind) > tuning.max_abs_wind_mph or abs(drive.crosswind) > tuning.max_abs_wind_mph:
        msg = f"wind exceeds {tuning.max_abs_wind_mph} mph"
        raise ValidationError(msg)
    if drive.venue_id is not None:
        try:
            get_venue(drive.venue_id)
        except CatalogError:
            msg = f"Unknown venue '{drive.venue_id}'"
            raise ValidationError(msg) from None
    return drive


def drive_key(user_id: int, client_drive_id: str | None) -> str | None:
    """Ledger idempotency key for a client-identified drive."""
    return f"drive:{user_id}:{client_drive_id}" if client_drive_id else None


class DriveSubmission:
    """One drive's trip through ledger → leaderboard → achievements → daily challenge."""

    def __init__(self, db: AsyncSession, user_id: int, drive: DriveEvent, now: datetime, tuning: EconomyTuning):
        self.db = db
        self.user_id = user_id
        self.drive = drive
        self.now = now
        self.tuning = tuning
        self.profile: PlayerProfile | None = None
        self.warnings: list[str] = []

    async def _stage(self, name: str, fn: Callable[[], Awaitable[T]]) -> T | None:
        try:
            async with self.db.begin_nested():
                return await fn()
        except DBAPIError as exc:
            if is_retryable(exc):
                raise
            self._degrade(name)
        except Exception:
            self._degrade(name)
        # Attributes touched inside the rolled-back savepoint are expired
        if self.profile is not None:
            await self.db.refresh(self.profile)
        return None

    def _degrade(self, name: str) -> None:
        logger.warning("Drive stage %s failed for user %d", name, self.user_id, exc_info=True)
        self.warnings.append(f"{name}_failed")

    async def run(self) -> SubmissionResult:
        drive = self.drive
        key = drive_key(self.user_id, drive.client_drive_id)

        try:
            delta = await apply_drive_result(
                self.db, self.user_id, drive, drive_key=key, today=self.now.date(), now=self.now, tuning=self.tuning
            )
        except AlreadyClaimedError:
            logger.info("Replayed drive %s for user %d", key, self.user_id)
            profile = await get_or_create_profile(self.db, self.user_id)
            return SubmissionResult(self.user_id, profile, replayed=True)

        self.profile = profile = await get_or_create_profile(self.db, self.user_id)
        result = SubmissionResult(self.user_id, profile, xp_gained=delta.xp_gained)
        result.chests_earned.extend(delta.chests_earned)
        driver_id = drive.driver_id or profile.equipped_driver_id
        ball_id = drive.ball_id or profile.equipped_ball_id

        async def leaderboard() -> RankInfo | None:
            await record_drive(self.db, self.user_id, drive, driver_id=driver_id, ball_id=ball_id, now=self.now)
            return await rank_of(self.db, self.user_id)

        result.new_rank = await self._stage("leaderboard", leaderboard)

        evaluator = AchievementEvaluator(self.db, self.tuning)

        async def achievements() -> list[str]:
            snapshot = snapshot_from_profile(
                profile,
                last_distance=drive.distance if drive.in_bounds else 0,
                last_night_mode=drive.night_mode,
                equipment_owned=await count_equipment(self.db, self.user_id),
            )
            return await evaluator.evaluate(self.user_id, snapshot, now=self.now)

        unlocked = await self._stage("achievements", achievements)
        if unlocked is not None:
            result.new_achievements = unlocked
            result.chests_earned.extend(evaluator.chests_earned)

        async def daily_challenge() -> Any:
            stats = DriveStats(drive.distance, drive.night_mode, drive.wind, drive.crosswind, drive.in_bounds)
            return await claim(self.db, self.user_id, self.now.date(), stats, now=self.now, tuning=self.tuning)

        claimed = await self._stage("daily_challenge", daily_challenge)
        if claimed is not None and claimed.granted:
            result.challenge_reward = {
                "challenge_id": claimed.challenge.id,
                "title": claimed.challenge.title,
                "coins": claimed.reward["coins"],
                "gems": claimed.reward["gems"],
                "xp": claimed.reward["xp"],
            }
            result.chests_earned.extend(claimed.chests_earned)

        # Achievement and challenge XP can push the level further than the drive alone
        if profile.level > delta.old_level:
            result.level_up = {"old_level": delta.old_level, "new_level": profile.level}
        if profile.division_id != delta.old_division:
            result.division_change = {"old_division": delta.old_division, "new_division": profile.division_id}

        result.warnings = self.warnings
        return result


async def submit_drive(
    db: AsyncSession,
    user_id: int,
    raw_event: DriveEvent | Mapping[str, Any],
    *,
    now: datetime | None = None,
    tuning: EconomyTuning | None = None,
) -> SubmissionResult:
    """Apply one drive. The caller owns the transaction and commits on return."""
    tuning = tuning or EconomyTuning.from_settings()
    drive = validate_drive(raw_event, tuning)
    now = now or datetime.now(timezone.utc)
    return await DriveSubmission(db, user_id, drive, now, tuning).run()
