"""Daily challenge: one challenge per calendar date, claimable once per player."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.db.models import DailyChallengeClaim, LeaderboardEntry
from bomber.progression.ledger import apply_reward, get_or_create_profile
from bomber.progression.tuning import EconomyTuning
from bomber.rewards.catalog import CHALLENGES, ChallengeDef

logger = logging.getLogger(__name__)

# Minimum |crosswind| in mph for the crosswind condition.
CROSSWIND_MIN_MPH = 5.0

GRANTED = "granted"
ALREADY_CLAIMED = "already_claimed"
NOT_QUALIFIED = "not_qualified"


@dataclass(frozen=True)
class DriveStats:
    distance: int
    night_mode: bool = False
    wind: float = 0.0
    crosswind: float = 0.0
    in_bounds: bool = True


@dataclass
class ClaimResult:
    status: str
    challenge: ChallengeDef
    active_date: date
    reward: dict[str, Any] | None = None
    chests_earned: list[int] = field(default_factory=list)

    @property
    def granted(self) -> bool:
        return self.status == GRANTED


def current_challenge(day: date) -> ChallengeDef:
    """The challenge active on ``day``; identical for every player."""
    return CHALLENGES[day.toordinal() % len(CHALLENGES)]


def qualifies(challenge: ChallengeDef, stats: DriveStats) -> bool:
    if not stats.in_bounds or stats.distance < challenge.target_distance:
        return False
    if challenge.condition == "night":
        return stats.night_mode
    if challenge.condition == "headwind":
        return stats.wind < 0
    if challenge.condition == "crosswind":
        return abs(stats.crosswind) >= CROSSWIND_MIN_MPH
    return True


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


async def get_claim(db: AsyncSession, user_id: int, day: date) -> DailyChallengeClaim | None:
    result = await db.execute(
        select(DailyChallengeClaim).where(
            DailyChallengeClaim.user_id == user_id,
            DailyChallengeClaim.active_date == day,
        )
    )
    return result.scalar_one_or_none()


async def drives_on(db: AsyncSession, user_id: int, day: date) -> list[DriveStats]:
    """The player's recorded drives on ``day`` (UTC), longest first."""
    start, end = _day_bounds(day)
    result = await db.execute(
        select(LeaderboardEntry)
        .where(
            LeaderboardEntry.user_id == user_id,
            LeaderboardEntry.created_at >= start,
            LeaderboardEntry.created_at < end,
        )
        .order_by(LeaderboardEntry.distance.desc(), LeaderboardEntry.id.asc())
    )
    return [
        DriveStats(e.distance, e.night_mode, e.wind, e.crosswind, e.in_bounds)
        for e in result.scalars()
    ]


async def best_drive_on(db: AsyncSession, user_id: int, day: date) -> DriveStats | None:
    """A drive from ``day`` that meets that day's challenge, else the longest drive, else None."""
    drives = await drives_on(db, user_id, day)
    challenge = current_challenge(day)
    for stats in drives:
        if qualifies(challenge, stats):
            return stats
    return drives[0] if drives else None


async def claim(
    db: AsyncSession,
    user_id: int,
    day: date,
    stats: DriveStats | None,
    *,
    now: datetime | None = None,
    tuning: EconomyTuning | None = None,
) -> ClaimResult:
    """Grant the day's challenge reward if ``stats`` meets it and it is unclaimed."""
    challenge = current_challenge(day)

    existing = await get_claim(db, user_id, day)
    if existing is not None:
        return ClaimResult(ALREADY_CLAIMED, challenge, day, existing.reward)
    if stats is None or not qualifies(challenge, stats):
        return ClaimResult(NOT_QUALIFIED, challenge, day)

    now = now or datetime.now(timezone.utc)
    profile = await get_or_create_profile(db, user_id, for_update=True, now=now)
    reward = challenge.reward.to_dict()
    try:
        async with db.begin_nested():
            db.add(DailyChallengeClaim(
                user_id=user_id,
                active_date=day,
                challenge_id=challenge.id,
                reward=reward,
                claimed_at=now,
            ))
    except IntegrityError:
        logger.info("Daily challenge for %s already claimed by user %d", day, user_id)
        existing = await get_claim(db, user_id, day)
        return ClaimResult(ALREADY_CLAIMED, challenge, day, existing.reward if existing else reward)

    chests = await apply_reward(
        db, profile, challenge.reward,
        source="daily_challenge", source_id=day.isoformat(),
        description=f"Daily challenge: {challenge.title}",
        now=now, tuning=tuning,
    )
    logger.info("User %d completed daily challenge %s for %s", user_id, challenge.id, day)
    return ClaimResult(GRANTED, challenge, day, reward, chests)


async def challenge_status(db: AsyncSession, user_id: int, day: date) -> dict[str, Any]:
    challenge = current_challenge(day)
    existing = await get_claim(db, user_id, day)
    return {
        "active_date": day,
        "challenge": challenge,
        "claimed": existing is not None,
        "reward": existing.reward if existing else None,
        "claimed_at": existing.claimed_at if existing else None,
    }
