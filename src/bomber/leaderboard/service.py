"""Leaderboard over the append-only drive log.

Rankings are derived by query on every read. Entries are never edited; a
correction is a new entry. Only in-bounds drives are ranked. Ordering is
deterministic: distance DESC, then earliest ``created_at``, then lowest id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from bomber.db.models import LeaderboardEntry, User
from bomber.leaderboard.periods import calculate_percentile, period_bounds

logger = logging.getLogger(__name__)


@dataclass
class RankInfo:
    user_id: int
    rank: int
    best_distance: int
    total_ranked: int
    percentile: float


async def record_drive(
    db: AsyncSession,
    user_id: int,
    drive: Any,
    *,
    driver_id: str,
    ball_id: str,
    now: datetime | None = None,
) -> LeaderboardEntry:
    """Append one drive to the log."""
    entry = LeaderboardEntry(
        user_id=user_id,
        distance=drive.distance,
        carry=drive.carry,
        roll=drive.roll,
        ball_speed=drive.ball_speed,
        launch_angle=drive.launch_angle,
        wind=drive.wind,
        crosswind=drive.crosswind,
        night_mode=drive.night_mode,
        in_bounds=drive.in_bounds,
        venue_id=drive.venue_id,
        driver_id=driver_id,
        ball_id=ball_id,
        created_at=now or datetime.now(timezone.utc),
    )
    db.add(entry)
    await db.flush()
    return entry


def _filtered(stmt: Select, venue_id: str | None, period: str, now: datetime | None) -> Select:
    stmt = stmt.where(LeaderboardEntry.in_bounds.is_(True))
    if venue_id is not None:
        stmt = stmt.where(LeaderboardEntry.venue_id == venue_id)
    start, end = period_bounds(period, now)
    if start is not None:
        stmt = stmt.where(LeaderboardEntry.created_at >= start, LeaderboardEntry.created_at < end)
    return stmt


_ORDER = (LeaderboardEntry.distance.desc(), LeaderboardEntry.created_at.asc(), LeaderboardEntry.id.asc())


async def top_n(
    db: AsyncSession,
    n: int,
    venue_id: str | None = None,
    period: str = "alltime",
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """The ``n`` longest drives in the window, with the player's name for display."""
    if n <= 0:
        return []
    stmt = _filtered(
        select(LeaderboardEntry, User.username, User.display_name).join(User, User.id == LeaderboardEntry.user_id),
        venue_id, period, now,
    )
    result = await db.execute(stmt.order_by(*_ORDER).limit(n))
    return [
        {
            "rank": idx + 1,
            "entry": row.LeaderboardEntry,
            "username": row.username,
            "display_name": row.display_name or row.username,
        }
        for idx, row in enumerate(result)
    ]


async def rank_of(
    db: AsyncSession,
    user_id: int,
    venue_id: str | None = None,
    period: str = "alltime",
    now: datetime | None = None,
) -> RankInfo | None:
    """1-based position of the player's best drive among every player's best, or None if unranked."""
    per_user = _filtered(
        select(
            LeaderboardEntry.id,
            LeaderboardEntry.user_id,
            LeaderboardEntry.distance,
            LeaderboardEntry.created_at,
            func.row_number().over(partition_by=LeaderboardEntry.user_id, order_by=_ORDER).label("rn"),
        ),
        venue_id, period, now,
    ).subquery()

    bests = select(per_user).where(per_user.c.rn == 1).subquery()
    ranked = select(
        bests.c.user_id,
        bests.c.distance,
        func.row_number().over(
            order_by=(bests.c.distance.desc(), bests.c.created_at.asc(), bests.c.id.asc())
        ).label("rank"),
        func.count().over().label("total"),
    ).subquery()

    result = await db.execute(select(ranked).where(ranked.c.user_id == user_id))
    row = result.one_or_none()
    if row is None:
        return None
    return RankInfo(
        user_id=user_id,
        rank=row.rank,
        best_distance=row.distance,
        total_ranked=row.total,
        percentile=calculate_percentile(row.rank, row.total),
    )


async def personal_top(db: AsyncSession, user_id: int, n: int = 10) -> list[LeaderboardEntry]:
    """The player's own longest in-bounds drives."""
    if n <= 0:
        return []
    result = await db.execute(
        select(LeaderboardEntry)
        .where(LeaderboardEntry.user_id == user_id, LeaderboardEntry.in_bounds.is_(True))
        .order_by(*_ORDER)
        .limit(n)
    )
    return list(result.scalars().all())
