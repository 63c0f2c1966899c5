"""Leaderboard time windows (UTC)."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

PERIODS = ("daily", "weekly", "monthly", "alltime")


def get_monday(dt: datetime | date) -> date:
    """Get the Monday of the ISO week containing dt."""
    d = dt.date() if isinstance(dt, datetime) else dt
    return d - timedelta(days=d.weekday())


def period_bounds(period: str, now: datetime | None = None) -> tuple[datetime | None, datetime | None]:
    """``[start, end)`` of the window containing ``now``; ``(None, None)`` for all-time."""
    if period not in PERIODS:
        msg = f"period must be one of {PERIODS}, got {period!r}"
        raise ValueError(msg)
    if period == "alltime":
        return None, None

    if now is None:
        now = datetime.now(timezone.utc)
    today = now.date()

    if period == "daily":
        start_day, end_day = today, today + timedelta(days=1)
    elif period == "weekly":
        start_day = get_monday(today)
        end_day = start_day + timedelta(days=7)
    else:
        start_day = today.replace(day=1)
        end_day = (start_day + timedelta(days=32)).replace(day=1)

    return (
        datetime.combine(start_day, time.min, tzinfo=timezone.utc),
        datetime.combine(end_day, time.min, tzinfo=timezone.utc),
    )


def calculate_percentile(rank: int, total: int) -> float:
    """Calculate percentile from rank and total participants.

    Rank 1 out of 100 → 99.0 (top 1%)
    Rank 50 out of 100 → 50.0 (median)
    Rank 100 out of 100 → 0.0 (bottom)
    """
    if total <= 0 or rank <= 0:
        return 0.0
    return round(100 - (rank / total * 100), 2)
