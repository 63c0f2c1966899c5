"""Consecutive-day play streaks."""

from __future__ import annotations

from datetime import date


def next_streak(
    current: int,
    last_played: date | None,
    today: date,
    grace_days: int = 0,
) -> tuple[int, bool]:
    """Return ``(new_streak, changed)`` for a play on ``today``.

    Same day leaves the streak alone, the next day (plus up to ``grace_days``
    skipped days) extends it, anything longer starts over at 1. A clock that
    moved backwards is treated as the same day.
    """
    if last_played is None or current <= 0:
        return 1, True

    gap = (today - last_played).days
    if gap <= 0:
        return current, False
    if gap <= 1 + grace_days:
        return current + 1, True
    return 1, True
