"""Venue unlocks, derived from profile stats. Nothing here is stored."""

from __future__ import annotations

from bomber.progression.divisions import division_from_xp
from bomber.rewards.catalog import VENUES, VenueDef


def is_unlocked(venue: VenueDef, xp: int, total_drives: int, best_distance: int) -> bool:
    return (
        division_from_xp(xp).rank >= venue.min_division_rank
        and total_drives >= venue.min_drives
        and best_distance >= venue.min_best_distance
    )


def unlocked_venues(xp: int, total_drives: int, best_distance: int) -> list[VenueDef]:
    """Venues the player can play, in catalog order. The driving range is always open."""
    return [v for v in VENUES if is_unlocked(v, xp, total_drives, best_distance)]
