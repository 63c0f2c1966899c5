"""Division ladder: cumulative XP to a named rank tier."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Division:
    id: str
    name: str
    color: str
    icon: str
    min_xp: int
    rank: int


# Sorted ascending by min_xp; the first entry must start at 0.
DIVISIONS: tuple[Division, ...] = (
    Division("bronze", "Bronze", "#CD7F32", "shield-outline", 0, 0),
    Division("silver", "Silver", "#C0C0C0", "shield-half-outline", 500, 1),
    Division("gold", "Gold", "#FFD700", "shield", 2000, 2),
    Division("platinum", "Platinum", "#E5E4E2", "diamond-outline", 5000, 3),
    Division("diamond", "Diamond", "#B9F2FF", "diamond", 15000, 4),
    Division("legend", "Legend", "#FF4500", "flame", 50000, 5),
)

_BY_ID = {d.id: d for d in DIVISIONS}


def division_from_xp(xp: int) -> Division:
    """Highest division whose ``min_xp`` is at or below ``xp``."""
    current = DIVISIONS[0]
    for division in DIVISIONS:
        if division.min_xp <= xp:
            current = division
        else:
            break
    return current


def next_division(xp: int) -> Division | None:
    """The division above the current one, or None at the top of the ladder."""
    rank = division_from_xp(xp).rank
    if rank + 1 >= len(DIVISIONS):
        return None
    return DIVISIONS[rank + 1]


def xp_to_next_division(xp: int) -> int | None:
    nxt = next_division(xp)
    return None if nxt is None else nxt.min_xp - xp


def get_division(division_id: str) -> Division | None:
    return _BY_ID.get(division_id)
