"""Level curve: cumulative XP to level.

Level ``n`` needs ``round(base * n * growth)`` XP to reach ``n + 1``, so each
level costs more than the last. The game client uses the same constants.
"""

from __future__ import annotations

DEFAULT_BASE = 100
DEFAULT_GROWTH = 1.5


def xp_for_level(level: int, base: int = DEFAULT_BASE, growth: float = DEFAULT_GROWTH) -> int:
    """XP needed to advance from ``level`` to ``level + 1``."""
    if level < 1:
        msg = f"level must be >= 1, got {level}"
        raise ValueError(msg)
    return max(1, round(base * level * growth))


def compute_level(xp: int, base: int = DEFAULT_BASE, growth: float = DEFAULT_GROWTH) -> dict:
    """Compute level info from cumulative XP.

    Returns ``level`` (>= 1), ``current_xp_in_level`` (>= 0) and
    ``xp_required_for_next_level`` (> 0).
    """
    if xp < 0:
        msg = f"xp must be >= 0, got {xp}"
        raise ValueError(msg)

    level = 1
    remaining = xp
    needed = xp_for_level(level, base, growth)
    while remaining >= needed:
        remaining -= needed
        level += 1
        needed = xp_for_level(level, base, growth)

    return {
        "level": level,
        "current_xp_in_level": remaining,
        "xp_required_for_next_level": needed,
    }


def cumulative_xp_for_level(level: int, base: int = DEFAULT_BASE, growth: float = DEFAULT_GROWTH) -> int:
    """Total XP at which ``level`` is reached."""
    return sum(xp_for_level(n, base, growth) for n in range(1, level))


def level_table(
    max_level: int = 50,
    base: int = DEFAULT_BASE,
    growth: float = DEFAULT_GROWTH,
) -> list[dict]:
    """Thresholds for levels 1..max_level, for display."""
    table = []
    cumulative = 0
    for level in range(1, max_level + 1):
        required = xp_for_level(level, base, growth)
        table.append({"level": level, "xp_required": required, "cumulative": cumulative})
        cumulative += required
    return table
