"""Economy knobs as an immutable value the pure functions accept."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from bomber.config import Settings, get_settings
from bomber.rewards.catalog import ChestTypeDef, Rarity


@dataclass(frozen=True)
class EconomyTuning:
    max_drive_distance_yards: int = 500
    max_ball_speed_mph: float = 250.0
    max_abs_wind_mph: float = 60.0
    level_xp_base: int = 100
    level_xp_growth: float = 1.5
    base_drive_xp: int = 10
    yards_per_xp: int = 10
    night_mode_bonus_pct: int = 25
    streak_bonus_per_day: int = 2
    streak_bonus_cap_days: int = 5
    rarity_xp_bonus: int = 2
    streak_grace_days: int = 0
    upgrade_coin_cost: int = 50
    personal_best_chest_min_yards: int = 280
    chest_rarity_weights: Mapping[str, Mapping[Rarity, float]] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> EconomyTuning:
        settings = settings or get_settings()
        return cls(
            max_drive_distance_yards=settings.max_drive_distance_yards,
            max_ball_speed_mph=settings.max_ball_speed_mph,
            max_abs_wind_mph=settings.max_abs_wind_mph,
            level_xp_base=settings.level_xp_base,
            level_xp_growth=settings.level_xp_growth,
            base_drive_xp=settings.base_drive_xp,
            yards_per_xp=settings.yards_per_xp,
            night_mode_bonus_pct=settings.night_mode_bonus_pct,
            streak_bonus_per_day=settings.streak_bonus_per_day,
            streak_bonus_cap_days=settings.streak_bonus_cap_days,
            rarity_xp_bonus=settings.rarity_xp_bonus,
            streak_grace_days=settings.streak_grace_days,
            upgrade_coin_cost=settings.upgrade_coin_cost,
            personal_best_chest_min_yards=settings.personal_best_chest_min_yards,
            chest_rarity_weights=settings.chest_rarity_weights,
        )

    def rarity_weights(self, chest_type: ChestTypeDef) -> Mapping[Rarity, float]:
        """Configured weights for a chest tier, falling back to the catalog's."""
        return self.chest_rarity_weights.get(chest_type.id) or chest_type.rarity_weights
