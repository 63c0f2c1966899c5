"""Static reward catalog: equipment, achievements, daily challenges, chests, venues.

All entries are frozen records keyed by id and built at import time. The
equipment and challenge tables match the game client's data file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from bomber.errors import NotFoundError


class CatalogError(NotFoundError):
    """Unknown catalog id."""


class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def rank(self) -> int:
        return _RARITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Rarity):
            return NotImplemented
        return self.rank < other.rank


RARITY_ORDER: tuple[Rarity, ...] = (
    Rarity.COMMON,
    Rarity.UNCOMMON,
    Rarity.RARE,
    Rarity.EPIC,
    Rarity.LEGENDARY,
)
_RARITY_RANK = {r: i for i, r in enumerate(RARITY_ORDER)}

RARITY_COLORS: dict[Rarity, str] = {
    Rarity.COMMON: "#9E9E9E",
    Rarity.UNCOMMON: "#4CAF50",
    Rarity.RARE: "#2196F3",
    Rarity.EPIC: "#9C27B0",
    Rarity.LEGENDARY: "#FF9800",
}

# Coins paid when a chest rolls an item the player already owns.
DUPLICATE_COIN_VALUE: dict[Rarity, int] = {
    Rarity.COMMON: 20,
    Rarity.UNCOMMON: 40,
    Rarity.RARE: 80,
    Rarity.EPIC: 160,
    Rarity.LEGENDARY: 400,
}


# ---------------------------------------------------------------------------
# Equipment
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EquipmentDef:
    id: str
    name: str
    type: str  # "driver" | "ball"
    rarity: Rarity
    description: str
    speed_bonus: int = 0
    accuracy_bonus: int = 0
    distance_bonus: int = 0
    roll_bonus: int = 0
    dupes_to_upgrade: int = 3


EQUIPMENT_TYPES = ("driver", "ball")

DRIVERS: tuple[EquipmentDef, ...] = (
    EquipmentDef("standard", "Standard Driver", "driver", Rarity.COMMON,
                 "A reliable everyday driver.", 0, 0, 0, 0, 3),
    EquipmentDef("power_driver", "Power Driver", "driver", Rarity.UNCOMMON,
                 "More clubhead speed, a little less control.", 5, -3, 3, 1, 4),
    EquipmentDef("precision_driver", "Precision Pro", "driver", Rarity.RARE,
                 "Tight dispersion for finding the fairway.", -2, 8, 1, 0, 5),
    EquipmentDef("titan_driver", "The Titan", "driver", Rarity.EPIC,
                 "Oversized head built for raw distance.", 8, 2, 5, 2, 6),
    EquipmentDef("legend_driver", "Legend's Edge", "driver", Rarity.LEGENDARY,
                 "The driver of long-drive champions.", 12, 5, 8, 3, 8),
)

BALLS: tuple[EquipmentDef, ...] = (
    EquipmentDef("standard", "Standard Ball", "ball", Rarity.COMMON,
                 "A two-piece range ball.", 0, 0, 0, 0, 3),
    EquipmentDef("distance_ball", "Distance Pro", "ball", Rarity.UNCOMMON,
                 "Low spin for extra carry and roll.", 0, 0, 5, 4, 4),
    EquipmentDef("control_ball", "Control Master", "ball", Rarity.RARE,
                 "High spin that stops where it lands.", 0, 3, 2, -3, 5),
    EquipmentDef("tour_ball", "Tour Elite", "ball", Rarity.EPIC,
                 "Tour-grade urethane cover.", 0, 2, 8, 2, 6),
    EquipmentDef("phantom_ball", "Phantom", "ball", Rarity.LEGENDARY,
                 "Nobody knows how it flies this far.", 2, 3, 12, 4, 8),
)

_EQUIPMENT: dict[tuple[str, str], EquipmentDef] = {(e.type, e.id): e for e in DRIVERS + BALLS}

DEFAULT_DRIVER_ID = "standard"
DEFAULT_BALL_ID = "standard"


def get_equipment(equipment_type: str, equipment_id: str) -> EquipmentDef:
    try:
        return _EQUIPMENT[(equipment_type, equipment_id)]
    except KeyError:
        msg = f"Unknown {equipment_type} '{equipment_id}'"
        raise CatalogError(msg) from None


def equipment_of(equipment_type: str, rarity: Rarity) -> list[EquipmentDef]:
    """Items of one type and rarity, in catalog order."""
    return [e for e in _EQUIPMENT.values() if e.type == equipment_type and e.rarity == rarity]


def all_equipment() -> list[EquipmentDef]:
    return list(DRIVERS + BALLS)


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Reward:
    coins: int = 0
    gems: int = 0
    xp: int = 0
    chest_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"coins": self.coins, "gems": self.gems, "xp": self.xp, "chest_type": self.chest_type}


@dataclass(frozen=True)
class AchievementDef:
    id: str
    name: str
    description: str
    icon: str
    color: str
    trigger_type: str
    trigger_config: dict[str, Any] = field(default_factory=dict)
    reward: Reward = Reward()


ACHIEVEMENTS: tuple[AchievementDef, ...] = (
    AchievementDef("first_drive", "First Swing", "Record your first drive", "golf", "#4CAF50",
                   "total_drives", {"threshold": 1}, Reward(coins=25, xp=10)),
    AchievementDef("century_drive", "Century Drive", "Hit a drive of 300 yards or more", "rocket", "#2196F3",
                   "drive_distance", {"min_drives": 1, "distance": 300},
                   Reward(coins=50, gems=1, xp=25, chest_type="silver")),
    AchievementDef("long_bomber", "Long Bomber", "Reach a personal best of 350 yards", "flash", "#9C27B0",
                   "best_distance", {"threshold": 350}, Reward(coins=100, gems=2, xp=50, chest_type="gold")),
    AchievementDef("four_hundred_club", "The 400 Club", "Reach a personal best of 400 yards", "trophy", "#FF9800",
                   "best_distance", {"threshold": 400}, Reward(coins=250, gems=5, xp=100, chest_type="diamond")),
    AchievementDef("night_owl", "Night Owl", "Hit a 280-yard drive under the lights", "moon", "#3F51B5",
                   "night_distance", {"distance": 280}, Reward(coins=60, xp=30)),
    AchievementDef("range_regular", "Range Regular", "Record 50 drives", "repeat", "#607D8B",
                   "total_drives", {"threshold": 50}, Reward(coins=100, xp=50)),
    AchievementDef("range_rat", "Range Rat", "Record 250 drives", "infinite", "#795548",
                   "total_drives", {"threshold": 250}, Reward(coins=300, gems=3, xp=150, chest_type="gold")),
    AchievementDef("hot_streak", "Hot Streak", "Play 3 days in a row", "flame", "#FF5722",
                   "streak", {"threshold": 3}, Reward(coins=40, xp=20)),
    AchievementDef("week_warrior", "Week Warrior", "Play 7 days in a row", "calendar", "#E91E63",
                   "streak", {"threshold": 7}, Reward(coins=120, gems=2, xp=60, chest_type="silver")),
    AchievementDef("level_5", "Rising Star", "Reach level 5", "star-half", "#FFC107",
                   "level", {"threshold": 5}, Reward(coins=75)),
    AchievementDef("level_10", "Seasoned Hitter", "Reach level 10", "star", "#FFC107",
                   "level", {"threshold": 10}, Reward(coins=200, gems=3)),
    AchievementDef("silver_division", "Silver Lining", "Reach the Silver division", "shield-half", "#C0C0C0",
                   "division", {"rank": 1}, Reward(coins=50)),
    AchievementDef("gold_division", "Golden Swing", "Reach the Gold division", "shield", "#FFD700",
                   "division", {"rank": 2}, Reward(coins=150, gems=2)),
    AchievementDef("collector", "Collector", "Own four pieces of equipment", "briefcase", "#009688",
                   "equipment_owned", {"threshold": 4}, Reward(coins=80)),
    AchievementDef("treasure_hunter", "Treasure Hunter", "Open 10 chests", "cube", "#8BC34A",
                   "chests_opened", {"threshold": 10}, Reward(coins=100, gems=1)),
)

_ACHIEVEMENTS = {a.id: a for a in ACHIEVEMENTS}


def get_achievement(achievement_id: str) -> AchievementDef:
    try:
        return _ACHIEVEMENTS[achievement_id]
    except KeyError:
        msg = f"Unknown achievement '{achievement_id}'"
        raise CatalogError(msg) from None


# ---------------------------------------------------------------------------
# Daily challenges
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChallengeDef:
    id: str
    title: str
    description: str
    target_distance: int
    condition: str  # "any" | "night" | "headwind" | "crosswind"
    reward: Reward


CHALLENGES: tuple[ChallengeDef, ...] = (
    ChallengeDef("day_bomber", "Day Bomber", "Hit a 300+ yard drive", 300, "any",
                 Reward(coins=50, xp=30)),
    ChallengeDef("night_lights", "Night Lights", "Hit 280+ in night mode", 280, "night",
                 Reward(coins=60, xp=35, gems=1)),
    ChallengeDef("into_the_wind", "Into the Wind", "Hit 270+ into a headwind", 270, "headwind",
                 Reward(coins=75, xp=40, gems=1)),
    ChallengeDef("power_shot", "Power Shot", "Hit a 330+ yard drive", 330, "any",
                 Reward(coins=80, xp=50, gems=2)),
    ChallengeDef("night_bomber", "Night Bomber", "Hit 320+ in night mode", 320, "night",
                 Reward(coins=100, xp=60, gems=2)),
    ChallengeDef("monster_drive", "Monster Drive", "Hit a 350+ yard drive", 350, "any",
                 Reward(coins=120, xp=75, gems=3)),
    ChallengeDef("headwind_hero", "Headwind Hero", "Hit 300+ into a headwind", 300, "headwind",
                 Reward(coins=100, xp=55, gems=2)),
    ChallengeDef("the_400_club", "The 400 Club", "Hit a 400+ yard drive", 400, "any",
                 Reward(coins=200, xp=100, gems=5)),
    ChallengeDef("crosswind_king", "Crosswind King", "Hit 290+ in a crosswind", 290, "crosswind",
                 Reward(coins=70, xp=40, gems=1)),
    ChallengeDef("night_precision", "Night Precision", "Hit 310+ in night mode", 310, "night",
                 Reward(coins=90, xp=50, gems=2)),
)

_CHALLENGES = {c.id: c for c in CHALLENGES}


def get_challenge(challenge_id: str) -> ChallengeDef:
    try:
        return _CHALLENGES[challenge_id]
    except KeyError:
        msg = f"Unknown challenge '{challenge_id}'"
        raise CatalogError(msg) from None


# ---------------------------------------------------------------------------
# Chest tiers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChestTypeDef:
    id: str
    name: str
    coins: tuple[int, int]
    xp: tuple[int, int]
    equipment_chance: float
    equipment_slots: int
    gem_chance: float
    gems: tuple[int, int]
    rarity_weights: dict[Rarity, float]

    @property
    def coin_floor(self) -> int:
        """Coins every chest of this tier pays regardless of the draw."""
        return self.coins[0]


CHEST_TYPES: tuple[ChestTypeDef, ...] = (
    ChestTypeDef("bronze", "Bronze Chest", (10, 25), (5, 15), 0.10, 1, 0.0, (0, 0),
                 {Rarity.COMMON: 0.85, Rarity.UNCOMMON: 0.15}),
    ChestTypeDef("silver", "Silver Chest", (25, 60), (15, 30), 0.20, 1, 0.05, (1, 3),
                 {Rarity.COMMON: 0.60, Rarity.UNCOMMON: 0.35, Rarity.RARE: 0.05}),
    ChestTypeDef("gold", "Gold Chest", (60, 150), (30, 60), 0.40, 2, 0.15, (2, 5),
                 {Rarity.COMMON: 0.30, Rarity.UNCOMMON: 0.40, Rarity.RARE: 0.25, Rarity.EPIC: 0.05}),
    ChestTypeDef("diamond", "Diamond Chest", (150, 300), (50, 100), 1.0, 2, 0.30, (5, 15),
                 {Rarity.UNCOMMON: 0.20, Rarity.RARE: 0.40, Rarity.EPIC: 0.30, Rarity.LEGENDARY: 0.10}),
    ChestTypeDef("daily", "Daily Chest", (15, 40), (10, 25), 0.15, 1, 0.05, (1, 2),
                 {Rarity.COMMON: 0.70, Rarity.UNCOMMON: 0.25, Rarity.RARE: 0.05}),
)

_CHEST_TYPES = {c.id: c for c in CHEST_TYPES}


def get_chest_type(chest_type: str) -> ChestTypeDef:
    try:
        return _CHEST_TYPES[chest_type]
    except KeyError:
        msg = f"Unknown chest type '{chest_type}'"
        raise CatalogError(msg) from None


def chest_type_for_distance(distance: int) -> str:
    """Chest tier earned by a personal-best drive."""
    if distance >= 380:
        return "diamond"
    if distance >= 330:
        return "gold"
    if distance >= 280:
        return "silver"
    return "bronze"


def chest_type_for_level(level: int) -> str:
    """Chest tier earned on reaching ``level``."""
    if level % 25 == 0:
        return "diamond"
    if level % 10 == 0:
        return "gold"
    if level % 5 == 0:
        return "silver"
    return "bronze"


# ---------------------------------------------------------------------------
# Venues
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VenueDef:
    venue_id: str
    name: str
    tier: str  # "free" | "standard" | "premium" | "legendary"
    hole_number: int
    min_division_rank: int = 0
    min_drives: int = 0
    min_best_distance: int = 0


VENUES: tuple[VenueDef, ...] = (
    VenueDef("driving_range", "Driving Range", "free", 1),
    VenueDef("coastal_links", "Coastal Links", "standard", 7, min_division_rank=1),
    VenueDef("desert_canyon", "Desert Canyon", "standard", 12, min_drives=25),
    VenueDef("alpine_ridge", "Alpine Ridge", "premium", 4, min_division_rank=2, min_best_distance=300),
    VenueDef("midnight_stadium", "Midnight Stadium", "premium", 18, min_division_rank=3),
    VenueDef("volcano_peak", "Volcano Peak", "legendary", 9, min_division_rank=4, min_best_distance=380),
)

_VENUES = {v.venue_id: v for v in VENUES}


def get_venue(venue_id: str) -> VenueDef:
    try:
        return _VENUES[venue_id]
    except KeyError:
        msg = f"Unknown venue '{venue_id}'"
        raise CatalogError(msg) from None
