"""Pydantic response models for progression endpoints."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel

from bomber.db.models import PlayerProfile
from bomber.progression.divisions import Division, division_from_xp, next_division, xp_to_next_division
from bomber.progression.level_curve import compute_level
from bomber.progression.tuning import EconomyTuning


# --- Divisions ---


class DivisionResponse(BaseModel):
    id: str
    name: str
    color: str
    icon: str
    min_xp: int

    @classmethod
    def from_division(cls, division: Division) -> DivisionResponse:
        return cls(id=division.id, name=division.name, color=division.color, icon=division.icon,
                   min_xp=division.min_xp)


class AllDivisionsResponse(BaseModel):
    divisions: list[DivisionResponse]


# --- Levels ---


class LevelInfo(BaseModel):
    level: int
    current_xp_in_level: int
    xp_required_for_next_level: int


class LevelEntry(BaseModel):
    level: int
    xp_required: int
    cumulative: int


class AllLevelsResponse(BaseModel):
    levels: list[LevelEntry]


# --- Profile ---


class ProfileSummary(BaseModel):
    user_id: int
    xp: int
    level_info: LevelInfo
    division: DivisionResponse
    next_division: DivisionResponse | None = None
    xp_to_next_division: int | None = None
    coins: int
    gems: int
    total_drives: int
    best_distance: int
    current_streak: int
    longest_streak: int
    last_played_date: date | None = None
    last_daily_reward_date: date | None = None
    equipped_driver_id: str
    equipped_ball_id: str
    chests_opened: int

    @classmethod
    def from_profile(cls, profile: PlayerProfile, tuning: EconomyTuning | None = None) -> ProfileSummary:
        """Build from a profile row. Level and division are recomputed from xp, not read from the cache."""
        tuning = tuning or EconomyTuning.from_settings()
        nxt = next_division(profile.xp)
        return cls(
            user_id=profile.user_id,
            xp=profile.xp,
            level_info=LevelInfo(**compute_level(profile.xp, tuning.level_xp_base, tuning.level_xp_growth)),
            division=DivisionResponse.from_division(division_from_xp(profile.xp)),
            next_division=DivisionResponse.from_division(nxt) if nxt else None,
            xp_to_next_division=xp_to_next_division(profile.xp),
            coins=profile.coins,
            gems=profile.gems,
            total_drives=profile.total_drives,
            best_distance=profile.best_distance,
            current_streak=profile.current_streak,
            longest_streak=profile.longest_streak,
            last_played_date=profile.last_played_date,
            last_daily_reward_date=profile.last_daily_reward_date,
            equipped_driver_id=profile.equipped_driver_id,
            equipped_ball_id=profile.equipped_ball_id,
            chests_opened=profile.chests_opened,
        )


# --- Venues ---


class VenueResponse(BaseModel):
    venue_id: str
    name: str
    tier: str
    hole_number: int
    min_division: str
    min_drives: int
    min_best_distance: int


class AllVenuesResponse(BaseModel):
    venues: list[VenueResponse]


class VenueUnlocksResponse(BaseModel):
    user_id: int
    unlocked: list[VenueResponse]
    locked: list[VenueResponse]
