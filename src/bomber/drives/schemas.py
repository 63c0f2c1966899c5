"""Drive event and submission response models."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from bomber.leaderboard.schemas import RankResponse
from bomber.progression.schemas import ProfileSummary


class DriveEvent(BaseModel):
    """One recorded drive as sent by the game client.

    Range checks that depend on configuration (max distance, ball speed, wind)
    happen in ``drives.orchestrator.validate_drive``.
    """

    distance: int = Field(ge=0, description="Total yards (carry + roll)")
    carry: int | None = Field(default=None, ge=0)
    roll: int | None = None
    ball_speed: float = Field(ge=0)
    launch_angle: float = Field(ge=-10, le=90)
    wind: float = Field(default=0.0, description="mph along the target line; negative is headwind")
    crosswind: float = 0.0
    night_mode: bool = False
    in_bounds: bool = True
    power: float | None = Field(default=None, ge=0, le=100)
    accuracy: float | None = Field(default=None, ge=0, le=100)
    venue_id: str | None = Field(default=None, max_length=64)
    driver_id: str | None = Field(default=None, max_length=64)
    ball_id: str | None = Field(default=None, max_length=64)
    client_drive_id: str | None = Field(default=None, min_length=1, max_length=64)

    @model_validator(mode="after")
    def _carry_plus_roll(self) -> DriveEvent:
        if self.carry is not None and self.roll is not None and abs(self.carry + self.roll - self.distance) > 1:
            msg = "distance must equal carry + roll"
            raise ValueError(msg)
        return self


class LevelChange(BaseModel):
    old_level: int
    new_level: int


class DivisionChange(BaseModel):
    old_division: str
    new_division: str


class ChallengeReward(BaseModel):
    challenge_id: str
    title: str
    coins: int
    gems: int
    xp: int


class SubmissionResponse(BaseModel):
    xp_gained: int
    level_up: LevelChange | None = None
    division_change: DivisionChange | None = None
    new_achievements: list[str] = []
    chests_earned: list[int] = []
    challenge_reward: ChallengeReward | None = None
    new_rank: RankResponse | None = None
    profile: ProfileSummary
    replayed: bool = False
    warnings: list[str] = []
