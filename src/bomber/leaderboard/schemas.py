"""Pydantic response models for leaderboard endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class LeaderboardEntryResponse(BaseModel):
    rank: int
    entry_id: int
    user_id: int
    username: str
    display_name: str
    distance: int
    ball_speed: float
    launch_angle: float
    wind: float
    night_mode: bool
    venue_id: str | None = None
    driver_id: str
    ball_id: str
    created_at: datetime


class LeaderboardResponse(BaseModel):
    period: str
    venue_id: str | None = None
    entries: list[LeaderboardEntryResponse]


class RankResponse(BaseModel):
    user_id: int
    rank: int | None = None
    best_distance: int | None = None
    total_ranked: int = 0
    percentile: float | None = None
    ranked: bool = False


class PersonalDrive(BaseModel):
    entry_id: int
    distance: int
    ball_speed: float
    launch_angle: float
    wind: float
    night_mode: bool
    venue_id: str | None = None
    created_at: datetime


class PersonalTopResponse(BaseModel):
    user_id: int
    drives: list[PersonalDrive]
