"""ORM models for the Bomber progression & rewards economy.

Postgres schema is created by the Alembic migration in ``alembic/versions``;
SQLite databases (local runs, tests) are built from this metadata directly.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from bomber.db.base import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
BigId = BigInteger().with_variant(Integer(), "sqlite")
JsonDoc = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------------------------------------------------------
# Users (projection of the external account store)
# ---------------------------------------------------------------------------


class User(Base):
    """Maps to the 'users' table."""

    __tablename__ = "users"
    __table_args__ = {"extend_existing": True}  # noqa: RUF012

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Player state
# ---------------------------------------------------------------------------


class PlayerProfile(Base):
    """Single row per player. ``level`` and ``division_id`` are display caches of ``xp``."""

    __tablename__ = "player_profiles"
    __table_args__ = {"extend_existing": True}  # noqa: RUF012

    user_id: Mapped[int] = mapped_column(
        BigId, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    xp: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")
    coins: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")
    gems: Mapped[int] = mapped_column(BigInteger, nullable=False, server_default="0")
    total_drives: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    best_distance: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    last_played_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_daily_reward_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    equipped_driver_id: Mapped[str] = mapped_column(String(64), nullable=False, server_default="standard")
    equipped_ball_id: Mapped[str] = mapped_column(String(64), nullable=False, server_default="standard")
    chests_opened: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    level: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    division_id: Mapped[str] = mapped_column(String(16), nullable=False, server_default="bronze")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class EquipmentOwnership(Base):
    """Owned equipment. A row exists iff the item is owned; duplicates bump a counter."""

    __tablename__ = "equipment_ownership"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "equipment_type", "equipment_id",
            name="equipment_ownership_user_type_item_key",
        ),
        {"extend_existing": True},
    )

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    equipment_type: Mapped[str] = mapped_column(String(8), nullable=False)
    equipment_id: Mapped[str] = mapped_column(String(64), nullable=False)
    rarity: Mapped[str] = mapped_column(String(16), nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    duplicates_owned: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    acquired_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class Chest(Base):
    """Earned reward container. ``contents`` stays NULL until ``opened_at`` is set."""

    __tablename__ = "chests"
    __table_args__ = (
        Index("idx_chests_user_pending", "user_id", "opened_at"),
        {"extend_existing": True},
    )

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    chest_type: Mapped[str] = mapped_column(String(16), nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    source_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    opened_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    contents: Mapped[dict[str, Any] | None] = mapped_column(JsonDoc, nullable=True)


# ---------------------------------------------------------------------------
# Leaderboard (append-only drive log)
# ---------------------------------------------------------------------------


class LeaderboardEntry(Base):
    """One row per recorded drive. Never updated."""

    __tablename__ = "leaderboard_entries"
    __table_args__ = (
        Index("idx_leaderboard_distance", "distance", "created_at"),
        Index("idx_leaderboard_venue_distance", "venue_id", "distance"),
        Index("idx_leaderboard_user", "user_id", "created_at"),
        {"extend_existing": True},
    )

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    distance: Mapped[int] = mapped_column(Integer, nullable=False)
    carry: Mapped[int | None] = mapped_column(Integer, nullable=True)
    roll: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ball_speed: Mapped[float] = mapped_column(Float, nullable=False)
    launch_angle: Mapped[float] = mapped_column(Float, nullable=False)
    wind: Mapped[float] = mapped_column(Float, nullable=False)
    crosswind: Mapped[float] = mapped_column(Float, nullable=False, server_default="0")
    night_mode: Mapped[bool] = mapped_column(Boolean, nullable=False)
    in_bounds: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    venue_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    driver_id: Mapped[str] = mapped_column(String(64), nullable=False)
    ball_id: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# One-time grants
# ---------------------------------------------------------------------------


class AchievementUnlock(Base):
    """UNIQUE(user_id, achievement_id) is what makes achievement grants at-most-once."""

    __tablename__ = "achievement_unlocks"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="achievement_unlocks_user_achievement_key"),
        {"extend_existing": True},
    )

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    achievement_id: Mapped[str] = mapped_column(String(64), nullable=False)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class DailyChallengeClaim(Base):
    """UNIQUE(user_id, active_date): one challenge reward per player per day."""

    __tablename__ = "daily_challenge_claims"
    __table_args__ = (
        UniqueConstraint("user_id", "active_date", name="daily_challenge_claims_user_date_key"),
        {"extend_existing": True},
    )

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    active_date: Mapped[date] = mapped_column(Date, nullable=False)
    challenge_id: Mapped[str] = mapped_column(String(32), nullable=False)
    reward: Mapped[dict[str, Any]] = mapped_column(JsonDoc, nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class XPLedger(Base):
    """Immutable XP transaction log with idempotency key."""

    __tablename__ = "xp_ledger"
    __table_args__ = {"extend_existing": True}  # noqa: RUF012

    id: Mapped[int] = mapped_column(BigId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    source_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str | None] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    idempotency_key: Mapped[str | None] = mapped_column(String(256), unique=True, nullable=True)
