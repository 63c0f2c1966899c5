"""Bomber economy tables.

Creates users, player_profiles, equipment_ownership, chests,
leaderboard_entries, achievement_unlocks, daily_challenge_claims
and xp_ledger.

Revision ID: 001_bomber_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_bomber_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            username VARCHAR(64) UNIQUE NOT NULL,
            display_name VARCHAR(64),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Player Profiles ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS player_profiles (
            user_id BIGINT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            xp BIGINT NOT NULL DEFAULT 0 CHECK (xp >= 0),
            coins BIGINT NOT NULL DEFAULT 0 CHECK (coins >= 0),
            gems BIGINT NOT NULL DEFAULT 0 CHECK (gems >= 0),
            total_drives INTEGER NOT NULL DEFAULT 0,
            best_distance INTEGER NOT NULL DEFAULT 0,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_played_date DATE,
            last_daily_reward_date DATE,
            equipped_driver_id VARCHAR(64) NOT NULL DEFAULT 'standard',
            equipped_ball_id VARCHAR(64) NOT NULL DEFAULT 'standard',
            chests_opened INTEGER NOT NULL DEFAULT 0,
            level INTEGER NOT NULL DEFAULT 1,
            division_id VARCHAR(16) NOT NULL DEFAULT 'bronze',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Equipment Ownership ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS equipment_ownership (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            equipment_type VARCHAR(8) NOT NULL,
            equipment_id VARCHAR(64) NOT NULL,
            rarity VARCHAR(16) NOT NULL,
            level INTEGER NOT NULL DEFAULT 1,
            duplicates_owned INTEGER NOT NULL DEFAULT 0,
            acquired_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT equipment_ownership_user_type_item_key
                UNIQUE (user_id, equipment_type, equipment_id)
        )
    """)

    # --- Chests ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS chests (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            chest_type VARCHAR(16) NOT NULL,
            source VARCHAR(32) NOT NULL,
            source_id VARCHAR(128),
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            opened_at TIMESTAMPTZ,
            contents JSONB
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_chests_user_pending
        ON chests(user_id, opened_at)
    """)

    # --- Leaderboard Entries ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS leaderboard_entries (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            distance INTEGER NOT NULL,
            carry INTEGER,
            roll INTEGER,
            ball_speed DOUBLE PRECISION NOT NULL,
            launch_angle DOUBLE PRECISION NOT NULL,
            wind DOUBLE PRECISION NOT NULL,
            crosswind DOUBLE PRECISION NOT NULL DEFAULT 0,
            night_mode BOOLEAN NOT NULL,
            in_bounds BOOLEAN NOT NULL DEFAULT true,
            venue_id VARCHAR(64),
            driver_id VARCHAR(64) NOT NULL,
            ball_id VARCHAR(64) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_leaderboard_distance
        ON leaderboard_entries(distance DESC, created_at)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_leaderboard_venue_distance
        ON leaderboard_entries(venue_id, distance DESC)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_leaderboard_user
        ON leaderboard_entries(user_id, created_at)
    """)

    # --- Achievement Unlocks ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievement_unlocks (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            achievement_id VARCHAR(64) NOT NULL,
            unlocked_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT achievement_unlocks_user_achievement_key
                UNIQUE (user_id, achievement_id)
        )
    """)

    # --- Daily Challenge Claims ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS daily_challenge_claims (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            active_date DATE NOT NULL,
            challenge_id VARCHAR(32) NOT NULL,
            reward JSONB NOT NULL,
            claimed_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT daily_challenge_claims_user_date_key
                UNIQUE (user_id, active_date)
        )
    """)

    # --- XP Ledger ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS xp_ledger (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            amount INTEGER NOT NULL,
            source VARCHAR(32) NOT NULL,
            source_id VARCHAR(128),
            description VARCHAR(256),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            idempotency_key VARCHAR(256) UNIQUE
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_xp_ledger_user
        ON xp_ledger(user_id, created_at DESC)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS xp_ledger CASCADE")
    op.execute("DROP TABLE IF EXISTS daily_challenge_claims CASCADE")
    op.execute("DROP TABLE IF EXISTS achievement_unlocks CASCADE")
    op.execute("DROP TABLE IF EXISTS leaderboard_entries CASCADE")
    op.execute("DROP TABLE IF EXISTS chests CASCADE")
    op.execute("DROP TABLE IF EXISTS equipment_ownership CASCADE")
    op.execute("DROP TABLE IF EXISTS player_profiles CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
