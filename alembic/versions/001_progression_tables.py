"""Progression tables.

Creates users, user_profiles, check_ins, ranks, user_ranks, badges,
user_badges, items, user_items, lottery_draws, points_ledger and
experience_ledger.

Revision ID: 001_progression_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_progression_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            username VARCHAR(64) UNIQUE NOT NULL,
            nickname VARCHAR(64),
            avatar_url TEXT,
            is_banned BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Ranks (per season) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS ranks (
            id BIGSERIAL PRIMARY KEY,
            season INTEGER NOT NULL,
            level INTEGER NOT NULL,
            name VARCHAR(32) NOT NULL,
            min_stars INTEGER NOT NULL,
            max_stars INTEGER NOT NULL,
            required_check_ins INTEGER NOT NULL,
            CONSTRAINT ranks_season_level_key UNIQUE (season, level)
        )
    """)

    # --- Progression snapshot ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_profiles (
            user_id BIGINT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            total_points INTEGER NOT NULL DEFAULT 0,
            current_level INTEGER NOT NULL DEFAULT 1,
            current_exp INTEGER NOT NULL DEFAULT 0,
            next_level_exp INTEGER NOT NULL DEFAULT 100,
            consecutive_check_in_days INTEGER NOT NULL DEFAULT 0,
            total_check_in_days INTEGER NOT NULL DEFAULT 0,
            consecutive_login_days INTEGER NOT NULL DEFAULT 0,
            total_login_days INTEGER NOT NULL DEFAULT 0,
            last_login_date DATE,
            current_rank_id BIGINT REFERENCES ranks(id) ON DELETE SET NULL,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_profiles_points
        ON user_profiles(total_points DESC)
    """)

    # --- Check-ins ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS check_ins (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            check_in_date DATE NOT NULL,
            points_earned INTEGER NOT NULL,
            exp_earned INTEGER NOT NULL,
            consecutive_days INTEGER NOT NULL,
            rank_level INTEGER,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT check_ins_user_id_check_in_date_key UNIQUE (user_id, check_in_date)
        )
    """)

    # --- User ranks ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_ranks (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            rank_id BIGINT NOT NULL REFERENCES ranks(id) ON DELETE CASCADE,
            season INTEGER NOT NULL,
            stars INTEGER NOT NULL DEFAULT 1,
            check_in_count INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_ranks_user_rank_season_key UNIQUE (user_id, rank_id, season)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_ranks_season
        ON user_ranks(season, stars DESC)
    """)

    # --- Badges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS badges (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(64) UNIQUE NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            icon VARCHAR(64) NOT NULL,
            type VARCHAR(16) NOT NULL,
            rarity VARCHAR(16) NOT NULL,
            condition JSONB NOT NULL DEFAULT '{}',
            sort_order INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_badges (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            badge_id BIGINT NOT NULL REFERENCES badges(id) ON DELETE CASCADE,
            achieved_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_badges_user_id_badge_id_key UNIQUE (user_id, badge_id)
        )
    """)

    # --- Items & lottery ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS items (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(64) UNIQUE NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            type VARCHAR(16) NOT NULL,
            effect JSONB NOT NULL DEFAULT '{}',
            icon VARCHAR(64) NOT NULL,
            rarity VARCHAR(16) NOT NULL DEFAULT 'COMMON'
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_items (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            item_id BIGINT NOT NULL REFERENCES items(id) ON DELETE CASCADE,
            quantity INTEGER NOT NULL DEFAULT 1,
            is_used BOOLEAN NOT NULL DEFAULT false,
            used_at TIMESTAMPTZ,
            expires_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_items_user
        ON user_items(user_id, is_used)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS lottery_draws (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            prize_type VARCHAR(16) NOT NULL,
            prize_ref VARCHAR(64),
            prize_name VARCHAR(64) NOT NULL,
            prize_value INTEGER,
            cost INTEGER NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_lottery_draws_user
        ON lottery_draws(user_id, created_at DESC)
    """)

    # --- Ledgers ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS points_ledger (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            amount INTEGER NOT NULL,
            type VARCHAR(16) NOT NULL,
            description VARCHAR(256),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_points_ledger_user
        ON points_ledger(user_id, created_at DESC)
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS experience_ledger (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            amount INTEGER NOT NULL,
            type VARCHAR(16) NOT NULL,
            description VARCHAR(256),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)


def downgrade() -> None:
    for table in (
        "experience_ledger",
        "points_ledger",
        "lottery_draws",
        "user_items",
        "items",
        "user_badges",
        "badges",
        "user_ranks",
        "check_ins",
        "user_profiles",
        "ranks",
        "users",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
