"""ORM models for users, progression state, static catalogs and ledgers.

Tables are created by the Alembic migration in ``alembic/versions``; the
same metadata is used with ``create_all`` against SQLite in tests.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ladder.db.base import Base, BigIntId, JSONType


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Maps to the 'users' table. Credentials live with the auth provider."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    nickname: Mapped[str | None] = mapped_column(String(64), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_banned: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    profile: Mapped[UserProfile | None] = relationship("UserProfile", back_populates="user", uselist=False)


class UserProfile(Base):
    """Progression snapshot. One row per user, read and written per operation."""

    __tablename__ = "user_profiles"

    user_id: Mapped[int] = mapped_column(
        BigIntId, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    current_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    current_exp: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    next_level_exp: Mapped[int] = mapped_column(Integer, nullable=False, default=100, server_default="100")
    consecutive_check_in_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_check_in_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    consecutive_login_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_login_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_login_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    current_rank_id: Mapped[int | None] = mapped_column(
        BigIntId, ForeignKey("ranks.id", ondelete="SET NULL"), nullable=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user: Mapped[User] = relationship("User", back_populates="profile")


# ---------------------------------------------------------------------------
# Check-ins
# ---------------------------------------------------------------------------


class CheckIn(Base):
    """Immutable daily check-in. UNIQUE(user_id, check_in_date) enforces one per UTC day."""

    __tablename__ = "check_ins"
    __table_args__ = (
        UniqueConstraint("user_id", "check_in_date", name="check_ins_user_id_check_in_date_key"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    check_in_date: Mapped[date] = mapped_column(Date, nullable=False)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False)
    exp_earned: Mapped[int] = mapped_column(Integer, nullable=False)
    consecutive_days: Mapped[int] = mapped_column(Integer, nullable=False)
    # Rank tier held when the check-in was made; drives inactivity demotion.
    rank_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


# ---------------------------------------------------------------------------
# Ranks
# ---------------------------------------------------------------------------


class Rank(Base):
    """Rank tier seeded per season, read-only once seeded."""

    __tablename__ = "ranks"
    __table_args__ = (
        UniqueConstraint("season", "level", name="ranks_season_level_key"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(32), nullable=False)
    min_stars: Mapped[int] = mapped_column(Integer, nullable=False)
    max_stars: Mapped[int] = mapped_column(Integer, nullable=False)
    required_check_ins: Mapped[int] = mapped_column(Integer, nullable=False)


class UserRank(Base):
    """Per-user, per-rank, per-season progress. Only the current season's row is mutated."""

    __tablename__ = "user_ranks"
    __table_args__ = (
        UniqueConstraint("user_id", "rank_id", "season", name="user_ranks_user_rank_season_key"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    rank_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("ranks.id", ondelete="CASCADE"), nullable=False)
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    stars: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    check_in_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    rank: Mapped[Rank] = relationship("Rank", lazy="joined")


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------


class Badge(Base):
    """Badge definitions, seeded idempotently on startup."""

    __tablename__ = "badges"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    icon: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    rarity: Mapped[str] = mapped_column(String(16), nullable=False)
    condition: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class UserBadge(Base):
    """Badges earned by users. UNIQUE(user_id, badge_id) prevents double awards."""

    __tablename__ = "user_badges"
    __table_args__ = (
        UniqueConstraint("user_id", "badge_id", name="user_badges_user_id_badge_id_key"),
    )

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    badge_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("badges.id", ondelete="CASCADE"), nullable=False)
    achieved_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    badge: Mapped[Badge] = relationship("Badge", lazy="joined")


# ---------------------------------------------------------------------------
# Items & Lottery
# ---------------------------------------------------------------------------


class Item(Base):
    """Inventory item definition, created on first grant."""

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    effect: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    icon: Mapped[str] = mapped_column(String(64), nullable=False)
    rarity: Mapped[str] = mapped_column(String(16), nullable=False, default="COMMON")


class UserItem(Base):
    """A stack of one item in a user's inventory."""

    __tablename__ = "user_items"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    item_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("items.id", ondelete="CASCADE"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    is_used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    item: Mapped[Item] = relationship("Item", lazy="joined")


class LotteryDraw(Base):
    """One resolved lottery draw."""

    __tablename__ = "lottery_draws"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    prize_type: Mapped[str] = mapped_column(String(16), nullable=False)
    prize_ref: Mapped[str | None] = mapped_column(String(64), nullable=True)
    prize_name: Mapped[str] = mapped_column(String(64), nullable=False)
    prize_value: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cost: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Ledgers
# ---------------------------------------------------------------------------


class PointLedger(Base):
    """Append-only audit trail of point deltas."""

    __tablename__ = "points_ledger"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    description: Mapped[str | None] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ExperienceLedger(Base):
    """Append-only audit trail of experience gains and level-ups."""

    __tablename__ = "experience_ledger"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    description: Mapped[str | None] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
