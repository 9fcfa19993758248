"""Rank ladder: tier table and pure promotion/inheritance/demotion rules.

13 tiers. Tier 13 (Legendary) is terminal: it never promotes and its
star count is unbounded (stored as ``LEGENDARY_MAX_STARS``).
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime, timezone
from types import MappingProxyType

LEGENDARY_RANK_LEVEL = 13
LEGENDARY_MAX_STARS = 999_999
CHECK_INS_PER_STAR = 10


@dataclass(frozen=True)
class RankTier:
    level: int
    name: str
    min_stars: int
    max_stars: int
    required_check_ins: int

    @property
    def is_legendary(self) -> bool:
        return self.level == LEGENDARY_RANK_LEVEL


class RankLadder:
    """Read-only ordered tier table keyed by level."""

    def __init__(self, tiers: Iterable[RankTier]) -> None:
        ordered = sorted(tiers, key=lambda t: t.level)
        if not ordered:
            raise ValueError("A rank ladder needs at least one tier")
        levels = [t.level for t in ordered]
        if len(set(levels)) != len(levels):
            raise ValueError("Rank tier levels must be unique")
        self._tiers = tuple(ordered)
        self._by_level = MappingProxyType({t.level: t for t in ordered})

    def __iter__(self) -> Iterator[RankTier]:
        return iter(self._tiers)

    def __len__(self) -> int:
        return len(self._tiers)

    def get(self, level: int) -> RankTier | None:
        return self._by_level.get(level)

    def next_tier(self, level: int) -> RankTier | None:
        """Tier above ``level``, or None at the top of the ladder."""
        if level >= LEGENDARY_RANK_LEVEL:
            return None
        return self._by_level.get(level + 1)

    @property
    def lowest(self) -> RankTier:
        return self._tiers[0]


DEFAULT_LADDER = RankLadder([
    RankTier(1, "倔强黑铁", 1, 2, 10),
    RankTier(2, "不屈白银", 1, 3, 20),
    RankTier(3, "黄金", 1, 5, 30),
    RankTier(4, "白金", 1, 5, 40),
    RankTier(5, "钻石", 1, 5, 50),
    RankTier(6, "星耀", 1, 5, 60),
    RankTier(7, "不凡大师", 1, 5, 70),
    RankTier(8, "宗师", 1, 5, 80),
    RankTier(9, "最强王者", 1, 5, 90),
    RankTier(10, "非凡王者", 1, 5, 100),
    RankTier(11, "至圣王者", 1, 5, 110),
    RankTier(12, "荣耀王者", 1, 5, 120),
    RankTier(LEGENDARY_RANK_LEVEL, "传奇王者", 1, LEGENDARY_MAX_STARS, 0),
])


def can_upgrade_star(rank_level: int, current_stars: int, max_stars: int) -> bool:
    """Legendary stars are unlimited; other tiers stop at ``max_stars``."""
    if rank_level == LEGENDARY_RANK_LEVEL or max_stars >= LEGENDARY_MAX_STARS:
        return True
    return current_stars < max_stars


def star_threshold(current_stars: int) -> int:
    """Check-ins (within the current rank) needed to reach the next star."""
    return (current_stars + 1) * CHECK_INS_PER_STAR


def can_upgrade_rank(
    rank_level: int,
    current_stars: int,
    max_stars: int,
    check_in_count: int,
    required_check_ins: int,
) -> bool:
    """Promotion needs a non-terminal tier, maxed-out stars and enough check-ins."""
    if rank_level == LEGENDARY_RANK_LEVEL:
        return False
    if current_stars < max_stars:
        return False
    return check_in_count >= required_check_ins


def season_inheritance(
    last_rank_level: int,
    last_stars: int,
    ladder: RankLadder = DEFAULT_LADDER,
) -> tuple[int, int]:
    """Starting (rank_level, stars) for a new season.

    Legendary stays Legendary with half its stars (floored, at least 1).
    Every other tier drops one level (never below 1) and keeps its stars,
    clamped to the new tier's maximum.
    """
    if last_rank_level == LEGENDARY_RANK_LEVEL:
        return LEGENDARY_RANK_LEVEL, max(1, int(last_stars * 0.5))

    new_level = max(1, last_rank_level - 1)
    tier = ladder.get(new_level)
    if tier is None:
        return ladder.lowest.level, 1
    return new_level, max(tier.min_stars, min(last_stars, tier.max_stars))


def months_between(earlier: date | datetime, later: date | datetime) -> int:
    """Whole calendar months from ``earlier`` to ``later``, ignoring day of month."""
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


def rank_downgrade(
    last_check_in: date | datetime | None,
    current_rank_level: int,
    now: datetime | None = None,
) -> int:
    """Rank level after inactivity: one tier lost per calendar month without a check-in.

    A user who never checked in drops straight to level 1.
    """
    if last_check_in is None:
        return 1
    if now is None:
        now = datetime.now(timezone.utc)
    months = max(0, months_between(last_check_in, now))
    return max(1, current_rank_level - months)
