"""Badge catalog: types, rarities, typed conditions and the default badge set."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any


class BadgeType(str, Enum):
    CHECK_IN = "CHECK_IN"
    LOGIN = "LOGIN"
    LEVEL = "LEVEL"
    RANK = "RANK"
    MILESTONE = "MILESTONE"


class BadgeRarity(str, Enum):
    COMMON = "COMMON"
    RARE = "RARE"
    EPIC = "EPIC"
    LEGENDARY = "LEGENDARY"


@dataclass(frozen=True)
class BadgeCondition:
    """Award condition. Every field that is set must hold (logical AND)."""

    consecutive_check_in_days: int | None = None
    total_check_in_days: int | None = None
    consecutive_login_days: int | None = None
    total_login_days: int | None = None
    level: int | None = None
    rank_level: int | None = None
    rank_name: str | None = None
    first_time: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> BadgeCondition:
        """Parse a stored condition. Unknown keys are rejected, not ignored."""
        data = data or {}
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown badge condition fields: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Only the fields that are set, for storage in ``badges.condition``."""
        out = {k: v for k, v in asdict(self).items() if v is not None}
        if not self.first_time:
            out.pop("first_time")
        return out


@dataclass(frozen=True)
class CatalogBadge:
    name: str
    description: str
    icon: str
    type: BadgeType
    rarity: BadgeRarity
    condition: BadgeCondition


class BadgeCatalog:
    """Immutable ordered badge set. Order is the evaluation and seeding order."""

    def __init__(self, badges: Iterable[CatalogBadge]) -> None:
        self._badges = tuple(badges)
        names = [b.name for b in self._badges]
        if len(set(names)) != len(names):
            raise ValueError("Badge names must be unique")

    def __iter__(self) -> Iterator[CatalogBadge]:
        return iter(self._badges)

    def __len__(self) -> int:
        return len(self._badges)

    def of_type(self, badge_type: BadgeType) -> list[CatalogBadge]:
        return [b for b in self._badges if b.type is badge_type]


def _badge(name: str, description: str, icon: str, type_: BadgeType, rarity: BadgeRarity, **condition: Any) -> CatalogBadge:
    return CatalogBadge(name, description, icon, type_, rarity, BadgeCondition(**condition))


_C, _R, _E, _L = BadgeRarity.COMMON, BadgeRarity.RARE, BadgeRarity.EPIC, BadgeRarity.LEGENDARY

BADGE_CATALOG = BadgeCatalog([
    # Check-in
    _badge("初来乍到", "完成首次打卡", "check-in-first", BadgeType.CHECK_IN, _C, first_time=True, total_check_in_days=1),
    _badge("坚持不懈", "连续打卡 7 天", "check-in-7", BadgeType.CHECK_IN, _C, consecutive_check_in_days=7),
    _badge("持之以恒", "连续打卡 30 天", "check-in-30", BadgeType.CHECK_IN, _R, consecutive_check_in_days=30),
    _badge("打卡达人", "连续打卡 100 天", "check-in-100", BadgeType.CHECK_IN, _E, consecutive_check_in_days=100),
    _badge("打卡之王", "连续打卡 365 天", "check-in-365", BadgeType.CHECK_IN, _L, consecutive_check_in_days=365),
    _badge("累计打卡 10 次", "累计打卡 10 次", "check-in-total-10", BadgeType.CHECK_IN, _C, total_check_in_days=10),
    _badge("累计打卡 50 次", "累计打卡 50 次", "check-in-total-50", BadgeType.CHECK_IN, _R, total_check_in_days=50),
    _badge("累计打卡 200 次", "累计打卡 200 次", "check-in-total-200", BadgeType.CHECK_IN, _E, total_check_in_days=200),
    _badge("累计打卡 1000 次", "累计打卡 1000 次", "check-in-total-1000", BadgeType.CHECK_IN, _L, total_check_in_days=1000),
    # Login
    _badge("初次见面", "完成首次登录", "login-first", BadgeType.LOGIN, _C, first_time=True, total_login_days=1),
    _badge("每日相伴", "连续登录 7 天", "login-7", BadgeType.LOGIN, _C, consecutive_login_days=7),
    _badge("忠实用户", "连续登录 30 天", "login-30", BadgeType.LOGIN, _R, consecutive_login_days=30),
    _badge("铁杆粉丝", "连续登录 100 天", "login-100", BadgeType.LOGIN, _E, consecutive_login_days=100),
    _badge("永不缺席", "连续登录 365 天", "login-365", BadgeType.LOGIN, _L, consecutive_login_days=365),
    # Level
    _badge("初出茅庐", "达到 10 级", "level-10", BadgeType.LEVEL, _C, level=10),
    _badge("小有所成", "达到 20 级", "level-20", BadgeType.LEVEL, _C, level=20),
    _badge("登堂入室", "达到 30 级", "level-30", BadgeType.LEVEL, _R, level=30),
    _badge("炉火纯青", "达到 50 级", "level-50", BadgeType.LEVEL, _R, level=50),
    _badge("出类拔萃", "达到 70 级", "level-70", BadgeType.LEVEL, _E, level=70),
    _badge("登峰造极", "达到 100 级", "level-100", BadgeType.LEVEL, _L, level=100),
    # Rank
    _badge("黑铁新星", "达到倔强黑铁段位", "rank-iron", BadgeType.RANK, _C, rank_name="倔强黑铁"),
    _badge("白银战士", "达到不屈白银段位", "rank-silver", BadgeType.RANK, _C, rank_name="不屈白银"),
    _badge("黄金荣耀", "达到黄金段位", "rank-gold", BadgeType.RANK, _R, rank_name="黄金"),
    _badge("白金精英", "达到白金段位", "rank-platinum", BadgeType.RANK, _R, rank_name="白金"),
    _badge("钻石大师", "达到钻石段位", "rank-diamond", BadgeType.RANK, _E, rank_name="钻石"),
    _badge("星耀传说", "达到星耀段位", "rank-star", BadgeType.RANK, _E, rank_name="星耀"),
    _badge("大师风范", "达到不凡大师段位", "rank-master", BadgeType.RANK, _E, rank_name="不凡大师"),
    _badge("宗师境界", "达到宗师段位", "rank-grandmaster", BadgeType.RANK, _L, rank_name="宗师"),
    _badge("王者之巅", "达到最强王者段位", "rank-challenger", BadgeType.RANK, _L, rank_name="最强王者"),
    _badge("非凡王者", "达到非凡王者段位", "rank-extraordinary", BadgeType.RANK, _L, rank_name="非凡王者"),
    _badge("至圣王者", "达到至圣王者段位", "rank-supreme", BadgeType.RANK, _L, rank_name="至圣王者"),
    _badge("荣耀王者", "达到荣耀王者段位", "rank-glory", BadgeType.RANK, _L, rank_name="荣耀王者"),
    _badge("传奇王者", "达到传奇王者段位", "rank-legend", BadgeType.RANK, _L, rank_name="传奇王者"),
    # Milestone
    _badge("首次晋升", "首次段位晋升", "milestone-first-rank-up", BadgeType.MILESTONE, _C, first_time=True),
    _badge("等级突破", "首次达到 20 级", "milestone-level-20", BadgeType.MILESTONE, _R, first_time=True, level=20),
    _badge("段位突破", "首次达到黄金段位", "milestone-rank-gold", BadgeType.MILESTONE, _E, first_time=True, rank_name="黄金"),
])
