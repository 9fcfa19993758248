"""Prize catalog and weighted draw.

Selection probability of an entry is ``weight / total_weight``. The
catalog order is fixed so a seeded RNG reproduces the same sequence.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

LOTTERY_COST = 50


class PrizeType(str, Enum):
    RED_PACKET = "RED_PACKET"
    ITEM = "ITEM"
    LIMITED_REWARD = "LIMITED_REWARD"


@dataclass(frozen=True)
class PrizeConfig:
    id: str
    type: PrizeType
    name: str
    value: int
    weight: int
    icon: str = ""
    description: str = ""

    @property
    def duration_days(self) -> int:
        """Inventory window for ITEM prizes: ids ending in ``-3`` last 3 days."""
        return 3 if self.id.endswith("-3") else 1

    @property
    def item_type(self) -> str | None:
        """Effect type for ITEM prizes, e.g. ``item-exp-boost-1`` -> ``EXP_BOOST``."""
        if self.type is not PrizeType.ITEM:
            return None
        stem = self.id.removeprefix("item-").rsplit("-", 1)[0]
        return stem.replace("-", "_").upper()


class PrizeTable:
    """Immutable ordered prize catalog."""

    def __init__(self, prizes: Iterable[PrizeConfig]) -> None:
        self._prizes = tuple(prizes)
        if not self._prizes:
            raise ValueError("A prize table needs at least one prize")
        ids = [p.id for p in self._prizes]
        if len(set(ids)) != len(ids):
            raise ValueError("Prize ids must be unique")
        if any(p.weight < 0 for p in self._prizes):
            raise ValueError("Prize weights must not be negative")
        self._total_weight = sum(p.weight for p in self._prizes)
        if self._total_weight <= 0:
            raise ValueError("At least one prize needs a positive weight")

    def __iter__(self) -> Iterator[PrizeConfig]:
        return iter(self._prizes)

    def __len__(self) -> int:
        return len(self._prizes)

    def get(self, prize_id: str) -> PrizeConfig | None:
        for prize in self._prizes:
            if prize.id == prize_id:
                return prize
        return None

    @property
    def total_weight(self) -> int:
        return self._total_weight

    def probability(self, prize: PrizeConfig) -> float:
        """Selection probability as a percentage, rounded to two places."""
        return round(prize.weight / self._total_weight * 100, 2)

    def resolve(self, roll: float) -> PrizeConfig:
        """Map a roll in ``[0, total_weight]`` onto the catalog.

        Walks the catalog subtracting weights and returns the first entry
        where the remainder drops to zero or below. Zero-weight entries are
        never selected.
        """
        remaining = roll
        last_weighted = None
        for prize in self._prizes:
            if prize.weight <= 0:
                continue
            last_weighted = prize
            remaining -= prize.weight
            if remaining <= 0:
                return prize
        # Only reachable through float rounding at the top of the range.
        return last_weighted  # type: ignore[return-value]

    def draw(self, rng: random.Random | None = None) -> PrizeConfig:
        """Weighted random draw."""
        rng = rng or random.Random()
        return self.resolve(rng.uniform(0, self._total_weight))


DEFAULT_PRIZES = PrizeTable([
    PrizeConfig("red-packet-1", PrizeType.RED_PACKET, "小红包", 10, 300, "red-packet-small", "价值 10 积分的小红包"),
    PrizeConfig("red-packet-2", PrizeType.RED_PACKET, "中红包", 50, 150, "red-packet-medium", "价值 50 积分的中红包"),
    PrizeConfig("red-packet-3", PrizeType.RED_PACKET, "大红包", 100, 50, "red-packet-large", "价值 100 积分的大红包"),
    PrizeConfig("red-packet-4", PrizeType.RED_PACKET, "超级红包", 500, 10, "red-packet-super", "价值 500 积分的超级红包"),
    PrizeConfig("item-exp-boost-1", PrizeType.ITEM, "经验加成卡（1天）", 20, 200,
                "item-exp-boost-1d", "使用后 24 小时内经验值获得 +20%"),
    PrizeConfig("item-exp-boost-3", PrizeType.ITEM, "经验加成卡（3天）", 20, 80,
                "item-exp-boost-3d", "使用后 72 小时内经验值获得 +20%"),
    PrizeConfig("item-points-boost-1", PrizeType.ITEM, "积分加成卡（1天）", 30, 150,
                "item-points-boost-1d", "使用后 24 小时内积分获得 +30%"),
    PrizeConfig("item-points-boost-3", PrizeType.ITEM, "积分加成卡（3天）", 30, 50,
                "item-points-boost-3d", "使用后 72 小时内积分获得 +30%"),
    PrizeConfig("item-rank-boost-1", PrizeType.ITEM, "段位加成卡（1次）", 5, 30,
                "item-rank-boost-1", "使用后下次打卡额外计算 5 次打卡次数"),
    PrizeConfig("item-rank-boost-3", PrizeType.ITEM, "段位加成卡（3次）", 10, 10,
                "item-rank-boost-3", "使用后下次打卡额外计算 10 次打卡次数"),
    PrizeConfig("limited-reward-1", PrizeType.LIMITED_REWARD, "限定头像框", 0, 20, "limited-avatar-frame", "限定的精美头像框"),
    PrizeConfig("limited-reward-2", PrizeType.LIMITED_REWARD, "限定称号", 0, 10, "limited-title", "限定的特殊称号"),
    PrizeConfig("limited-reward-3", PrizeType.LIMITED_REWARD, "限定皮肤", 0, 5, "limited-skin", "限定的精美皮肤"),
])
