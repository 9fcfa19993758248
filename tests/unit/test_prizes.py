"""Prize table and weighted draw tests."""

import random
from collections import Counter

import pytest

from ladder.lottery.prizes import DEFAULT_PRIZES, LOTTERY_COST, PrizeConfig, PrizeTable, PrizeType


class _FixedRandom(random.Random):
    """RNG whose uniform() always returns one value."""

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def uniform(self, a: float, b: float) -> float:
        return self.value


class TestPrizeTable:
    """Catalog invariants."""

    def test_total_weight(self):
        assert DEFAULT_PRIZES.total_weight == 1065

    def test_probabilities_sum_to_about_100(self):
        total = sum(DEFAULT_PRIZES.probability(p) for p in DEFAULT_PRIZES)
        assert total == pytest.approx(100, abs=0.1)

    def test_cost(self):
        assert LOTTERY_COST == 50

    def test_rejects_all_zero_weights(self):
        with pytest.raises(ValueError):
            PrizeTable([PrizeConfig("a", PrizeType.RED_PACKET, "a", 1, 0)])

    def test_rejects_duplicate_ids(self):
        prize = PrizeConfig("a", PrizeType.RED_PACKET, "a", 1, 1)
        with pytest.raises(ValueError):
            PrizeTable([prize, prize])


class TestDraw:
    """Weighted selection walks the catalog in order."""

    def test_roll_zero_selects_first_entry(self):
        assert DEFAULT_PRIZES.draw(_FixedRandom(0)).id == "red-packet-1"

    def test_roll_just_below_total_selects_last_entry(self):
        roll = DEFAULT_PRIZES.total_weight - 1
        assert DEFAULT_PRIZES.draw(_FixedRandom(roll)).id == "limited-reward-3"

    def test_roll_at_boundary_selects_earlier_entry(self):
        """Remainder reaching exactly zero stops on that entry."""
        assert DEFAULT_PRIZES.resolve(300).id == "red-packet-1"
        assert DEFAULT_PRIZES.resolve(300.5).id == "red-packet-2"

    def test_zero_weight_entries_are_skipped(self):
        table = PrizeTable([
            PrizeConfig("never", PrizeType.RED_PACKET, "never", 1, 0),
            PrizeConfig("always", PrizeType.RED_PACKET, "always", 1, 5),
            PrizeConfig("never-2", PrizeType.RED_PACKET, "never", 1, 0),
        ])
        assert table.resolve(0).id == "always"
        assert table.resolve(5).id == "always"

    def test_seeded_rng_is_reproducible(self):
        first = [DEFAULT_PRIZES.draw(random.Random(123)).id for _ in range(5)]
        second = [DEFAULT_PRIZES.draw(random.Random(123)).id for _ in range(5)]
        assert first == second

    def test_distribution_follows_weights(self):
        rng = random.Random(2026)
        counts = Counter(DEFAULT_PRIZES.draw(rng).id for _ in range(20_000))
        share = counts["red-packet-1"] / 20_000
        assert share == pytest.approx(300 / 1065, abs=0.02)


class TestItemPrizes:
    """Item type and duration derived from the prize id."""

    def test_duration_flag(self):
        assert DEFAULT_PRIZES.get("item-exp-boost-1").duration_days == 1
        assert DEFAULT_PRIZES.get("item-exp-boost-3").duration_days == 3
        assert DEFAULT_PRIZES.get("item-rank-boost-3").duration_days == 3

    def test_item_type(self):
        assert DEFAULT_PRIZES.get("item-exp-boost-1").item_type == "EXP_BOOST"
        assert DEFAULT_PRIZES.get("item-points-boost-3").item_type == "POINTS_BOOST"
        assert DEFAULT_PRIZES.get("item-rank-boost-1").item_type == "RANK_BOOST"
        assert DEFAULT_PRIZES.get("red-packet-1").item_type is None
