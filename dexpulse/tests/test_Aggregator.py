"""Unit tests for Aggregator."""

import pytest

from dexpulse.src.Aggregator import Aggregator, PriceDifference
from dexpulse.src.ExchangeConfig import ExchangeDescriptor
from dexpulse.src.PriceCache import PriceCache, PriceObservation
from dexpulse.src.TokenPair import TokenPair

PAIR = TokenPair("token0", "token1")


def make_aggregator(prices: dict[str, float], observed_at: float = 1000.0) -> Aggregator:
    """Aggregator over exchanges named after the keys of prices, in order."""
    cache = PriceCache()
    exchanges = []
    for name, price in prices.items():
        exchanges.append(ExchangeDescriptor(name, "0xr", "0xf", pairs=(PAIR,)))
        cache.put(
            PAIR,
            PriceObservation(
                pair_label=PAIR.label, exchange=name, price=price, observed_at=observed_at
            ),
        )
    return Aggregator(cache, exchanges)


class TestAggregatorLookups:
    """Test cache lookups."""

    def test_get_latest(self) -> None:
        aggregator = make_aggregator({"X1": 3.0})

        assert aggregator.get_latest("X1", "token0", "token1").price == 3.0
        assert aggregator.get_latest("X1", "token1", "token0").price == 3.0
        assert aggregator.get_latest("X2", "token0", "token1") is None

    def test_get_all_for_pair_order_independent(self) -> None:
        aggregator = make_aggregator({"X1": 3.0, "X2": 2.8})

        forward = aggregator.get_all_for_pair("token0", "token1")
        backward = aggregator.get_all_for_pair("token1", "token0")

        assert forward == backward
        assert [o.exchange for o in forward] == ["X1", "X2"]

    def test_get_all_for_pair_skips_exchanges_without_data(self) -> None:
        aggregator = make_aggregator({"X1": 3.0})
        aggregator.exchanges += (
            ExchangeDescriptor("X2", "0xr", "0xf", pairs=(PAIR,)),
        )

        assert [o.exchange for o in aggregator.get_all_for_pair("token0", "token1")] == ["X1"]
        assert aggregator.get_all_for_pair("token0", "other") == []

    def test_list_exchanges_reads_configuration(self) -> None:
        """Listed exchanges come from configuration even without cached prices."""
        other = TokenPair("token1", "token2")
        aggregator = Aggregator(
            PriceCache(),
            [
                ExchangeDescriptor("X1", "0xr", "0xf", pairs=(PAIR,)),
                ExchangeDescriptor("X2", "0xr", "0xf", pairs=(other,)),
                ExchangeDescriptor("X3", "0xr", "0xf", pairs=(other, PAIR)),
            ],
        )

        assert aggregator.list_exchanges_for_pair("token1", "token0") == ["X1", "X3"]
        assert aggregator.list_exchanges_for_pair("token2", "token1") == ["X2", "X3"]
        assert aggregator.list_exchanges_for_pair("token0", "token2") == []


class TestAggregatorStaleness:
    """Test staleness classification."""

    def test_is_stale_threshold(self) -> None:
        observation = PriceObservation("a/b", "X1", 1.0, observed_at=1000.0)

        assert not Aggregator.is_stale(observation, 60_000, now=1030.0)
        assert Aggregator.is_stale(observation, 60_000, now=1061.0)
        # Exactly at the limit is not stale
        assert not Aggregator.is_stale(observation, 30_000, now=1030.0)

    def test_is_stale_monotonic_in_max_age(self) -> None:
        observation = PriceObservation("a/b", "X1", 1.0, observed_at=1000.0)
        now = 1005.0
        results = [
            Aggregator.is_stale(observation, max_age, now=now)
            for max_age in (100_000, 10_000, 5_001, 4_999, 100, 0)
        ]
        assert results == [False, False, False, True, True, True]

    def test_default_max_age(self) -> None:
        fresh = make_aggregator({"X1": 1.0}, observed_at=0.0)
        observation = fresh.get_latest("X1", "token0", "token1")
        assert fresh.is_stale(observation)

    def test_fresh_for_pair(self) -> None:
        aggregator = make_aggregator({"X1": 3.0}, observed_at=0.0)
        assert aggregator.fresh_for_pair("token0", "token1") == []
        assert len(aggregator.get_all_for_pair("token0", "token1")) == 1


class TestAggregatorDiffs:
    """Test pairwise difference ranking."""

    def test_two_exchange_scenario(self) -> None:
        """X1 at 3.0 and X2 at 2.8 should produce a single -0.2 / -6.67% entry."""
        aggregator = make_aggregator({"X1": 300 / 100, "X2": 140 / 50})

        diffs = aggregator.diff_for_pair("token0", "token1")

        assert len(diffs) == 1
        assert diffs[0].exchange_a == "X1"
        assert diffs[0].exchange_b == "X2"
        assert diffs[0].price_delta == pytest.approx(-0.2)
        assert round(diffs[0].price_delta_percent, 2) == -6.67

    def test_sorted_by_absolute_delta(self) -> None:
        aggregator = make_aggregator({"A": 10.0, "B": 10.5, "C": 8.0})

        diffs = aggregator.diff_for_pair("token0", "token1")

        assert [(d.exchange_a, d.exchange_b) for d in diffs] == [
            ("B", "C"),
            ("A", "C"),
            ("A", "B"),
        ]
        deltas = [abs(d.price_delta) for d in diffs]
        assert deltas == sorted(deltas, reverse=True)

    def test_ties_keep_combination_order(self) -> None:
        aggregator = make_aggregator({"A": 1.0, "B": 2.0, "C": 3.0})

        diffs = aggregator.diff_for_pair("token0", "token1")

        # |A-B| == |B-C| == 1.0, A-B comes first in combination order
        assert [(d.exchange_a, d.exchange_b) for d in diffs] == [
            ("A", "C"),
            ("A", "B"),
            ("B", "C"),
        ]

    def test_swapping_prices_negates_delta(self) -> None:
        baseline = make_aggregator({"X1": 3.0, "X2": 2.5}).diff_for_pair("token0", "token1")
        swapped = make_aggregator({"X1": 2.5, "X2": 3.0}).diff_for_pair("token0", "token1")

        assert swapped[0].price_delta == -baseline[0].price_delta
        assert abs(swapped[0].price_delta) == abs(baseline[0].price_delta)

    def test_fewer_than_two_observations(self) -> None:
        assert make_aggregator({"X1": 3.0}).diff_for_pair("token0", "token1") == []
        assert make_aggregator({}).diff_for_pair("token0", "token1") == []

    def test_diff_query_order_independent(self) -> None:
        aggregator = make_aggregator({"X1": 3.0, "X2": 2.8})
        assert aggregator.diff_for_pair("token0", "token1") == aggregator.diff_for_pair(
            "token1", "token0"
        )

    def test_reversed_declarations_compared_in_same_quote(self) -> None:
        """X2 declares token1/token0, so its 1/2.8 quote is inverted to 2.8."""
        reversed_pair = TokenPair("token1", "token0")
        cache = PriceCache()
        cache.put(PAIR, PriceObservation(PAIR.label, "X1", 3.0, 1000.0))
        cache.put(
            reversed_pair,
            PriceObservation(reversed_pair.label, "X2", 1 / 2.8, 1000.0),
        )
        aggregator = Aggregator(
            cache,
            [
                ExchangeDescriptor("X1", "0xr", "0xf", pairs=(PAIR,)),
                ExchangeDescriptor("X2", "0xr", "0xf", pairs=(reversed_pair,)),
            ],
        )

        diffs = aggregator.diff_for_pair("token1", "token0")

        assert len(diffs) == 1
        assert diffs[0].price_delta == pytest.approx(-0.2)
        assert round(diffs[0].price_delta_percent, 2) == -6.67
        # Cached observations keep their own declared quote
        assert aggregator.get_latest("X2", "token0", "token1").price == pytest.approx(1 / 2.8)

    def test_price_difference_fields(self) -> None:
        diff = PriceDifference("a", "b", 1.0, 10.0)
        assert diff.exchange_a == "a"
        assert diff.price_delta_percent == 10.0
