"""Aggregator: Read-only queries over the price cache.

Cross-exchange differences:
    1. Collect the latest observation of the pair on every exchange, in
       exchange declaration order
    2. Invert prices of exchanges that declare the pair in the opposite
       order, so every price is quoted like the first observation
    3. For every combination i < j compute delta = p_j - p_i and
       percent = 100 * delta / p_i
    4. Sort descending by abs(delta); equal deltas keep combination order

.. code-block:: python

    >>> # uniswap at 3.0, sushiswap at 2.8
    >>> [
    ...     (d.exchange_a, d.exchange_b, round(d.price_delta_percent, 2))
    ...     for d in aggregator.diff_for_pair("weth", "usdc")
    ... ]
    [('uniswap', 'sushiswap', -6.67)]
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, replace
from typing import Sequence

from .ExchangeConfig import ExchangeDescriptor
from .PriceCache import PriceCache, PriceObservation

DEFAULT_MAX_AGE_MS = 60_000


@dataclass(frozen=True)
class PriceDifference:
    """Price gap between two exchanges for the same pair.

    :ivar exchange_a: Exchange whose price is the reference.
    :ivar exchange_b: Exchange compared against the reference.
    :ivar price_delta: price_b - price_a.
    :ivar price_delta_percent: price_delta relative to price_a, in percent.
    """

    exchange_a: str
    exchange_b: str
    price_delta: float
    price_delta_percent: float


class Aggregator:
    """Stateless query layer over PriceCache.

    :ivar cache: Price cache to read from.
    :ivar exchanges: Configured exchanges, in declaration order.
    """

    def __init__(
        self, cache: PriceCache, exchanges: Sequence[ExchangeDescriptor]
    ) -> None:
        """Initialize the aggregator.

        :param cache: Price cache to read from.
        :param exchanges: Configured exchanges; fixes result ordering.
        """
        self.cache = cache
        self.exchanges = tuple(exchanges)

    def get_latest(
        self, exchange: str, token_a: str, token_b: str
    ) -> PriceObservation | None:
        """Latest observation for a pair on one exchange, either token order."""
        return self.cache.get(exchange, token_a, token_b)

    def get_all_for_pair(self, token_a: str, token_b: str) -> list[PriceObservation]:
        """Latest observation for a pair on every exchange that has one.

        :param token_a: One token of the pair.
        :param token_b: The other token.
        :returns: Observations in exchange declaration order.
        """
        observations = []
        for exchange in self.exchanges:
            observation = self.cache.get(exchange.name, token_a, token_b)
            if observation is not None:
                observations.append(observation)
        return observations

    @staticmethod
    def is_stale(
        observation: PriceObservation,
        max_age_ms: float = DEFAULT_MAX_AGE_MS,
        now: float | None = None,
    ) -> bool:
        """Check whether an observation is older than max_age_ms.

        :param observation: Observation to check.
        :param max_age_ms: Maximum acceptable age in milliseconds.
        :param now: Reference Unix time in seconds (default: current time).
        :returns: True if the observation's age exceeds max_age_ms.
        """
        if now is None:
            now = time.time()
        return (now - observation.observed_at) * 1000 > max_age_ms

    def fresh_for_pair(
        self,
        token_a: str,
        token_b: str,
        max_age_ms: float = DEFAULT_MAX_AGE_MS,
    ) -> list[PriceObservation]:
        """Like get_all_for_pair, minus stale observations."""
        now = time.time()
        return [
            o
            for o in self.get_all_for_pair(token_a, token_b)
            if not self.is_stale(o, max_age_ms, now=now)
        ]

    def list_exchanges_for_pair(self, token_a: str, token_b: str) -> list[str]:
        """Names of configured exchanges listing the pair, either order.

        Reads configuration only; the cache is not consulted.
        """
        return [e.name for e in self.exchanges if e.supports(token_a, token_b)]

    def diff_for_pair(self, token_a: str, token_b: str) -> list[PriceDifference]:
        """Pairwise price differences across exchanges, largest first.

        Prices are quoted in the declared order of the first exchange that
        has an observation; exchanges declaring the pair the other way round
        have their price inverted before comparison.

        :param token_a: One token of the pair.
        :param token_b: The other token.
        :returns: Differences sorted descending by abs(price_delta).
        """
        return self.diff_observations(
            self.align_observations(self.get_all_for_pair(token_a, token_b))
        )

    @staticmethod
    def align_observations(
        observations: Sequence[PriceObservation],
    ) -> list[PriceObservation]:
        """Quote every observation in the first observation's token order."""
        if not observations:
            return []
        reference = observations[0].pair_label
        return [
            o
            if o.pair_label == reference
            else replace(o, pair_label=reference, price=1 / o.price)
            for o in observations
        ]

    @staticmethod
    def diff_observations(
        observations: Sequence[PriceObservation],
    ) -> list[PriceDifference]:
        """Rank pairwise differences between a list of observations."""
        diffs = []
        for first, second in itertools.combinations(observations, 2):
            delta = second.price - first.price
            diffs.append(
                PriceDifference(
                    exchange_a=first.exchange,
                    exchange_b=second.exchange,
                    price_delta=delta,
                    price_delta_percent=delta / first.price * 100,
                )
            )
        # sorted() is stable, also with reverse=True
        return sorted(diffs, key=lambda d: abs(d.price_delta), reverse=True)
