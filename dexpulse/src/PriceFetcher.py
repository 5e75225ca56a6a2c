"""PriceFetcher: Reads pool reserves and turns them into cached prices.

Price orientation:
    The pool stores its tokens sorted by address, which is unrelated to the
    order a pair is declared in. Reserves are mapped back to the declared
    order so that the price is always units of declared token1 per unit of
    declared token0 on every exchange.

Reserves are compared as raw integers; no per-token decimal normalization is
applied, so pairs of tokens with different decimals are quoted in raw units.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from .errors import EmptyPoolFailure, FetchFailure, PricePulseError
from .ExchangeConfig import ExchangeDescriptor
from .PairResolver import PairResolver
from .PriceCache import PriceCache, PriceObservation
from .PriceUpdates import PriceUpdate, PriceUpdateBus
from .TokenPair import TokenPair

logger = logging.getLogger(__name__)


@dataclass
class FetchSummary:
    """Outcome of one full refresh.

    :ivar succeeded: Number of pairs refreshed.
    :ivar errors: Failures keyed by (exchange name, pair label).
    """

    succeeded: int = 0
    errors: dict[tuple[str, str], PricePulseError] = field(default_factory=dict)

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


class PriceFetcher:
    """Fetches pool prices and writes them to the cache.

    :ivar resolver: Pool address resolver.
    :ivar cache: Shared price cache.
    :ivar updates: Notification bus for successful refreshes.
    """

    def __init__(
        self,
        resolver: PairResolver,
        cache: PriceCache,
        updates: PriceUpdateBus,
    ) -> None:
        """Initialize the fetcher.

        :param resolver: Pool address resolver.
        :param cache: Cache receiving observations.
        :param updates: Bus notified after each cache write.
        """
        self.resolver = resolver
        self.cache = cache
        self.updates = updates

    @property
    def exchanges(self) -> list[ExchangeDescriptor]:
        return self.resolver.registry.exchanges

    async def fetch_one(
        self, exchange: ExchangeDescriptor, pair: TokenPair
    ) -> PriceObservation:
        """Refresh the price of one pair on one exchange.

        :param exchange: Exchange to read from.
        :param pair: Declared token pair.
        :returns: The observation written to the cache.
        :raises PairNotFound: If the pool cannot be resolved.
        :raises EmptyPoolFailure: If a pool reserve is zero.
        :raises FetchFailure: On transport errors or malformed pool data.
        """
        pool = await self._pool(exchange, pair)
        chain = self.resolver.registry.chain
        interface = exchange.interface

        try:
            reserves, pool_token0 = await asyncio.gather(
                chain.call(pool, interface.get_reserves),
                chain.call(pool, interface.token0),
            )
        except Exception as e:
            raise FetchFailure(exchange.name, pair, f"Pool read failed: {e}") from e

        price = self._compute_price(exchange, pair, reserves, pool_token0)

        observation = PriceObservation(
            pair_label=pair.label,
            exchange=exchange.name,
            price=price,
            observed_at=time.time(),
        )
        self.cache.put(pair, observation)
        logger.debug(f"[{exchange.name}] {pair.label} = {price:.8f}")

        self.updates.publish(PriceUpdate(pair=pair, exchange=exchange.name, price=price))
        return observation

    async def fetch_all(self) -> FetchSummary:
        """Refresh every configured pair on every registered exchange.

        All fetches run concurrently and all are allowed to settle; one
        failing pair never prevents the others from completing.

        :returns: Summary of successes and failures.
        """
        targets = [
            (exchange, pair)
            for exchange in self.exchanges
            for pair in exchange.pairs
        ]
        summary = FetchSummary()
        if not targets:
            return summary

        results = await asyncio.gather(
            *(self.fetch_one(exchange, pair) for exchange, pair in targets),
            return_exceptions=True,
        )

        for (exchange, pair), result in zip(targets, results, strict=True):
            if isinstance(result, PricePulseError):
                logger.warning(f"Error fetching price: {result}")
                summary.errors[(exchange.name, pair.label)] = result
            elif isinstance(result, BaseException):
                logger.warning(
                    f"[{exchange.name}] Unexpected error fetching {pair.label}: {result}"
                )
                summary.errors[(exchange.name, pair.label)] = FetchFailure(
                    exchange.name, pair, str(result)
                )
            else:
                summary.succeeded += 1

        logger.debug(
            f"Refreshed {summary.succeeded}/{summary.total} pairs "
            f"({summary.failed} failed)"
        )
        return summary

    async def _pool(self, exchange: ExchangeDescriptor, pair: TokenPair) -> Any:
        try:
            return await self.resolver.pool(exchange, pair)
        except PricePulseError:
            raise
        except Exception as e:
            raise FetchFailure(
                exchange.name, pair, f"Pool resolution failed: {e}"
            ) from e

    @staticmethod
    def _compute_price(
        exchange: ExchangeDescriptor,
        pair: TokenPair,
        reserves: Any,
        pool_token0: Any,
    ) -> float:
        try:
            reserve0, reserve1 = int(reserves[0]), int(reserves[1])
        except (IndexError, TypeError, ValueError) as e:
            raise FetchFailure(
                exchange.name, pair, f"Malformed reserves {reserves!r}"
            ) from e

        if reserve0 <= 0 or reserve1 <= 0:
            raise EmptyPoolFailure(exchange.name, pair, (reserve0, reserve1))

        pool_token0 = str(pool_token0).lower()
        if pool_token0 == pair.token0.lower():
            return reserve1 / reserve0
        if pool_token0 == pair.token1.lower():
            return reserve0 / reserve1

        raise FetchFailure(
            exchange.name,
            pair,
            f"Pool token0 {pool_token0} matches neither declared token",
        )
