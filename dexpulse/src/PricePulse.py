"""PricePulse: Real-time DEX price aggregation engine.

This module wires the components together and owns all mutable state
(price cache, resolved pool addresses, contract handles).

Architecture:
    - ContractRegistry builds router/factory handles; broken exchanges are skipped
    - PairResolver finds pool addresses through the factory, cached forever
    - PriceFetcher reads reserves, writes PriceCache and publishes PriceUpdates
    - PollingScheduler refreshes every pair on a fixed, self-throttling interval
    - EventListener refreshes a single pair whenever its pool emits a swap
    - Aggregator answers queries and ranks cross-exchange price differences
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from .Aggregator import DEFAULT_MAX_AGE_MS, Aggregator, PriceDifference
from .ChainClient import ChainClient
from .ContractRegistry import ContractRegistry
from .EventListener import EventListener
from .ExchangeConfig import EngineConfig
from .PairResolver import PairResolver
from .PollingScheduler import PollingScheduler
from .PriceCache import PriceCache, PriceObservation
from .PriceFetcher import FetchSummary, PriceFetcher
from .PriceUpdates import PriceListener, PriceUpdateBus

logger = logging.getLogger(__name__)


class PricePulse:
    """Keeps cross-exchange prices fresh and answers queries about them.

    :ivar config: Engine configuration.
    :ivar registry: Contract handles per exchange.
    :ivar resolver: Pool address resolver.
    :ivar cache: Latest price per (exchange, pair).
    :ivar updates: Price-update notification bus.
    :ivar fetcher: Price fetcher.
    :ivar scheduler: Polling scheduler.
    :ivar listener: Swap event listener.
    :ivar aggregator: Query surface.
    """

    def __init__(self, chain: ChainClient, config: EngineConfig) -> None:
        """Initialize the engine and register every configured exchange.

        :param chain: Chain client collaborator.
        :param config: Exchanges, pairs and poll interval.
        """
        self.config = config

        self.registry = ContractRegistry(chain)
        registered = self.registry.register_all(config.exchanges)

        self.resolver = PairResolver(self.registry)
        self.cache = PriceCache()
        self.updates = PriceUpdateBus()
        self.fetcher = PriceFetcher(self.resolver, self.cache, self.updates)
        self.scheduler = PollingScheduler(self.fetcher, config.poll_interval_ms)
        self.listener = EventListener(self.fetcher)
        self.aggregator = Aggregator(self.cache, config.exchanges)

        pair_count = sum(len(e.pairs) for e in self.registry.exchanges)
        logger.info(
            f"PricePulse initialized: exchanges={registered}, pairs={pair_count}, "
            f"poll_interval={config.poll_interval_ms}ms"
        )
        skipped = [e.name for e in config.exchanges if e.name not in registered]
        if skipped:
            logger.warning(f"Skipped exchanges: {skipped}")

    @property
    def is_running(self) -> bool:
        return self.scheduler.is_running

    async def start(self) -> bool:
        """Start polling and event-driven refresh.

        :returns: True if started, False if already running.
        """
        if not self.scheduler.start():
            return False
        await self.listener.start()
        return True

    async def stop(self) -> None:
        """Stop polling and release every event subscription."""
        self.scheduler.stop()
        await self.listener.stop()

    async def refresh(self) -> FetchSummary:
        """Force an immediate refresh of every pair."""
        return await self.fetcher.fetch_all()

    def subscribe(self, listener: PriceListener) -> Callable[[], None]:
        """Register a price-update listener.

        :param listener: Callable (or coroutine function) receiving PriceUpdates.
        :returns: Function removing the listener.
        """
        return self.updates.subscribe(listener)

    def get_latest(
        self, exchange: str, token_a: str, token_b: str
    ) -> PriceObservation | None:
        return self.aggregator.get_latest(exchange, token_a, token_b)

    def get_all_for_pair(self, token_a: str, token_b: str) -> list[PriceObservation]:
        return self.aggregator.get_all_for_pair(token_a, token_b)

    def is_stale(
        self, observation: PriceObservation, max_age_ms: float = DEFAULT_MAX_AGE_MS
    ) -> bool:
        return self.aggregator.is_stale(observation, max_age_ms)

    def list_exchanges_for_pair(self, token_a: str, token_b: str) -> list[str]:
        return self.aggregator.list_exchanges_for_pair(token_a, token_b)

    def diff_for_pair(self, token_a: str, token_b: str) -> list[PriceDifference]:
        return self.aggregator.diff_for_pair(token_a, token_b)

    def report(self, max_age_ms: float = DEFAULT_MAX_AGE_MS) -> None:
        """Log the widest fresh cross-exchange gap for every configured pair."""
        seen: set[tuple[str, str]] = set()
        for exchange in self.config.exchanges:
            for pair in exchange.pairs:
                if pair.key in seen:
                    continue
                seen.add(pair.key)

                fresh = self.aggregator.fresh_for_pair(
                    pair.token0, pair.token1, max_age_ms
                )
                diffs = self.aggregator.diff_observations(fresh)
                if not diffs:
                    logger.info(
                        f"{pair.label}: {len(fresh)} fresh price(s), nothing to compare"
                    )
                    continue
                top = diffs[0]
                logger.info(
                    f"{pair.label}: widest gap {top.exchange_a} -> {top.exchange_b} "
                    f"{top.price_delta:+.8f} ({top.price_delta_percent:+.2f}%)"
                )

    async def run(
        self,
        report_period: float = 60.0,
        max_age_ms: float = DEFAULT_MAX_AGE_MS,
    ) -> None:
        """Run until cancelled, logging a price report every report_period seconds.

        :param report_period: Seconds between reports (0 disables reporting).
        :param max_age_ms: Staleness threshold applied by reports.
        """
        await self.start()
        try:
            while True:
                await asyncio.sleep(report_period if report_period > 0 else 3600)
                if report_period > 0:
                    self.report(max_age_ms)
        finally:
            await self.stop()
