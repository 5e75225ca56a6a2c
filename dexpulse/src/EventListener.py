"""EventListener: Swap-driven refresh of individual pairs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .ChainClient import Subscription
from .errors import PricePulseError
from .ExchangeConfig import ExchangeDescriptor
from .PriceFetcher import PriceFetcher
from .TokenPair import TokenPair

logger = logging.getLogger(__name__)


class EventListener:
    """Subscribes to each pool's swap event and refreshes that pool's price.

    Subscriptions are set up independently per pair: a pair whose pool cannot
    be resolved is logged and skipped while the others still subscribe.

    :ivar fetcher: Price fetcher used for targeted refreshes.
    """

    def __init__(self, fetcher: PriceFetcher) -> None:
        """Initialize the listener.

        :param fetcher: Price fetcher used for targeted refreshes.
        """
        self.fetcher = fetcher
        self._subscriptions: dict[tuple[str, TokenPair], Subscription] = {}
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def active_subscriptions(self) -> int:
        return len(self._subscriptions)

    async def start(self) -> int:
        """Subscribe to the swap events of every registered pool.

        :returns: Number of subscriptions established.
        """
        if self._active:
            return len(self._subscriptions)
        self._active = True

        targets = [
            (exchange, pair)
            for exchange in self.fetcher.exchanges
            for pair in exchange.pairs
        ]
        await asyncio.gather(
            *(self._subscribe(exchange, pair) for exchange, pair in targets)
        )
        logger.info(
            f"Event listeners set up for {len(self._subscriptions)}/{len(targets)} pairs"
        )
        return len(self._subscriptions)

    async def stop(self) -> None:
        """Release every subscription. No refresh is triggered afterwards."""
        self._active = False
        subscriptions = list(self._subscriptions.values())
        self._subscriptions.clear()
        for subscription in subscriptions:
            try:
                await subscription.unsubscribe()
            except Exception as e:
                logger.warning(f"Failed to unsubscribe: {e}")
        if subscriptions:
            logger.info(f"Released {len(subscriptions)} event listeners")

    async def _subscribe(self, exchange: ExchangeDescriptor, pair: TokenPair) -> None:
        key = (exchange.name, pair)
        try:
            pool = await self.fetcher.resolver.pool(exchange, pair)
            subscription = await self.fetcher.resolver.registry.chain.subscribe(
                pool,
                exchange.interface.swap_event,
                self._make_callback(exchange, pair),
            )
        except Exception as e:
            logger.warning(
                f"[{exchange.name}] Error setting up event listener for "
                f"{pair.label}: {e}"
            )
            return

        if not self._active:
            # stop() ran while this subscription was being set up
            await subscription.unsubscribe()
            return

        self._subscriptions[key] = subscription
        logger.debug(f"[{exchange.name}] Listening for swaps on {pair.label}")

    def _make_callback(self, exchange: ExchangeDescriptor, pair: TokenPair):
        async def on_swap(event: Any) -> None:
            if not self._active:
                return
            logger.debug(f"[{exchange.name}] Swap event detected for {pair.label}")
            try:
                await self.fetcher.fetch_one(exchange, pair)
            except PricePulseError as e:
                logger.warning(f"Error refreshing after swap: {e}")
            except Exception as e:
                logger.warning(
                    f"[{exchange.name}] Unexpected error refreshing {pair.label}: {e}"
                )

        return on_swap
