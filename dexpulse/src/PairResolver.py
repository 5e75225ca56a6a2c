"""PairResolver: Pool address lookup through the exchange factory.

Pool addresses never change once a pool exists, so every successful
resolution is cached for the lifetime of the resolver. Failed lookups are
not cached and get retried on the next refresh.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .ContractRegistry import ContractRegistry
from .errors import PairNotFound
from .ExchangeConfig import ExchangeDescriptor
from .TokenPair import TokenPair

logger = logging.getLogger(__name__)


class PairResolver:
    """Resolves (exchange, pair) to a pool address.

    :ivar registry: Contract registry providing factory handles.
    """

    def __init__(self, registry: ContractRegistry) -> None:
        """Initialize the resolver.

        :param registry: Registry of exchange contract handles.
        """
        self.registry = registry
        self._addresses: dict[tuple[str, TokenPair], str] = {}
        self._locks: dict[tuple[str, TokenPair], asyncio.Lock] = {}

    def cached_address(
        self, exchange: ExchangeDescriptor, pair: TokenPair
    ) -> str | None:
        """Return the cached pool address, if resolved before."""
        return self._addresses.get((exchange.name, pair))

    async def resolve(self, exchange: ExchangeDescriptor, pair: TokenPair) -> str:
        """Return the pool address for a pair on an exchange.

        :param exchange: Exchange to resolve on.
        :param pair: Token pair.
        :returns: Pool address.
        :raises PairNotFound: If the factory is missing or reports no pool.
        """
        if pair.pair_address:
            return pair.pair_address

        key = (exchange.name, pair)
        cached = self._addresses.get(key)
        if cached is not None:
            return cached

        # Concurrent callers for the same key share one factory call
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            cached = self._addresses.get(key)
            if cached is not None:
                return cached

            factory = self.registry.get_factory(exchange.name)
            if factory is None:
                raise PairNotFound(
                    exchange.name, pair, f"Factory not initialized for {exchange.name}"
                )

            chain = self.registry.chain
            address = await chain.call(
                factory, exchange.interface.get_pair, pair.token0, pair.token1
            )
            if not address or str(address).lower() == chain.zero_address.lower():
                raise PairNotFound(
                    exchange.name,
                    pair,
                    f"Pair does not exist for {pair.label} on {exchange.name}",
                )

            address = str(address)
            self._addresses[key] = address
            logger.info(f"[{exchange.name}] Resolved {pair.label} -> {address}")
            return address

    async def pool(self, exchange: ExchangeDescriptor, pair: TokenPair) -> Any:
        """Return the pool contract handle for a pair on an exchange.

        :param exchange: Exchange to resolve on.
        :param pair: Token pair.
        :returns: Pool contract handle.
        :raises PairNotFound: If the pool cannot be resolved.
        """
        address = await self.resolve(exchange, pair)
        return self.registry.get_pool(exchange, address)
