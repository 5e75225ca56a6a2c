"""ContractRegistry: Router, factory and pool handles per exchange."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from .ChainClient import ChainClient
from .errors import InitializationFailure
from .ExchangeConfig import ExchangeDescriptor

logger = logging.getLogger(__name__)


class ContractRegistry:
    """Holds contract handles for every successfully registered exchange.

    Registration of one exchange never affects another: a malformed address
    or chain error skips that exchange only.

    :ivar chain: Chain client used to build handles.
    """

    def __init__(self, chain: ChainClient) -> None:
        """Initialize an empty registry.

        :param chain: Chain client collaborator.
        """
        self.chain = chain
        self._exchanges: dict[str, ExchangeDescriptor] = {}
        self._routers: dict[str, Any] = {}
        self._factories: dict[str, Any] = {}
        self._pools: dict[tuple[str, str], Any] = {}
        self.failures: dict[str, InitializationFailure] = {}

    def register(self, exchange: ExchangeDescriptor) -> bool:
        """Build and store the router and factory handles of an exchange.

        :param exchange: Exchange to register.
        :returns: True if registered, False if skipped.
        """
        try:
            if exchange.name in self._exchanges:
                raise InitializationFailure(exchange.name, "Duplicate exchange name")
            try:
                router = self.chain.contract(
                    exchange.router_address, exchange.interface.router_abi
                )
                factory = self.chain.contract(
                    exchange.factory_address, exchange.interface.factory_abi
                )
            except Exception as e:
                raise InitializationFailure(exchange.name, str(e)) from e
        except InitializationFailure as e:
            logger.error(f"Failed to initialize contracts, skipping: {e}")
            self.failures[exchange.name] = e
            return False

        self._exchanges[exchange.name] = exchange
        self._routers[exchange.name] = router
        self._factories[exchange.name] = factory
        logger.info(
            f"Initialized contracts for {exchange.name} "
            f"({len(exchange.pairs)} pairs)"
        )
        return True

    def register_all(self, exchanges: Iterable[ExchangeDescriptor]) -> list[str]:
        """Register several exchanges, skipping the ones that fail.

        :param exchanges: Exchanges in declaration order.
        :returns: Names of the exchanges that registered.
        """
        return [e.name for e in exchanges if self.register(e)]

    @property
    def exchanges(self) -> list[ExchangeDescriptor]:
        """Registered exchanges in registration order."""
        return list(self._exchanges.values())

    def is_registered(self, exchange_name: str) -> bool:
        return exchange_name in self._exchanges

    def get_router(self, exchange_name: str) -> Any | None:
        return self._routers.get(exchange_name)

    def get_factory(self, exchange_name: str) -> Any | None:
        return self._factories.get(exchange_name)

    def get_pool(self, exchange: ExchangeDescriptor, address: str) -> Any:
        """Return the pool handle for an address, creating it once.

        :param exchange: Exchange the pool belongs to.
        :param address: Pool address.
        :returns: Pool contract handle.
        """
        key = (exchange.name, address.lower())
        pool = self._pools.get(key)
        if pool is None:
            pool = self.chain.contract(address, exchange.interface.pair_abi)
            self._pools[key] = pool
        return pool
