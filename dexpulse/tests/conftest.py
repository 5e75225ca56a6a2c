"""Shared fixtures: an in-memory chain client with scriptable pools."""

import asyncio
from dataclasses import dataclass
from typing import Any

import pytest

from dexpulse.src.ChainClient import ZERO_ADDRESS, ChainClient, Subscription
from dexpulse.src.ExchangeConfig import EngineConfig, ExchangeDescriptor
from dexpulse.src.TokenPair import TokenPair, pair_key


@dataclass
class FakeContract:
    address: str
    abi: list


class FakeSubscription(Subscription):
    def __init__(self, contract: FakeContract, event: str, callback: Any) -> None:
        self.contract = contract
        self.event = event
        self.callback = callback
        self.active = True

    async def unsubscribe(self) -> None:
        self.active = False


class FakeChainClient(ChainClient):
    """Chain client backed by dicts instead of RPC calls."""

    def __init__(self) -> None:
        self.factories: dict[str, dict[tuple[str, str], str]] = {}
        self.pools: dict[str, dict[str, Any]] = {}
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str, tuple]] = []
        self.subscriptions: list[FakeSubscription] = []

    def contract(self, address: str, abi: list[dict]) -> FakeContract:
        if not address or not address.startswith("0x"):
            raise ValueError(f"Malformed contract address: {address!r}")
        return FakeContract(address, abi)

    async def call(self, contract: FakeContract, method: str, *args: Any) -> Any:
        address = contract.address.lower()
        self.calls.append((address, method, args))
        await asyncio.sleep(0)
        if address in self.failing:
            raise ConnectionError(f"RPC unavailable for {address}")

        if method == "getPair":
            return self.factories.get(address, {}).get(pair_key(*args), ZERO_ADDRESS)
        pool = self.pools[address]
        if method == "getReserves":
            return pool["reserves"]
        if method == "token0":
            return pool["token0"]
        raise AttributeError(method)

    async def subscribe(
        self, contract: FakeContract, event: str, callback: Any
    ) -> FakeSubscription:
        if contract.address.lower() in self.failing:
            raise ConnectionError(f"Cannot subscribe to {contract.address}")
        subscription = FakeSubscription(contract, event, callback)
        self.subscriptions.append(subscription)
        return subscription

    def add_pool(
        self,
        factory: str,
        pool: str,
        token0: str,
        token1: str,
        reserves: tuple[int, int],
    ) -> None:
        """Create a pool; token0/token1 and reserves are in pool slot order."""
        self.factories.setdefault(factory.lower(), {})[pair_key(token0, token1)] = pool
        self.pools[pool.lower()] = {"token0": token0, "reserves": (*reserves, 0)}

    def set_reserves(self, pool: str, reserves: tuple[int, int]) -> None:
        self.pools[pool.lower()]["reserves"] = (*reserves, 0)

    def calls_to(self, method: str) -> list[tuple[str, str, tuple]]:
        return [c for c in self.calls if c[1] == method]

    @property
    def active_subscriptions(self) -> list[FakeSubscription]:
        return [s for s in self.subscriptions if s.active]

    async def emit(self, pool: str, event: str = "Swap") -> None:
        """Deliver an event to every active subscription on a pool."""
        for subscription in list(self.subscriptions):
            if (
                subscription.active
                and subscription.contract.address.lower() == pool.lower()
                and subscription.event == event
            ):
                await subscription.callback({"event": event, "address": pool})


@pytest.fixture
def chain() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def pair() -> TokenPair:
    return TokenPair("token0", "token1")


@pytest.fixture
def two_exchanges(chain: FakeChainClient, pair: TokenPair) -> EngineConfig:
    """X1 quotes 3.0 and X2 quotes 2.8 for (token0, token1)."""
    chain.add_pool("0xf1", "0xp1", "token0", "token1", (100, 300))
    chain.add_pool("0xf2", "0xp2", "token0", "token1", (50, 140))
    return EngineConfig(
        exchanges=(
            ExchangeDescriptor("X1", "0xr1", "0xf1", pairs=(pair,)),
            ExchangeDescriptor("X2", "0xr2", "0xf2", pairs=(pair,)),
        ),
        poll_interval_ms=10,
    )
