"""Exchange configuration: typed contract interfaces and exchange descriptors.

Configuration is accepted as constructor-time data, either built in code or
loaded from a JSON document:

.. code-block:: json

    {
        "poll_interval_ms": 10000,
        "exchanges": [
            {
                "name": "uniswap",
                "router_address": "0x7a25...",
                "factory_address": "0x5C69...",
                "pairs": [
                    {"token0": "0xC02a...", "token1": "0xA0b8..."},
                    "0xC02a.../0xdAC1..."
                ]
            }
        ]
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .ContractUtility import (
    UNISWAP_V2_FACTORY_ABI,
    UNISWAP_V2_PAIR_ABI,
    UNISWAP_V2_ROUTER_ABI,
)
from .TokenPair import TokenPair

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 10_000


@dataclass(frozen=True)
class DexInterface:
    """The contract members the engine relies on for one DEX family.

    :ivar router_abi: Router interface description.
    :ivar factory_abi: Factory interface description.
    :ivar pair_abi: Pool interface description.
    :ivar get_pair: Factory method returning the pool for two tokens.
    :ivar get_reserves: Pool method returning (reserve0, reserve1, ...).
    :ivar token0: Pool method returning the address in reserve slot 0.
    :ivar swap_event: Pool event emitted on every trade.
    """

    router_abi: list[dict] = field(hash=False)
    factory_abi: list[dict] = field(hash=False)
    pair_abi: list[dict] = field(hash=False)
    get_pair: str = "getPair"
    get_reserves: str = "getReserves"
    token0: str = "token0"
    swap_event: str = "Swap"


UNISWAP_V2 = DexInterface(
    router_abi=UNISWAP_V2_ROUTER_ABI,
    factory_abi=UNISWAP_V2_FACTORY_ABI,
    pair_abi=UNISWAP_V2_PAIR_ABI,
)

INTERFACES: dict[str, DexInterface] = {"uniswap_v2": UNISWAP_V2}


@dataclass(frozen=True)
class ExchangeDescriptor:
    """A single exchange and the pairs tracked on it.

    :ivar name: Unique exchange name.
    :ivar router_address: Router contract address.
    :ivar factory_address: Factory contract address.
    :ivar pairs: Supported token pairs, duplicates removed.
    :ivar interface: Contract interface family.
    """

    name: str
    router_address: str
    factory_address: str
    pairs: tuple[TokenPair, ...] = ()
    interface: DexInterface = UNISWAP_V2

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Exchange name must be non-empty")

        unique: list[TokenPair] = []
        seen: set[tuple[str, str]] = set()
        for pair in self.pairs:
            if pair.key in seen:
                logger.warning(
                    f"[{self.name}] Dropping duplicate pair {pair.label}"
                )
                continue
            seen.add(pair.key)
            unique.append(pair)
        object.__setattr__(self, "pairs", tuple(unique))

    def supports(self, token_a: str, token_b: str) -> bool:
        """Check whether the exchange lists the pair, in either order."""
        return any(pair.matches(token_a, token_b) for pair in self.pairs)

    def find_pair(self, token_a: str, token_b: str) -> TokenPair | None:
        """Return the declared pair for two tokens, in either order."""
        for pair in self.pairs:
            if pair.matches(token_a, token_b):
                return pair
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExchangeDescriptor:
        """Build a descriptor from a config entry.

        :param data: Mapping with name, router_address, factory_address, pairs
            and an optional interface name (default "uniswap_v2").
        :returns: New descriptor.
        :raises ValueError: If a required field is missing or invalid.
        """
        for required in ("name", "router_address", "factory_address"):
            if not data.get(required):
                raise ValueError(f"Exchange entry is missing '{required}': {data}")

        interface_name = data.get("interface", "uniswap_v2")
        if interface_name not in INTERFACES:
            raise ValueError(
                f"Unknown interface '{interface_name}'. "
                f"Available: {', '.join(sorted(INTERFACES))}"
            )

        return cls(
            name=data["name"],
            router_address=data["router_address"],
            factory_address=data["factory_address"],
            pairs=tuple(TokenPair.from_dict(p) for p in data.get("pairs", [])),
            interface=INTERFACES[interface_name],
        )


@dataclass(frozen=True)
class EngineConfig:
    """Constructor-time configuration for the engine.

    :ivar exchanges: Exchanges in declaration order.
    :ivar poll_interval_ms: Wait between polling cycles in milliseconds.
    """

    exchanges: tuple[ExchangeDescriptor, ...]
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS

    def __post_init__(self) -> None:
        if self.poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive")
        object.__setattr__(self, "exchanges", tuple(self.exchanges))

        seen: set[str] = set()
        for exchange in self.exchanges:
            if exchange.name in seen:
                raise ValueError(f"Duplicate exchange name: {exchange.name}")
            seen.add(exchange.name)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineConfig:
        """Build a config from a parsed JSON document.

        :param data: Mapping with "exchanges" and optional "poll_interval_ms".
        :returns: New config.
        :raises ValueError: If the document is invalid.
        """
        exchanges = data.get("exchanges")
        if not isinstance(exchanges, list) or not exchanges:
            raise ValueError("Config must list at least one exchange under 'exchanges'")

        return cls(
            exchanges=tuple(ExchangeDescriptor.from_dict(e) for e in exchanges),
            poll_interval_ms=int(data.get("poll_interval_ms", DEFAULT_POLL_INTERVAL_MS)),
        )


def load_config(path: str | Path) -> EngineConfig:
    """Load an engine config from a JSON file.

    :param path: Path to the JSON document.
    :returns: Parsed config.
    :raises ValueError: If the file is not valid JSON or not a valid config.
    """
    with open(path, "r") as file:
        try:
            data = json.load(file)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config root in {path} must be an object")
    return EngineConfig.from_dict(data)
