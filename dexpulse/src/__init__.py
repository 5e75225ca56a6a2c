"""
DexPulse - Real-Time DEX Price Aggregation Module

This module keeps a live view of token pair prices across DEX liquidity pools:
- TokenPair: Declared token pair with order-independent cache key
- ContractRegistry / PairResolver: Exchange contract handles and pool lookup
- PriceFetcher / PriceCache: Reserve reads and latest-price storage
- PollingScheduler / EventListener: Periodic and swap-driven refresh
- Aggregator: Cross-exchange lookups, staleness and difference ranking
- PricePulse: Engine wiring everything together
"""

from .Aggregator import Aggregator, PriceDifference
from .ChainClient import ZERO_ADDRESS, ChainClient, Subscription
from .ContractRegistry import ContractRegistry
from .errors import (
    EmptyPoolFailure,
    FetchFailure,
    InitializationFailure,
    PairNotFound,
    PricePulseError,
)
from .EventListener import EventListener
from .ExchangeConfig import (
    UNISWAP_V2,
    DexInterface,
    EngineConfig,
    ExchangeDescriptor,
    load_config,
)
from .PairResolver import PairResolver
from .PollingScheduler import PollingScheduler, SchedulerState
from .PriceCache import PriceCache, PriceObservation
from .PriceFetcher import FetchSummary, PriceFetcher
from .PricePulse import PricePulse
from .PriceUpdates import PriceUpdate, PriceUpdateBus
from .TokenPair import TokenPair

__all__ = [
    "Aggregator",
    "ChainClient",
    "ContractRegistry",
    "DexInterface",
    "EmptyPoolFailure",
    "EngineConfig",
    "EventListener",
    "ExchangeDescriptor",
    "FetchFailure",
    "FetchSummary",
    "InitializationFailure",
    "PairNotFound",
    "PairResolver",
    "PollingScheduler",
    "PriceCache",
    "PriceDifference",
    "PriceFetcher",
    "PriceObservation",
    "PricePulse",
    "PricePulseError",
    "PriceUpdate",
    "PriceUpdateBus",
    "SchedulerState",
    "Subscription",
    "TokenPair",
    "UNISWAP_V2",
    "ZERO_ADDRESS",
    "load_config",
]
