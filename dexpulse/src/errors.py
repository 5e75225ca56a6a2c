"""Error taxonomy for the price aggregation engine.

None of these are fatal: each one is contained to a single exchange or a
single (exchange, pair) and logged by whoever catches it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .TokenPair import TokenPair


class PricePulseError(Exception):
    """Base exception for engine errors."""

    pass


class InitializationFailure(PricePulseError):
    """Raised when an exchange cannot be registered (bad config, chain error).

    :ivar exchange: Name of the exchange that was skipped.
    """

    def __init__(self, exchange: str, message: str):
        """Initialize the error.

        :param exchange: Exchange name.
        :param message: Failure description.
        """
        self.exchange = exchange
        super().__init__(f"[{exchange}] {message}")


class PairNotFound(PricePulseError):
    """Raised when no pool exists for a token pair on an exchange.

    :ivar exchange: Exchange name.
    :ivar pair: Token pair that could not be resolved.
    """

    def __init__(self, exchange: str, pair: TokenPair, message: str | None = None):
        """Initialize the error.

        :param exchange: Exchange name.
        :param pair: Token pair.
        :param message: Optional detail, defaults to a generic description.
        """
        self.exchange = exchange
        self.pair = pair
        super().__init__(f"[{exchange}] {message or f'No pool for {pair.label}'}")


class FetchFailure(PricePulseError):
    """Raised when a single price fetch fails (transport or bad reserve data).

    :ivar exchange: Exchange name.
    :ivar pair: Token pair whose fetch failed.
    """

    def __init__(self, exchange: str, pair: TokenPair, message: str):
        """Initialize the error.

        :param exchange: Exchange name.
        :param pair: Token pair.
        :param message: Failure description.
        """
        self.exchange = exchange
        self.pair = pair
        super().__init__(f"[{exchange}] {pair.label}: {message}")


class EmptyPoolFailure(FetchFailure):
    """Raised when a pool reports a zero reserve.

    :ivar reserves: The (reserve0, reserve1) pair as reported by the pool.
    """

    def __init__(self, exchange: str, pair: TokenPair, reserves: tuple[int, int]):
        """Initialize the error.

        :param exchange: Exchange name.
        :param pair: Token pair.
        :param reserves: Raw pool reserves.
        """
        self.reserves = reserves
        super().__init__(exchange, pair, f"Empty pool, reserves={reserves}")
