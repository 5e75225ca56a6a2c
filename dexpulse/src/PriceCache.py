"""PriceCache: Latest observed price per (exchange, pair).

Entries are only ever overwritten, never appended or removed. An entry that
is not refreshed simply ages and becomes stale.
"""

from __future__ import annotations

from dataclasses import dataclass

from .TokenPair import TokenPair, pair_key


@dataclass(frozen=True)
class PriceObservation:
    """A single price reading.

    :ivar pair_label: Pair label in declared order (e.g., "0xaaa/0xbbb").
    :ivar exchange: Exchange name.
    :ivar price: Units of declared token1 per unit of declared token0.
    :ivar observed_at: Unix timestamp (seconds) of the reading.
    """

    pair_label: str
    exchange: str
    price: float
    observed_at: float


class PriceCache:
    """In-memory map of (exchange, pair key) to the latest observation."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, tuple[str, str]], PriceObservation] = {}

    def put(self, pair: TokenPair, observation: PriceObservation) -> None:
        """Store an observation, replacing any previous one for the same key.

        :param pair: Pair the observation belongs to.
        :param observation: New observation.
        """
        self._entries[(observation.exchange, pair.key)] = observation

    def get(
        self, exchange: str, token_a: str, token_b: str
    ) -> PriceObservation | None:
        """Look up the observation for an exchange and two tokens (either order)."""
        return self._entries.get((exchange, pair_key(token_a, token_b)))

    def get_pair(self, exchange: str, pair: TokenPair) -> PriceObservation | None:
        return self._entries.get((exchange, pair.key))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def snapshot(self) -> list[PriceObservation]:
        """Return every cached observation."""
        return list(self._entries.values())
