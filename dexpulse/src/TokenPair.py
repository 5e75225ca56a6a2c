"""TokenPair: Ordered token pair tracked across exchanges.

Token identifiers keep their declared spelling (checksummed addresses are
passed to the chain as-is) but compare case-insensitively. Two derived keys
are exposed:

    label: "token0/token1" lowercased, in declared order
    key:   the two lowercased identifiers sorted, so (A, B) and (B, A)
           resolve to the same cache entry

.. code-block:: python

    >>> pair = TokenPair("0xAAA", "0xBBB")
    >>> pair.label
    '0xaaa/0xbbb'
    >>> pair.key == TokenPair("0xbbb", "0xaaa").key
    True
"""

from __future__ import annotations

from typing import Any


class TokenPair:
    """Two token identifiers in declared order, plus an optional pool address.

    :ivar token0: First token as declared.
    :ivar token1: Second token as declared.
    :ivar pair_address: Pool address if known up front, else None.
    """

    def __init__(
        self, token0: str, token1: str, pair_address: str | None = None
    ) -> None:
        """Initialize a token pair.

        :param token0: Identifier of the token the price is quoted per unit of.
        :param token1: Identifier of the token the price is quoted in.
        :param pair_address: Optional pool address, skips factory resolution.
        :raises ValueError: If a token is empty or both tokens are the same.
        """
        token0 = token0.strip()
        token1 = token1.strip()
        if not token0 or not token1:
            raise ValueError("Token identifiers must be non-empty")
        if token0.lower() == token1.lower():
            raise ValueError(f"Pair tokens must differ, got {token0} twice")

        self.token0 = token0
        self.token1 = token1
        self.pair_address = pair_address or None

    @property
    def label(self) -> str:
        """Normalized label in declared order."""
        return f"{self.token0.lower()}/{self.token1.lower()}"

    @property
    def key(self) -> tuple[str, str]:
        """Order-independent cache key."""
        a, b = sorted((self.token0.lower(), self.token1.lower()))
        return a, b

    def matches(self, token_a: str, token_b: str) -> bool:
        """Check whether the pair consists of the two tokens, in either order."""
        return self.key == pair_key(token_a, token_b)

    def __str__(self) -> str:
        return self.label

    def __repr__(self) -> str:
        if self.pair_address:
            return (
                f"TokenPair({self.token0!r}, {self.token1!r}, "
                f"pair_address={self.pair_address!r})"
            )
        return f"TokenPair({self.token0!r}, {self.token1!r})"

    def __hash__(self) -> int:
        return hash(self.label)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TokenPair):
            return NotImplemented
        return self.label == other.label

    @classmethod
    def from_string(cls, pair_str: str) -> TokenPair:
        """Parse a pair string in format "token0/token1".

        :param pair_str: Pair string like "0xC02a.../0xA0b8...".
        :returns: New TokenPair instance.
        :raises ValueError: If pair string format is invalid.
        """
        parts = pair_str.split("/")
        if len(parts) != 2:
            raise ValueError(
                f"Invalid pair format '{pair_str}'. Expected 'token0/token1'"
            )
        return cls(parts[0], parts[1])

    @classmethod
    def from_dict(cls, data: dict[str, Any] | str) -> TokenPair:
        """Build a pair from a config entry.

        Accepts either a "token0/token1" string or a mapping with ``token0``,
        ``token1`` and optional ``pair_address`` keys.

        :param data: Config entry.
        :returns: New TokenPair instance.
        :raises ValueError: If required keys are missing.
        """
        if isinstance(data, str):
            return cls.from_string(data)
        try:
            return cls(
                data["token0"], data["token1"], pair_address=data.get("pair_address")
            )
        except KeyError as e:
            raise ValueError(f"Pair entry is missing {e.args[0]!r}: {data}") from e


def pair_key(token_a: str, token_b: str) -> tuple[str, str]:
    """Order-independent key for two token identifiers."""
    a, b = sorted((token_a.strip().lower(), token_b.strip().lower()))
    return a, b
