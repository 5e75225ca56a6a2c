"""ChainClient: Abstract base class for the blockchain client collaborator."""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

# Callback invoked once per event occurrence with the decoded log.
EventCallback = Callable[[Any], Awaitable[None] | None]

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class Subscription(ABC):
    """Handle for an active event subscription."""

    @abstractmethod
    async def unsubscribe(self) -> None:
        """Stop delivering events. Safe to call more than once."""
        pass


class ChainClient(ABC):
    """Read-only access to contracts on a chain.

    Implementations own transport concerns (timeouts, retries). The engine
    only creates handles, calls view methods and subscribes to events.

    :cvar zero_address: Address a factory returns for a missing pool.
    """

    zero_address: str = ZERO_ADDRESS

    @abstractmethod
    def contract(self, address: str, abi: list[dict]) -> Any:
        """Build a read-only contract handle.

        :param address: Contract address.
        :param abi: Contract interface description.
        :returns: Opaque handle passed back to call() and subscribe().
        :raises ValueError: If the address is malformed.
        """
        pass

    @abstractmethod
    async def call(self, contract: Any, method: str, *args: Any) -> Any:
        """Invoke a view method.

        :param contract: Handle from contract().
        :param method: Method name (e.g., "getReserves").
        :param args: Method arguments.
        :returns: Decoded return value.
        """
        pass

    @abstractmethod
    async def subscribe(
        self, contract: Any, event: str, callback: EventCallback
    ) -> Subscription:
        """Subscribe to an event emitted by a contract.

        :param contract: Handle from contract().
        :param event: Event name (e.g., "Swap").
        :param callback: Invoked once per occurrence.
        :returns: Subscription handle.
        """
        pass
