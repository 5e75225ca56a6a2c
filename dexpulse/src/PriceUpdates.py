"""Price-update notifications broadcast to any number of listeners.

Listeners may be plain callables or coroutine functions. Coroutines are
scheduled as tasks on the running loop and are not awaited by publish().

.. code-block:: python

    >>> bus = PriceUpdateBus()
    >>> unsubscribe = bus.subscribe(lambda u: print(u.exchange, u.price))
    >>> bus.publish(PriceUpdate(TokenPair("a", "b"), "uniswap", 3.0))
    uniswap 3.0
    >>> unsubscribe()
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable

from .TokenPair import TokenPair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceUpdate:
    """Emitted on every successful single-pair refresh.

    :ivar pair: Pair as declared on the exchange.
    :ivar exchange: Exchange name.
    :ivar price: New price.
    """

    pair: TokenPair
    exchange: str
    price: float


PriceListener = Callable[[PriceUpdate], Any]


class PriceUpdateBus:
    """Observer list for PriceUpdate notifications."""

    def __init__(self) -> None:
        self._listeners: list[PriceListener] = []
        self._pending: set[asyncio.Task] = set()

    def subscribe(self, listener: PriceListener) -> Callable[[], None]:
        """Register a listener.

        :param listener: Callable receiving each PriceUpdate.
        :returns: Function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def publish(self, update: PriceUpdate) -> None:
        """Notify every current listener.

        A listener that raises is logged and does not affect the others.

        :param update: Update to broadcast.
        """
        for listener in list(self._listeners):
            try:
                result = listener(update)
            except Exception as e:
                logger.warning(f"Price listener {listener!r} raised: {e}")
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Async price listener raised: {task.exception()}")
