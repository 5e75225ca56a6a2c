"""PollingScheduler: Periodic full refresh of every configured pair.

The wait between cycles starts when the previous cycle's fetch_all() has
finished, so a slow cycle delays the next one instead of overlapping it.
stop() never cancels an in-flight cycle; it only prevents the next one.
"""

from __future__ import annotations

import asyncio
import enum
import logging

from .ExchangeConfig import DEFAULT_POLL_INTERVAL_MS
from .PriceFetcher import PriceFetcher

logger = logging.getLogger(__name__)


class SchedulerState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


class PollingScheduler:
    """Drives fetch_all() at a fixed interval while running.

    :ivar fetcher: Price fetcher to drive.
    :ivar poll_interval_ms: Wait between cycles in milliseconds.
    :ivar state: Current scheduler state.
    :ivar cycles: Number of completed cycles since construction.
    """

    def __init__(
        self,
        fetcher: PriceFetcher,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    ) -> None:
        """Initialize an idle scheduler.

        :param fetcher: Price fetcher to drive.
        :param poll_interval_ms: Wait between cycles (default: 10000).
        :raises ValueError: If the interval is not positive.
        """
        if poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive")

        self.fetcher = fetcher
        self.poll_interval_ms = poll_interval_ms
        self.state = SchedulerState.IDLE
        self.cycles = 0
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def is_running(self) -> bool:
        return self.state is SchedulerState.RUNNING

    def start(self) -> bool:
        """Start polling. Must be called from within a running event loop.

        The first cycle begins immediately.

        :returns: True if started, False if already running.
        """
        if self.state is not SchedulerState.IDLE:
            return False

        self.state = SchedulerState.RUNNING
        # Each run owns its stop event, so a stopped run still finishing its
        # last cycle cannot be revived by a later start(). The new run waits
        # for that cycle before starting its own.
        previous = self._task
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(
            self._run(self._stop_event, previous), name="price-polling"
        )
        logger.info(f"Polling started at interval of {self.poll_interval_ms}ms")
        return True

    def stop(self) -> None:
        """Stop scheduling new cycles. An in-flight cycle is left to finish."""
        if self.state is SchedulerState.IDLE:
            return

        self.state = SchedulerState.IDLE
        if self._stop_event is not None:
            self._stop_event.set()
        logger.info("Polling stopped")

    async def wait_closed(self) -> None:
        """Wait for the most recent polling loop, and any loop it waits on, to exit."""
        if self._task is not None:
            await self._task

    async def _run(
        self, stop_event: asyncio.Event, previous: asyncio.Task | None = None
    ) -> None:
        if previous is not None and not previous.done():
            await asyncio.wait({previous})

        interval = self.poll_interval_ms / 1000
        while not stop_event.is_set():
            try:
                await self.fetcher.fetch_all()
            except Exception as e:
                logger.error(f"Error polling prices: {e}")
            self.cycles += 1

            if stop_event.is_set():
                break
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
