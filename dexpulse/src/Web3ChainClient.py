"""Web3ChainClient: ChainClient implementation on top of web3.py.

Event subscriptions poll ``eth_getLogs`` over each new block range, at most
DEFAULT_MAX_BLOCK_RANGE blocks per query; no node-side filter is installed.
Async event callbacks run as their own tasks and outlive unsubscribe().
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from typing import Any

from web3 import AsyncWeb3, Web3
from web3.contract import AsyncContract

from .ChainClient import ChainClient, EventCallback, Subscription
from .ContractUtility import ContractUtility

logger = logging.getLogger(__name__)

DEFAULT_MAX_BLOCK_RANGE = 2_000


class LogPollSubscription(Subscription):
    """Delivers contract events by polling logs for new blocks.

    :ivar event: Event name.
    :ivar poll_interval: Seconds between polls.
    :ivar next_block: First block not yet scanned.
    :ivar max_block_range: Most blocks requested in one log query.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        contract: AsyncContract,
        event: str,
        callback: EventCallback,
        start_block: int,
        poll_interval: float,
        max_block_range: int = DEFAULT_MAX_BLOCK_RANGE,
    ) -> None:
        self.w3 = w3
        self.contract = contract
        self.event = event
        self.callback = callback
        self.poll_interval = poll_interval
        self.max_block_range = max_block_range
        self.next_block = start_block
        self._callbacks: set[asyncio.Future] = set()
        self._task = asyncio.create_task(
            self._run(), name=f"logs:{contract.address}:{event}"
        )

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                latest = await self.w3.eth.block_number
                if latest < self.next_block:
                    continue
                to_block = min(latest, self.next_block + self.max_block_range - 1)
                event = getattr(self.contract.events, self.event)()
                logs = await event.get_logs(
                    from_block=self.next_block, to_block=to_block
                )
                self.next_block = to_block + 1
            except Exception as e:
                logger.warning(
                    f"[{self.contract.address}] Log poll for {self.event} failed: {e}"
                )
                continue

            for log in logs:
                try:
                    result = self.callback(log)
                except Exception as e:
                    logger.warning(
                        f"[{self.contract.address}] {self.event} callback raised: {e}"
                    )
                    continue
                # Scheduled apart from the poll task; unsubscribe() does not cancel it
                if inspect.isawaitable(result):
                    future = asyncio.ensure_future(result)
                    self._callbacks.add(future)
                    future.add_done_callback(self._on_callback_done)

    def _on_callback_done(self, future: asyncio.Future) -> None:
        self._callbacks.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.warning(
                f"[{self.contract.address}] {self.event} callback raised: "
                f"{future.exception()}"
            )

    async def unsubscribe(self) -> None:
        if self._task.done():
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task


class Web3ChainClient(ChainClient):
    """Read-only chain access through an AsyncWeb3 instance.

    :ivar w3: AsyncWeb3 instance.
    :ivar log_poll_interval: Seconds between event log polls.
    :ivar max_block_range: Most blocks requested in one log query.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        log_poll_interval: float = 2.0,
        max_block_range: int = DEFAULT_MAX_BLOCK_RANGE,
    ) -> None:
        """Initialize the client.

        :param w3: Configured AsyncWeb3 instance.
        :param log_poll_interval: Seconds between event log polls (default: 2.0).
        :param max_block_range: Block span cap per log query (default: 2000).
        """
        self.w3 = w3
        self.log_poll_interval = log_poll_interval
        self.max_block_range = max_block_range

    @classmethod
    def for_network(
        cls, network_name: str, log_poll_interval: float = 2.0
    ) -> Web3ChainClient:
        """Build a client for a named network or RPC URL.

        :param network_name: Network name (mainnet, sepolia, localnet) or URL.
        :param log_poll_interval: Seconds between event log polls.
        :returns: New client.
        """
        return cls(ContractUtility(network_name).w3, log_poll_interval)

    def contract(self, address: str, abi: list[dict]) -> AsyncContract:
        if not Web3.is_address(address):
            raise ValueError(f"Malformed contract address: {address!r}")
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=abi
        )

    async def call(self, contract: AsyncContract, method: str, *args: Any) -> Any:
        call_args = [
            Web3.to_checksum_address(a)
            if isinstance(a, str) and Web3.is_address(a)
            else a
            for a in args
        ]
        return await getattr(contract.functions, method)(*call_args).call()

    async def subscribe(
        self, contract: AsyncContract, event: str, callback: EventCallback
    ) -> Subscription:
        start_block = (await self.w3.eth.block_number) + 1
        logger.debug(
            f"[{contract.address}] Watching {event} from block {start_block}"
        )
        return LogPollSubscription(
            self.w3,
            contract,
            event,
            callback,
            start_block=start_block,
            poll_interval=self.log_poll_interval,
            max_block_range=self.max_block_range,
        )
