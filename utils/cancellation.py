"""Cooperative cancellation for translation work.

A ``CancellationToken`` is created by whoever starts a unit of work (typically a batch run) and
handed down through the orchestrator, the concurrency queue and the rate limiter. Each of them
checks it before and after every suspension point, so abandoning a stale batch stops it at the
next await instead of letting it drain the queue.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = ["CancellationToken", "OperationCancelledError", "cancellable_sleep"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class OperationCancelledError(Exception):
    """The operation was abandoned through its cancellation token."""


class CancellationToken:
    """One-shot cancellation flag that can be awaited."""

    def __init__(self) -> None:
        self._event: asyncio.Event = asyncio.Event()
        self._reason: str = ""

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Signal cancellation. Calling it again keeps the first reason."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logger.debug("Cancellation requested: %s", reason)

    def raise_if_cancelled(self) -> None:
        """Raise if cancellation has been requested.

        Raises:
            OperationCancelledError: If the token is cancelled.
        """
        if self._event.is_set():
            msg: str = f"Operation cancelled: {self._reason}"
            raise OperationCancelledError(msg)

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    async def sleep(self, delay: float) -> None:
        """Sleep for ``delay`` seconds unless cancelled first.

        Raises:
            OperationCancelledError: If the token is cancelled before or during the sleep.
        """
        self.raise_if_cancelled()
        if delay <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except TimeoutError:
            return
        self.raise_if_cancelled()


async def cancellable_sleep(delay: float, token: CancellationToken | None = None) -> None:
    """Sleep through ``token`` when one is given, plain ``asyncio.sleep`` otherwise."""
    if token is None:
        if delay > 0:
            await asyncio.sleep(delay)
        return
    await token.sleep(delay)
