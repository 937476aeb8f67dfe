"""Bounded-parallelism task queue for provider calls.

Tasks are admitted strictly in arrival order. A single dispatcher coroutine starts queued tasks
while fewer than ``max_concurrent`` are running and sleeps on an ``asyncio.Event`` otherwise; a
finishing task sets the event. When a rate limiter is attached, every dispatch also passes through
``RateLimiter.admit`` and successive dispatches are spaced by the limiter's minimum interval while
more tasks are waiting.
"""

from __future__ import annotations

import asyncio
import itertools
from collections import deque
from typing import TYPE_CHECKING, Any, TypeVar

from models.dispatch_models import QueueTask
from utils.cancellation import OperationCancelledError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Awaitable, Callable

    from core.dispatch.rate_limiter import RateLimiter
    from utils.cancellation import CancellationToken

__all__: list[str] = ["ConcurrencyQueue"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

T = TypeVar("T")


class ConcurrencyQueue:
    """FIFO task runner with at most ``max_concurrent`` tasks in progress."""

    def __init__(self, max_concurrent: int = 3, rate_limiter: RateLimiter | None = None) -> None:
        """Initialize the queue.

        Args:
            max_concurrent (int): Maximum number of tasks running at once. Must be positive.
            rate_limiter (RateLimiter | None): Limiter consulted before each dispatch.

        Raises:
            ValueError: If ``max_concurrent`` is not a positive integer.
        """
        if isinstance(max_concurrent, bool) or not isinstance(max_concurrent, int) or max_concurrent <= 0:
            msg: str = f"max_concurrent must be a positive integer: {max_concurrent!r}"
            raise ValueError(msg)

        self._max_concurrent: int = max_concurrent
        self._rate_limiter: RateLimiter | None = rate_limiter
        self._pending: deque[QueueTask] = deque()
        self._running: set[QueueTask] = set()
        self._slot_freed: asyncio.Event = asyncio.Event()
        self._dispatcher: asyncio.Task[None] | None = None
        self._ids: itertools.count[int] = itertools.count(1)

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    @property
    def length(self) -> int:
        """Number of tasks waiting for dispatch."""
        return len(self._pending)

    @property
    def active_count(self) -> int:
        return len(self._running)

    async def enqueue(self, run: Callable[[], Awaitable[T]], *, token: CancellationToken | None = None) -> T:
        """Queue ``run`` and wait for its result.

        Args:
            run (Callable[[], Awaitable[T]]): Coroutine factory, called once the task is dispatched.
            token (CancellationToken | None): When cancelled, a waiting task is removed from the queue and
                a running task is cancelled.

        Returns:
            T: Whatever ``run`` returned.

        Raises:
            OperationCancelledError: If the token was cancelled before the task completed.
            Exception: Whatever ``run`` raised.
        """
        if token is not None:
            token.raise_if_cancelled()

        task = QueueTask(
            task_id=next(self._ids),
            run=run,
            future=asyncio.get_running_loop().create_future(),
            token=token,
        )
        self._pending.append(task)
        logger.debug("Task %d queued (pending=%d, active=%d)", task.task_id, self.length, self.active_count)
        self._ensure_dispatcher()

        if token is None:
            return await task.future
        return await self._wait_with_token(task, token)

    async def _wait_with_token(self, task: QueueTask, token: CancellationToken) -> Any:
        cancel_waiter: asyncio.Task[None] = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({task.future, cancel_waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_waiter.cancel()

        if not task.future.done():
            if task.handle is None:
                self._discard_pending(task)
            else:
                task.handle.cancel()
        return await task.future

    def _discard_pending(self, task: QueueTask) -> None:
        try:
            self._pending.remove(task)
        except ValueError:
            return
        self._reject(task, "removed from queue before dispatch")
        logger.debug("Task %d abandoned before dispatch", task.task_id)

    @staticmethod
    def _reject(task: QueueTask, reason: str) -> None:
        if not task.future.done():
            msg: str = f"Task {task.task_id} {reason}"
            task.future.set_exception(OperationCancelledError(msg))

    def _ensure_dispatcher(self) -> None:
        if self._dispatcher is None or self._dispatcher.done():
            self._dispatcher = asyncio.create_task(self._dispatch_loop())

    async def _dispatch_loop(self) -> None:
        while self._pending:
            while len(self._running) >= self._max_concurrent:
                self._slot_freed.clear()
                await self._slot_freed.wait()

            if not self._pending:
                break
            task: QueueTask = self._pending.popleft()

            if self._rate_limiter is not None and self._rate_limiter.enabled:
                try:
                    await self._rate_limiter.admit(task.token)
                except OperationCancelledError:
                    self._reject(task, "cancelled while waiting for rate limit admission")
                    continue

            if task.future.done() or (task.token is not None and task.token.is_cancelled):
                self._reject(task, "cancelled before dispatch")
                continue

            self._start(task)

            if self._pending and self._rate_limiter is not None and self._rate_limiter.enabled:
                await asyncio.sleep(self._rate_limiter.min_interval)

    def _start(self, task: QueueTask) -> None:
        self._running.add(task)
        task.handle = asyncio.create_task(self._run_task(task))
        logger.debug("Task %d dispatched (active=%d)", task.task_id, len(self._running))

    async def _run_task(self, task: QueueTask) -> None:
        try:
            result: Any = await task.run()
        except asyncio.CancelledError:
            self._reject(task, "cancelled while running")
            raise
        except Exception as err:  # noqa: BLE001
            if not task.future.done():
                task.future.set_exception(err)
        else:
            if not task.future.done():
                task.future.set_result(result)
        finally:
            self._running.discard(task)
            self._slot_freed.set()

    def clear(self) -> int:
        """Reject every task still waiting for dispatch.

        Returns:
            int: Number of tasks rejected.
        """
        count: int = len(self._pending)
        while self._pending:
            self._reject(self._pending.popleft(), "cleared from queue")
        if count:
            logger.info("Cleared %d queued tasks", count)
        return count

    async def close(self) -> None:
        """Reject waiting tasks and cancel running ones."""
        self.clear()
        for task in list(self._running):
            if task.handle is not None:
                task.handle.cancel()
        if self._dispatcher is not None and not self._dispatcher.done():
            self._dispatcher.cancel()
        self._dispatcher = None
