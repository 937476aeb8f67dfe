"""Models for the dispatch layer (concurrency queue)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Awaitable, Callable

    from utils.cancellation import CancellationToken

__all__: list[str] = ["QueueTask"]


@dataclass(eq=False)
class QueueTask:
    """A unit of work waiting in or running on the concurrency queue.

    Attributes:
        task_id (int): Sequence number in arrival order.
        run (Callable[[], Awaitable[Any]]): Coroutine factory executed once dispatched.
        future (asyncio.Future[Any]): Settled with the result or the exception of ``run``.
        token (CancellationToken | None): Cancellation handle of the submitting caller.
        handle (asyncio.Task[None] | None): The asyncio task while running, None before dispatch.
    """

    task_id: int
    run: Callable[[], Awaitable[Any]]
    future: asyncio.Future[Any]
    token: CancellationToken | None = None
    handle: asyncio.Task[None] | None = field(default=None, repr=False)

    @property
    def is_started(self) -> bool:
        return self.handle is not None
