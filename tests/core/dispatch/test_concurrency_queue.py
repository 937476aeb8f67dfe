from __future__ import annotations

import asyncio
import time

import pytest

from core.dispatch.concurrency_queue import ConcurrencyQueue
from core.dispatch.rate_limiter import RateLimiter
from utils.cancellation import CancellationToken, OperationCancelledError


class ConcurrencyProbe:
    def __init__(self) -> None:
        self.running: int = 0
        self.max_running: int = 0
        self.started: list[int] = []

    async def work(self, index: int, delay: float = 0.02) -> int:
        self.started.append(index)
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            await asyncio.sleep(delay)
        finally:
            self.running -= 1
        return index


@pytest.mark.parametrize("value", [0, -1, True, 1.5])
def test_rejects_invalid_max_concurrent(value: object) -> None:
    with pytest.raises(ValueError):
        ConcurrencyQueue(value)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_enqueue_returns_result() -> None:
    queue = ConcurrencyQueue(2)

    async def job() -> str:
        return "done"

    assert await queue.enqueue(job) == "done"


@pytest.mark.asyncio
async def test_running_tasks_never_exceed_limit() -> None:
    queue = ConcurrencyQueue(3)
    probe = ConcurrencyProbe()

    results: list[int] = await asyncio.gather(
        *(queue.enqueue(lambda i=i: probe.work(i)) for i in range(10))  # type: ignore[misc]
    )

    assert results == list(range(10))
    assert probe.max_running == 3
    assert queue.active_count == 0
    assert queue.length == 0


@pytest.mark.asyncio
async def test_tasks_start_in_arrival_order() -> None:
    queue = ConcurrencyQueue(1)
    probe = ConcurrencyProbe()

    await asyncio.gather(*(queue.enqueue(lambda i=i: probe.work(i, 0.001)) for i in range(6)))  # type: ignore[misc]

    assert probe.started == list(range(6))


@pytest.mark.asyncio
async def test_failure_does_not_affect_other_tasks() -> None:
    queue = ConcurrencyQueue(2)

    async def fail() -> str:
        msg = "provider exploded"
        raise RuntimeError(msg)

    async def succeed() -> str:
        await asyncio.sleep(0.01)
        return "ok"

    results: list[object] = await asyncio.gather(
        queue.enqueue(fail), queue.enqueue(succeed), queue.enqueue(succeed), return_exceptions=True
    )

    assert isinstance(results[0], RuntimeError)
    assert results[1:] == ["ok", "ok"]


@pytest.mark.asyncio
async def test_cancelled_token_rejects_immediately() -> None:
    queue = ConcurrencyQueue(1)
    token = CancellationToken()
    token.cancel()

    async def job() -> str:
        return "never"

    with pytest.raises(OperationCancelledError):
        await queue.enqueue(job, token=token)


@pytest.mark.asyncio
async def test_cancel_removes_waiting_task() -> None:
    queue = ConcurrencyQueue(1)
    probe = ConcurrencyProbe()
    token = CancellationToken()

    blocker: asyncio.Task[int] = asyncio.create_task(queue.enqueue(lambda: probe.work(0, 0.1)))
    waiting: asyncio.Task[int] = asyncio.create_task(queue.enqueue(lambda: probe.work(1), token=token))
    await asyncio.sleep(0.01)
    assert queue.length == 1

    token.cancel("stale")

    with pytest.raises(OperationCancelledError):
        await waiting
    assert await blocker == 0
    assert probe.started == [0]


@pytest.mark.asyncio
async def test_cancel_stops_running_task() -> None:
    queue = ConcurrencyQueue(1)
    token = CancellationToken()
    finished: list[bool] = []

    async def slow() -> str:
        await asyncio.sleep(5)
        finished.append(True)
        return "late"

    running: asyncio.Task[str] = asyncio.create_task(queue.enqueue(slow, token=token))
    await asyncio.sleep(0.01)
    assert queue.active_count == 1

    token.cancel()

    with pytest.raises(OperationCancelledError):
        await asyncio.wait_for(running, timeout=1.0)
    assert finished == []
    await asyncio.sleep(0)
    assert queue.active_count == 0


@pytest.mark.asyncio
async def test_clear_rejects_waiting_tasks() -> None:
    queue = ConcurrencyQueue(1)
    probe = ConcurrencyProbe()

    blocker = asyncio.create_task(queue.enqueue(lambda: probe.work(0, 0.05)))
    waiting = [asyncio.create_task(queue.enqueue(lambda i=i: probe.work(i))) for i in range(1, 4)]  # type: ignore[misc]
    await asyncio.sleep(0.01)

    assert queue.clear() == 3

    results = await asyncio.gather(*waiting, return_exceptions=True)
    assert all(isinstance(result, OperationCancelledError) for result in results)
    assert await blocker == 0


@pytest.mark.asyncio
async def test_rate_limiter_spaces_dispatches() -> None:
    queue = ConcurrencyQueue(5, rate_limiter=RateLimiter(20))
    started: list[float] = []

    async def stamp() -> None:
        started.append(time.monotonic())

    await asyncio.gather(*(queue.enqueue(stamp) for _ in range(4)))

    assert started[-1] - started[0] >= (4 - 1) / 20 * 0.9


@pytest.mark.asyncio
async def test_close_cancels_running_tasks() -> None:
    queue = ConcurrencyQueue(1)

    async def slow() -> None:
        await asyncio.sleep(5)

    running = asyncio.create_task(queue.enqueue(slow))
    await asyncio.sleep(0.01)

    await queue.close()

    with pytest.raises(OperationCancelledError):
        await asyncio.wait_for(running, timeout=1.0)
