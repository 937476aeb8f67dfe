from __future__ import annotations

import asyncio
import time
from collections import deque

import pytest

from core.dispatch.rate_limiter import RateLimiter
from utils.cancellation import CancellationToken, OperationCancelledError


def test_disabled_limiter_has_no_interval() -> None:
    limiter = RateLimiter(0)

    assert limiter.enabled is False
    assert limiter.min_interval == 0.0


def test_negative_budget_is_treated_as_disabled() -> None:
    assert RateLimiter(-3).enabled is False


def test_min_interval_is_inverse_of_budget() -> None:
    assert RateLimiter(4).min_interval == pytest.approx(0.25)


def test_compute_wait_uses_window_when_near_limit() -> None:
    limiter = RateLimiter(5)
    limiter._timestamps = deque([0.0, 0.2, 0.4, 0.6])  # noqa: SLF001

    assert limiter._compute_wait(0.7) == pytest.approx(0.3)  # noqa: SLF001


def test_compute_wait_uses_spacing_when_window_has_room() -> None:
    limiter = RateLimiter(10)
    limiter._timestamps = deque([0.0])  # noqa: SLF001

    assert limiter._compute_wait(0.05) == pytest.approx(0.05)  # noqa: SLF001


def test_compute_wait_is_zero_for_empty_window() -> None:
    assert RateLimiter(5)._compute_wait(10.0) == 0.0  # noqa: SLF001


@pytest.mark.asyncio
async def test_disabled_limiter_admits_immediately() -> None:
    limiter = RateLimiter(0)
    started: float = time.monotonic()

    for _ in range(50):
        await limiter.admit()

    assert time.monotonic() - started < 0.5


@pytest.mark.asyncio
async def test_first_admission_is_immediate() -> None:
    limiter = RateLimiter(1)
    started: float = time.monotonic()

    await limiter.admit()

    assert time.monotonic() - started < 0.1
    assert limiter.window_size == 1


@pytest.mark.asyncio
async def test_admissions_are_spaced_by_budget() -> None:
    limiter = RateLimiter(20)
    admitted: list[float] = []

    for _ in range(5):
        await limiter.admit()
        admitted.append(time.monotonic())

    # K admissions take at least (K - 1) / R seconds
    assert admitted[-1] - admitted[0] >= (5 - 1) / 20 * 0.9


@pytest.mark.asyncio
async def test_admit_rejects_cancelled_token() -> None:
    limiter = RateLimiter(5)
    token = CancellationToken()
    token.cancel()

    with pytest.raises(OperationCancelledError):
        await limiter.admit(token)


@pytest.mark.asyncio
async def test_cancel_interrupts_wait() -> None:
    limiter = RateLimiter(0.5)
    await limiter.admit()
    token = CancellationToken()
    asyncio.get_running_loop().call_later(0.02, token.cancel, "abandoned")
    started: float = time.monotonic()

    with pytest.raises(OperationCancelledError):
        await limiter.admit(token)

    assert time.monotonic() - started < 1.0
    assert limiter.window_size == 1


@pytest.mark.asyncio
async def test_reset_clears_window() -> None:
    limiter = RateLimiter(5)
    await limiter.admit()

    limiter.reset()

    assert limiter.window_size == 0
