"""Sliding-window admission control for outbound provider calls."""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import TYPE_CHECKING, ClassVar

from utils.cancellation import cancellable_sleep
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from utils.cancellation import CancellationToken

__all__: list[str] = ["RateLimiter"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class RateLimiter:
    """Limits admissions to ``requests_per_second`` over a trailing one-second window.

    Admissions are smoothed rather than bursted: consecutive admissions are at least
    ``1 / requests_per_second`` seconds apart, and once the window is within one request of the
    limit the caller waits until the oldest admission leaves the window (never less than one
    interval).

    Attributes:
        WINDOW_SEC (ClassVar[float]): Length of the sliding window.
        SAFETY_MARGIN (ClassVar[int]): How many requests below the limit the window starts throttling.
    """

    WINDOW_SEC: ClassVar[float] = 1.0
    SAFETY_MARGIN: ClassVar[int] = 1

    def __init__(self, requests_per_second: float = 0.0, *, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize the limiter.

        Args:
            requests_per_second (float): Admission budget. Zero or less disables limiting.
            clock (Callable[[], float]): Monotonic time source in seconds.
        """
        self._rps: float = max(float(requests_per_second or 0.0), 0.0)
        self._clock: Callable[[], float] = clock
        self._timestamps: deque[float] = deque()
        self._lock: asyncio.Lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self._rps > 0

    @property
    def requests_per_second(self) -> float:
        return self._rps

    @property
    def min_interval(self) -> float:
        """Minimum spacing between admissions in seconds, 0.0 when disabled."""
        if not self.enabled:
            return 0.0
        return self.WINDOW_SEC / self._rps

    @property
    def window_size(self) -> int:
        self._prune(self._clock())
        return len(self._timestamps)

    def _prune(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= self.WINDOW_SEC:
            self._timestamps.popleft()

    def _compute_wait(self, now: float) -> float:
        wait: float = 0.0
        if not self._timestamps:
            return wait

        wait = self._timestamps[-1] + self.min_interval - now
        if len(self._timestamps) >= self._rps - self.SAFETY_MARGIN:
            window_wait: float = self._timestamps[0] + self.WINDOW_SEC - now
            wait = max(wait, window_wait, self.min_interval)
        return max(wait, 0.0)

    async def admit(self, token: CancellationToken | None = None) -> None:
        """Wait until one more outbound call fits in the budget, then record it.

        Args:
            token (CancellationToken | None): Cancellation handle checked before and after waiting.

        Raises:
            OperationCancelledError: If the token is cancelled while waiting.
        """
        if token is not None:
            token.raise_if_cancelled()
        if not self.enabled:
            return

        async with self._lock:
            now: float = self._clock()
            self._prune(now)
            wait: float = self._compute_wait(now)
            if wait > 0:
                logger.debug("Rate limit reached (%d in window); waiting %.3fs", len(self._timestamps), wait)
                await cancellable_sleep(wait, token)
                now = self._clock()
                self._prune(now)

            self._timestamps.append(now)

    def reset(self) -> None:
        self._timestamps.clear()
