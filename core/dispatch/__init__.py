"""Outbound request dispatch.

Rate limiting and bounded concurrency for provider calls.
"""

from __future__ import annotations

from core.dispatch.concurrency_queue import ConcurrencyQueue
from core.dispatch.rate_limiter import RateLimiter

__all__: list[str] = ["ConcurrencyQueue", "RateLimiter"]
