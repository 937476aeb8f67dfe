"""Single-flight coordination for identical translation requests.

When enabled, the first request for a fingerprint becomes the producer and later requests for the
same fingerprint wait for its result instead of calling the provider again.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.translation_models import TranslationOutcome

__all__: list[str] = ["InFlightAbandonedError", "InFlightManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class InFlightAbandonedError(Exception):
    """The producer gave up without an outcome that other callers can share."""


class InFlightManager:
    """Tracks in-flight translation requests by fingerprint.

    Attributes:
        INFLIGHT_TIMEOUT_SEC (ClassVar[float]): Default time a follower waits for the producer.
    """

    INFLIGHT_TIMEOUT_SEC: ClassVar[float] = 30.0

    def __init__(self, timeout_sec: float | None = None) -> None:
        self._inflight: dict[str, asyncio.Future[TranslationOutcome]] = {}
        self._lock: asyncio.Lock = asyncio.Lock()
        self._timeout_sec: float = timeout_sec if timeout_sec is not None else self.INFLIGHT_TIMEOUT_SEC

    @property
    def pending_count(self) -> int:
        return len(self._inflight)

    async def mark_inflight_start(self, key: str) -> tuple[bool, TranslationOutcome | None]:
        """Register a request, or wait for an identical one already in flight.

        Args:
            key (str): Request fingerprint.

        Returns:
            tuple[bool, TranslationOutcome | None]: ``(True, None)`` when the caller became the
            producer and must call ``store_inflight_result`` or ``store_inflight_exception``
            afterwards; ``(False, outcome)`` when another request produced ``outcome``.

        Raises:
            TimeoutError: If the producer did not finish in time.
            InFlightAbandonedError: If the producer was cancelled; the caller may try again.
            Exception: Whatever the producer stored through ``store_inflight_exception``.
        """
        async with self._lock:
            fut: asyncio.Future[TranslationOutcome] | None = self._inflight.get(key)
            if fut is None:
                self._inflight[key] = asyncio.get_running_loop().create_future()
                logger.debug("Marked in-flight start for key: %s", key[:16])
                return True, None
            logger.debug("In-flight translation detected for key: %s", key[:16])

        try:
            result: TranslationOutcome = await asyncio.wait_for(asyncio.shield(fut), timeout=self._timeout_sec)
        except TimeoutError:
            logger.warning("In-flight translation timeout for key: %s", key[:16])
            msg: str = f"In-flight translation timed out for key: {key[:16]}"
            raise TimeoutError(msg) from None
        except asyncio.CancelledError:
            if not fut.cancelled():
                raise
            logger.warning("In-flight translation cancelled for key: %s", key[:16])
            msg = f"In-flight translation cancelled for key: {key[:16]}"
            raise TimeoutError(msg) from None
        else:
            return False, result

    async def store_inflight_result(self, key: str, result: TranslationOutcome) -> None:
        async with self._lock:
            fut: asyncio.Future[TranslationOutcome] | None = self._inflight.pop(key, None)
        if fut is not None and not fut.done():
            fut.set_result(result)
            logger.debug("Set in-flight translation result for key: %s", key[:16])

    async def store_inflight_exception(self, key: str, exc: Exception) -> None:
        async with self._lock:
            fut: asyncio.Future[TranslationOutcome] | None = self._inflight.pop(key, None)
        if fut is not None and not fut.done():
            fut.set_exception(exc)
            # Followers may not exist; mark the exception as retrieved.
            fut.exception()
            logger.debug("Set in-flight translation exception for key: %s", key[:16])

    async def close(self) -> None:
        """Cancel every pending request."""
        async with self._lock:
            for fut in self._inflight.values():
                if not fut.done():
                    fut.cancel()
            self._inflight.clear()
        logger.info("InFlightManager in-flight state cleared")

    def abandon_inflight(self, key: str) -> None:
        """Release ``key`` without an outcome; waiting callers get ``InFlightAbandonedError``."""
        # No lock: this runs while the producer task is being cancelled.
        fut: asyncio.Future[TranslationOutcome] | None = self._inflight.pop(key, None)
        if fut is not None and not fut.done():
            msg: str = f"In-flight translation abandoned for key: {key[:16]}"
            fut.set_exception(InFlightAbandonedError(msg))
            fut.exception()
            logger.debug("Abandoned in-flight translation for key: %s", key[:16])
