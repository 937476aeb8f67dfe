"""Translation cache manager.

Keeps translated text in memory, keyed by request fingerprint. Entries expire after a TTL and the
store never grows beyond a fixed capacity: when a new key would overflow it, the oldest quarter of
entries (by creation time) is evicted in one pass.
"""

from __future__ import annotations

import math
import time
from typing import TYPE_CHECKING, ClassVar, Final

from models.cache_models import CacheStatistics, TranslationCacheEntry
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from config.loader import Config

__all__: list[str] = ["TranslationCacheManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

SECONDS_PER_DAY: Final[float] = 86400.0


class TranslationCacheManager:
    """In-memory TTL and capacity bounded translation cache.

    Entries are kept in a dict whose insertion order is their creation order. Overwriting a key
    removes and reinserts it, so the front of the dict is always the oldest entry.

    Attributes:
        DEFAULT_TTL_DAYS (ClassVar[float]): Entry lifetime when no configuration is given.
        DEFAULT_MAX_ENTRIES (ClassVar[int]): Capacity when no configuration is given.
        EVICTION_RATIO (ClassVar[float]): Share of entries dropped when the capacity is reached.
    """

    DEFAULT_TTL_DAYS: ClassVar[float] = 30.0
    DEFAULT_MAX_ENTRIES: ClassVar[int] = 1000
    EVICTION_RATIO: ClassVar[float] = 0.25

    def __init__(
        self,
        *,
        ttl_sec: float | None = None,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache.

        Args:
            ttl_sec (float | None): Entry lifetime in seconds.
            max_entries (int | None): Capacity bound.
            clock (Callable[[], float]): Time source in seconds.

        Raises:
            ValueError: If the TTL or the capacity is not positive.
        """
        self._ttl_sec: float = ttl_sec if ttl_sec is not None else self.DEFAULT_TTL_DAYS * SECONDS_PER_DAY
        self._max_entries: int = max_entries if max_entries is not None else self.DEFAULT_MAX_ENTRIES
        if self._ttl_sec <= 0:
            msg: str = f"Cache TTL must be positive: {self._ttl_sec}"
            raise ValueError(msg)
        if self._max_entries <= 0:
            msg = f"Cache capacity must be positive: {self._max_entries}"
            raise ValueError(msg)

        self._clock: Callable[[], float] = clock
        self._entries: dict[str, TranslationCacheEntry] = {}
        self._hits: int = 0
        self._misses: int = 0
        self._evictions: int = 0
        self._expirations: int = 0
        logger.debug(
            "TranslationCacheManager instance created (ttl=%.0fs, max_entries=%d)", self._ttl_sec, self._max_entries
        )

    @classmethod
    def from_config(cls, config: Config) -> TranslationCacheManager:
        return cls(
            ttl_sec=config.CACHE.TTL_DAYS * SECONDS_PER_DAY,
            max_entries=config.CACHE.MAX_ENTRIES,
        )

    @property
    def ttl_sec(self) -> float:
        return self._ttl_sec

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> str | None:
        """Look up a cached translation.

        An expired entry is removed on access and reported as a miss.

        Args:
            key (str): Request fingerprint.

        Returns:
            str | None: The cached text, or None on a miss.
        """
        entry: TranslationCacheEntry | None = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired(self._clock(), self._ttl_sec):
            del self._entries[key]
            self._expirations += 1
            self._misses += 1
            logger.debug("Cache entry expired: %s", key[:16])
            return None

        entry.hit_count += 1
        self._hits += 1
        return entry.value

    def put(self, key: str, value: str) -> None:
        """Store a translation.

        If ``key`` is new and the cache is full, the oldest entries are evicted first.

        Args:
            key (str): Request fingerprint.
            value (str): Translated text.
        """
        if self._entries.pop(key, None) is None and len(self._entries) >= self._max_entries:
            self._evict_oldest()

        self._entries[key] = TranslationCacheEntry(key=key, value=value, created_at=self._clock())
        logger.debug("Cache entry stored: %s (%d/%d)", key[:16], len(self._entries), self._max_entries)

    def _evict_oldest(self) -> int:
        count: int = max(1, math.floor(self._max_entries * self.EVICTION_RATIO))
        victims: list[str] = list(self._entries)[:count]
        for victim in victims:
            del self._entries[victim]
        self._evictions += len(victims)
        logger.info("Cache capacity reached; evicted %d oldest entries", len(victims))
        return len(victims)

    def clear_expired(self) -> int:
        """Remove every expired entry.

        Returns:
            int: Number of entries removed.
        """
        now: float = self._clock()
        expired: list[str] = [key for key, entry in self._entries.items() if entry.is_expired(now, self._ttl_sec)]
        for key in expired:
            del self._entries[key]
        self._expirations += len(expired)
        if expired:
            logger.debug("Cleared %d expired cache entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        """Drop every entry. Counters are kept."""
        self._entries.clear()
        logger.info("Translation cache cleared")

    def get_cache_statistics(self) -> CacheStatistics:
        created: list[float] = [entry.created_at for entry in self._entries.values()]
        return CacheStatistics(
            total_entries=len(self._entries),
            max_entries=self._max_entries,
            ttl_sec=self._ttl_sec,
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            expirations=self._expirations,
            oldest_entry=min(created) if created else None,
            newest_entry=max(created) if created else None,
        )
