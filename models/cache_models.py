"""Models for translation cache data.

Defines data classes for translation cache entries and cache statistics.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__: list[str] = [
    "CacheStatistics",
    "TranslationCacheEntry",
]


@dataclass
class TranslationCacheEntry:
    """Translation cache entry data.

    Attributes:
        key (str): Request fingerprint.
        value (str): Translated text.
        created_at (float): Creation time in seconds, as returned by the cache clock.
        hit_count (int): Number of cache hits served by this entry.
    """

    key: str
    value: str
    created_at: float
    hit_count: int = 0

    def is_expired(self, now: float, ttl_sec: float) -> bool:
        return now - self.created_at >= ttl_sec


@dataclass
class CacheStatistics:
    """Cache usage statistics.

    Attributes:
        total_entries (int): Number of entries currently stored (expired ones included until touched).
        max_entries (int): Capacity bound.
        ttl_sec (float): Entry lifetime in seconds.
        hits (int): Lookups answered from the cache.
        misses (int): Lookups that found nothing or an expired entry.
        evictions (int): Entries removed under capacity pressure.
        expirations (int): Entries removed because their TTL elapsed.
        oldest_entry (float | None): Creation time of the oldest entry.
        newest_entry (float | None): Creation time of the newest entry.
    """

    total_entries: int = 0
    max_entries: int = 0
    ttl_sec: float = 0.0
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    oldest_entry: float | None = None
    newest_entry: float | None = None

    @property
    def hit_ratio(self) -> float:
        total: int = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total
