"""Translation cache package.

Provides the in-memory translation cache and single-flight coordination.
"""

from __future__ import annotations

from core.cache.inflight_manager import InFlightManager
from core.cache.manager import TranslationCacheManager

__all__: list[str] = ["InFlightManager", "TranslationCacheManager"]
