"""Data models for the translation engine.

This package contains dataclass definitions for configuration, cache entries, dispatch tasks,
batch runs and translation outcomes.
"""

from __future__ import annotations

from models.batch_models import BatchItem, BatchReport, BatchState
from models.cache_models import CacheStatistics, TranslationCacheEntry
from models.config_models import Config
from models.dispatch_models import QueueTask
from models.translation_models import (
    ErrorKind,
    ProviderDescriptor,
    TranslationErr,
    TranslationOk,
    TranslationOutcome,
    TranslationRequest,
)

__all__: list[str] = [
    "BatchItem",
    "BatchReport",
    "BatchState",
    "CacheStatistics",
    "Config",
    "ErrorKind",
    "ProviderDescriptor",
    "QueueTask",
    "TranslationCacheEntry",
    "TranslationErr",
    "TranslationOk",
    "TranslationOutcome",
    "TranslationRequest",
]
