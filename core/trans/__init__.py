"""Translation orchestration.

This package routes translation requests to pluggable provider implementations, with weighted
automatic provider selection, result caching, rate limiting and a retry on rate-limit answers.
"""

from core.trans.interface import (
    EngineAttributes,
    InvalidResponseError,
    MissingCredentialsError,
    NetworkFailureError,
    NotSupportedLanguagesError,
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationRateLimitError,
    TranslationTimeoutError,
)
from core.trans.manager import TransManager
from core.trans.registry import AUTO_ENGINE, BUILT_IN_ENGINE, ProviderRegistry, ProviderSelector, pick_weighted

__all__: list[str] = [
    "AUTO_ENGINE",
    "BUILT_IN_ENGINE",
    "EngineAttributes",
    "InvalidResponseError",
    "MissingCredentialsError",
    "NetworkFailureError",
    "NotSupportedLanguagesError",
    "ProviderRegistry",
    "ProviderSelector",
    "Result",
    "TransInterface",
    "TransManager",
    "TranslateExceptionError",
    "TranslationRateLimitError",
    "TranslationTimeoutError",
    "pick_weighted",
]
