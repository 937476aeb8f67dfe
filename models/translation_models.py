"""Models for translation requests, outcomes and provider descriptions.

A translation call never reports an expected failure through an exception. It returns either a
``TranslationOk`` or a ``TranslationErr`` carrying an ``ErrorKind``, so callers branch on the
failure class instead of inspecting text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar, Literal

__all__: list[str] = [
    "ErrorKind",
    "ProviderDescriptor",
    "TranslationErr",
    "TranslationOk",
    "TranslationOutcome",
    "TranslationRequest",
]


class ErrorKind(StrEnum):
    """Failure classes a translation call can end in."""

    MISSING_CREDENTIALS = "missing_credentials"
    PROVIDER_TIMEOUT = "provider_timeout"
    PROVIDER_RATE_LIMITED = "provider_rate_limited"
    PROVIDER_INVALID_RESPONSE = "provider_invalid_response"
    NETWORK_FAILURE = "network_failure"
    INPUT_REJECTED = "input_rejected"
    UNSUPPORTED_LANGUAGE = "unsupported_language"
    CANCELLED = "cancelled"


# Short inline placeholders shown in place of a translation.
PLACEHOLDERS: dict[ErrorKind, str] = {
    ErrorKind.PROVIDER_TIMEOUT: "(translation timed out)",
    ErrorKind.PROVIDER_RATE_LIMITED: "(translation rate limited)",
    ErrorKind.PROVIDER_INVALID_RESPONSE: "(invalid translation response)",
    ErrorKind.NETWORK_FAILURE: "(translation failed)",
    ErrorKind.INPUT_REJECTED: "",
    ErrorKind.UNSUPPORTED_LANGUAGE: "(language pair not supported)",
    ErrorKind.CANCELLED: "(translation cancelled)",
}


@dataclass(frozen=True)
class TranslationRequest:
    """One unit of work for the orchestrator.

    Attributes:
        text (str): Text to translate, before normalization.
        source_lang (str | None): Source language code. None means "use configuration".
        target_lang (str | None): Target language code. None means "use configuration".
        engine_hint (str | None): Provider id, ``"auto"``, or None for the configured engine.
    """

    text: str
    source_lang: str | None = None
    target_lang: str | None = None
    engine_hint: str | None = None


@dataclass(frozen=True)
class TranslationOk:
    """Successful translation.

    Attributes:
        text (str): Translated text as returned by the provider.
        engine (str): Id of the provider that produced the text.
        source_lang (str | None): Source language the request was made with.
        target_lang (str): Target language code.
        from_cache (bool): True when served from the cache without a provider call.
        detected_source_lang (str | None): Source language reported by the provider, if any.
        marker (str): Provider marker to prefix when rendering, empty for none.
    """

    is_ok: ClassVar[Literal[True]] = True

    text: str
    engine: str
    source_lang: str | None
    target_lang: str
    from_cache: bool = False
    detected_source_lang: str | None = None
    marker: str = ""

    def render(self) -> str:
        if self.marker:
            return f"{self.marker} {self.text}"
        return self.text


@dataclass(frozen=True)
class TranslationErr:
    """Failed translation.

    Attributes:
        kind (ErrorKind): Failure class.
        detail (str): Human readable description, suitable for logs.
        engine (str | None): Provider id involved, when one had been resolved.
    """

    is_ok: ClassVar[Literal[False]] = False

    kind: ErrorKind
    detail: str = ""
    engine: str | None = None

    def render(self) -> str:
        """Return the inline placeholder for this failure.

        Missing credentials render the detail itself, which names the provider that needs a key.
        """
        if self.kind is ErrorKind.MISSING_CREDENTIALS:
            return self.detail
        return PLACEHOLDERS[self.kind]


type TranslationOutcome = TranslationOk | TranslationErr


@dataclass(frozen=True)
class ProviderDescriptor:
    """Registry view of one provider.

    Attributes:
        id (str): Provider id used in configuration and fingerprints.
        display_name (str): Human readable name.
        weight (int): Share in automatic selection. Zero excludes the provider.
        is_configured (bool): Whether the credentials the provider needs are present.
        requires_credentials (bool): False for the keyless built-in provider, which only serves as fallback.
        marker (str): Short marker shown before results picked by automatic selection.
    """

    id: str
    display_name: str
    weight: int = 0
    is_configured: bool = False
    requires_credentials: bool = True
    marker: str = ""
