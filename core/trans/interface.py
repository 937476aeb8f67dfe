"""This module defines the abstract base class for translation providers and related exceptions.

It includes the Result data class for provider results, the EngineAttributes descriptor, and the
exception taxonomy the orchestrator uses to classify provider failures.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from core.trans.languages import AUTO_LANGUAGE, base_language, canonical_language_code
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config

__all__: list[str] = [
    "EngineAttributes",
    "InvalidResponseError",
    "MissingCredentialsError",
    "NetworkFailureError",
    "NotSupportedLanguagesError",
    "Result",
    "TransInterface",
    "TranslateExceptionError",
    "TranslationRateLimitError",
    "TranslationTimeoutError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


@dataclass(frozen=True)
class EngineAttributes:
    """Static description of a translation provider.

    Attributes:
        name (str): Provider id. Must match ``fetch_engine_name()``.
        display_name (str): Human readable provider name used in placeholders and logs.
        marker (str): Short marker shown before results chosen by automatic selection.
        requires_credentials (bool): Whether the provider needs credentials. Keyless providers are
            only used explicitly or as the fallback of automatic selection.
        supported_languages (frozenset[str]): Canonical language codes the provider accepts.
            Empty means any language.
    """

    name: str
    display_name: str
    marker: str = ""
    requires_credentials: bool = True
    supported_languages: frozenset[str] = field(default_factory=frozenset)


@dataclass
class Result:
    """Data class for provider results.

    Attributes:
        text (str | None): Translated text. None if the provider returned nothing usable.
        detected_source_lang (str | None): Source language reported by the provider.
        metadata (dict[str, str] | None): Provider-specific extras.
    """

    text: str | None = None
    detected_source_lang: str | None = None
    metadata: dict[str, str] | None = None

    def __str__(self) -> str:
        if self.text is None:
            return ""
        return self.text


class TranslateExceptionError(Exception):
    """An error occurred during the translation process."""


class MissingCredentialsError(TranslateExceptionError):
    """The provider has no credentials configured."""


class NotSupportedLanguagesError(TranslateExceptionError):
    """An unsupported language code was specified."""


class TranslationRateLimitError(TranslateExceptionError):
    """The translation request was rate-limited by the API."""


class TranslationTimeoutError(TranslateExceptionError):
    """The provider did not answer within the timeout."""


class InvalidResponseError(TranslateExceptionError):
    """The provider answered with something that is not a translation."""


class NetworkFailureError(TranslateExceptionError):
    """The provider could not be reached or answered with a server error."""


class TransInterface(ABC):
    """Abstract base class for translation providers.

    Subclasses are registered automatically under the name returned by ``fetch_engine_name()`` so
    that the provider registry can instantiate every known provider without an explicit list.

    Attributes:
        registered (ClassVar[dict[str, type[TransInterface]]]): Registered provider classes by id.
    """

    registered: ClassVar[dict[str, type[TransInterface]]] = {}

    def __init_subclass__(cls, **kwargs) -> None:
        """Register the subclass in the registered dictionary.

        Subclasses whose ``fetch_engine_name()`` returns an empty string are not registered, which
        lets tests and helpers define providers without touching the registry.

        Args:
            **kwargs: Additional keyword arguments passed to parent class.
        """
        super().__init_subclass__(**kwargs)
        if not hasattr(cls, "fetch_engine_name") or not callable(cls.fetch_engine_name):
            msg = "Subclasses of TransInterface must implement the static method fetch_engine_name()."
            raise TypeError(msg)

        name = cls.fetch_engine_name()
        if not isinstance(name, str) or name == "":
            return

        if name in cls.registered:
            msg: str = f"A translation engine with the name '{name}' is already registered."
            raise ValueError(msg)

        cls.registered[name] = cls

    def __init__(self) -> None:
        self._engine_attributes: EngineAttributes | None = None

    @property
    def engine_attributes(self) -> EngineAttributes:
        if self._engine_attributes is None:
            msg = "Engine attributes have not been set."
            raise RuntimeError(msg)
        return self._engine_attributes

    @engine_attributes.setter
    def engine_attributes(self, attributes: EngineAttributes) -> None:
        if self._engine_attributes is not None:
            msg = "Engine attributes can only be set once during initialization."
            raise RuntimeError(msg)
        self._engine_attributes = attributes

    @property
    def engine_name(self) -> str:
        return self.engine_attributes.name

    @property
    def display_name(self) -> str:
        return self.engine_attributes.display_name

    @property
    def marker(self) -> str:
        return self.engine_attributes.marker

    @property
    def requires_credentials(self) -> bool:
        return self.engine_attributes.requires_credentials

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Check whether the provider has everything it needs to make a call.

        Returns:
            bool: True if credentials (when required) are present.
        """
        raise NotImplementedError

    def supports_language_pair(self, src_lang: str | None, tgt_lang: str) -> bool:
        """Check whether the provider can translate between two languages.

        ``None`` or ``"auto"`` as source means auto-detection and is accepted by every provider.

        Args:
            src_lang (str | None): Source language code.
            tgt_lang (str): Target language code.

        Returns:
            bool: True if both languages are supported.
        """
        supported: frozenset[str] = self.engine_attributes.supported_languages
        if not supported:
            return True

        def _accepts(code: str) -> bool:
            return canonical_language_code(code) in supported or base_language(code) in supported

        source_ok: bool = canonical_language_code(src_lang) == AUTO_LANGUAGE or _accepts(src_lang or "")
        return source_ok and _accepts(tgt_lang)

    def is_rate_limit_error(self, err: Exception) -> bool:
        """Check if the given exception indicates rate limiting.

        Args:
            err (Exception): Exception raised during translation.

        Returns:
            bool: True if the exception represents rate limiting.
        """
        return isinstance(err, TranslationRateLimitError)

    def ensure_configured(self) -> None:
        """Raise if the provider cannot be called.

        Raises:
            MissingCredentialsError: If credentials are required but absent.
        """
        if not self.is_configured:
            msg: str = f"{self.display_name} API credentials required"
            raise MissingCredentialsError(msg)

    @staticmethod
    @abstractmethod
    def fetch_engine_name() -> str:
        """Fetch the distinguished name of the provider.

        Called during class registration in ``__init_subclass__``, so the implementation must be
        available at subclass definition time.

        Returns:
            str: The provider id.
        """
        raise NotImplementedError

    @abstractmethod
    def initialize(self, config: Config) -> None:
        """Initialize the provider with the given configuration.

        A provider without credentials must still initialize; it reports ``is_configured = False``.

        Args:
            config (Config): Configuration object containing credentials and options.
        """
        raise NotImplementedError

    @abstractmethod
    async def translation(
        self, content: str, tgt_lang: str, src_lang: str | None = None, *, timeout: float = 10.0
    ) -> Result:
        """Translate input text to the target language.

        Args:
            content (str): Text to be translated.
            tgt_lang (str): Target language code.
            src_lang (str | None): Source language code. If None, auto-detect.
            timeout (float): Network timeout in seconds for the provider request.

        Returns:
            Result: Translation result with translated text.

        Raises:
            MissingCredentialsError: If the provider is not configured.
            NotSupportedLanguagesError: If the specified language is not supported.
            TranslationRateLimitError: If the request is rate-limited by the API.
            TranslationTimeoutError: If the provider does not answer in time.
            InvalidResponseError: If the answer cannot be interpreted.
            NetworkFailureError: If the provider cannot be reached.
            TranslateExceptionError: If translation fails for another reason.
        """
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        """Release network sessions or clients held by the provider."""
        raise NotImplementedError

    @staticmethod
    def get_credential(config: Config, key: str) -> str:
        """Read a credential from the configuration, falling back to the environment.

        Args:
            config (Config): Configuration object.
            key (str): Field name in the ``CREDENTIALS`` section, also used as environment variable name.

        Returns:
            str: The credential, or an empty string if neither source defines it.
        """
        credentials = getattr(config, "CREDENTIALS", None)
        value: str = str(getattr(credentials, key, "") or "").strip()
        return value or os.getenv(key, "").strip()
