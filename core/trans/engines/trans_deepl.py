"""DeepL provider built on the official ``deepl`` client library."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, ClassVar

from deepl import DeepLClient, Language, TextResult
from deepl.exceptions import (
    AuthorizationException,
    ConnectionException,
    DeepLException,
    QuotaExceededException,
    TooManyRequestsException,
)

from core.trans.interface import (
    EngineAttributes,
    InvalidResponseError,
    NetworkFailureError,
    NotSupportedLanguagesError,
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationRateLimitError,
)
from core.trans.languages import AUTO_LANGUAGE, base_language, canonical_language_code
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config


__all__: list[str] = ["DeeplTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class DeeplTranslation(TransInterface):
    """DeepL provider.

    DeepL distinguishes source codes (bare language) from target codes (some of which require a
    regional variant). Both tables are derived once from the ``deepl.Language`` constants.
    """

    CREDENTIAL_KEY: ClassVar[str] = "DEEPL_AUTH_KEY"

    _source_codes: ClassVar[dict[str, str]] = {}
    _target_codes: ClassVar[dict[str, str]] = {}
    # Target variants preferred over DeepL's deprecated bare codes.
    _PREFERRED_TARGETS: ClassVar[dict[str, str]] = {
        "en": "EN-US",
        "pt": "PT-BR",
        "zh-CN": "ZH-HANS",
        "zh-TW": "ZH-HANT",
    }

    def __init__(self) -> None:
        super().__init__()
        self.__inst: DeepLClient | None = None
        if not DeeplTranslation._target_codes:
            self._generate_langcode_mappings()

    @classmethod
    def _generate_langcode_mappings(cls) -> None:
        constants: list[str] = [
            value for name, value in vars(Language).items() if isinstance(value, str) and name.isupper()
        ]
        for code in constants:
            canonical: str = canonical_language_code(code)
            base: str = base_language(code)
            cls._source_codes[base] = base.upper()
            cls._target_codes.setdefault(base, code.upper())
            cls._target_codes[canonical] = code.upper()

        cls._source_codes["zh-CN"] = "ZH"
        cls._source_codes["zh-TW"] = "ZH"
        for canonical, target in cls._PREFERRED_TARGETS.items():
            cls._target_codes[canonical] = target
        logger.debug("Language code mapping generated for DeepL.")

    @property
    def _inst(self) -> DeepLClient:
        if self.__inst is None:
            msg = "The DeepL instance is not initialised"
            raise TranslateExceptionError(msg)
        return self.__inst

    @property
    def is_configured(self) -> bool:
        return self.__inst is not None

    @staticmethod
    def fetch_engine_name() -> str:
        return "deepl"

    def initialize(self, config: Config) -> None:
        """Create the DeepL client when an authentication key is available.

        The key is only verified by the first API call, not here.

        Args:
            config (Config): The configuration object containing the authentication key.

        Raises:
            RuntimeError: If the DeepL client cannot be created from the key.
        """
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.engine_attributes = EngineAttributes(
            name=self.fetch_engine_name(),
            display_name="DeepL",
            marker="Ⓓ",
            supported_languages=frozenset(self._target_codes),
        )

        auth_key: str = self.get_credential(config, self.CREDENTIAL_KEY)
        if not auth_key:
            logger.info("DeepL authentication key not configured; provider disabled")
            return

        try:
            self.__inst = DeepLClient(auth_key)
        except (AttributeError, ValueError) as err:
            logger.critical(err)
            msg = "An error occurred while creating the DeepL client instance"
            raise RuntimeError(msg) from err

    def _map_languages(self, src_lang: str | None, tgt_lang: str) -> tuple[str | None, str]:
        source: str | None = None
        if canonical_language_code(src_lang) != AUTO_LANGUAGE:
            source = self._source_codes.get(canonical_language_code(src_lang)) or self._source_codes.get(
                base_language(src_lang)
            )
        target: str | None = self._target_codes.get(canonical_language_code(tgt_lang)) or self._target_codes.get(
            base_language(tgt_lang)
        )
        if target is None or (src_lang and source is None and canonical_language_code(src_lang) != AUTO_LANGUAGE):
            msg: str = (
                f"Languages not supported by DeepL. Source language: '{src_lang}'. Target language: '{tgt_lang}'."
            )
            raise NotSupportedLanguagesError(msg)
        return source, target

    async def translation(
        self, content: str, tgt_lang: str, src_lang: str | None = None, *, timeout: float = 10.0
    ) -> Result:
        """Translate the given content with DeepL.

        Raises:
            MissingCredentialsError: If no authentication key is configured.
            NotSupportedLanguagesError: If the specified languages are not supported by DeepL.
            TranslationRateLimitError: If DeepL answers with 429.
            NetworkFailureError: If the DeepL server cannot be reached.
            TranslateExceptionError: On quota, authorization or other DeepL errors.
        """
        _ = timeout
        self.ensure_configured()
        source, target = self._map_languages(src_lang, tgt_lang)
        logger.debug("'src_lang': '%s', 'tgt_lang': '%s'", source, target)

        try:
            results: TextResult | list[TextResult] = await asyncio.to_thread(
                self._inst.translate_text,
                content,
                source_lang=source,
                target_lang=target,
            )
        except QuotaExceededException as err:
            msg = "DeepL character quota exceeded"
            raise TranslateExceptionError(msg) from err
        except AuthorizationException as err:
            msg = "Authorisation failed. Please check your authentication key"
            raise TranslateExceptionError(msg) from err
        except TooManyRequestsException as err:
            msg = "DeepL rate limit reached"
            raise TranslationRateLimitError(msg) from err
        except ConnectionException as err:
            msg = "An error occurred when connecting to the DeepL server"
            raise NetworkFailureError(msg) from err
        except DeepLException as err:
            msg = "An anomaly occurred during the translation process at DeepL"
            raise TranslateExceptionError(msg) from err

        logger.info("translation completed (%s > %s)", source, target)
        return self._build_result(results)

    def _build_result(self, results: TextResult | list[TextResult]) -> Result:
        if isinstance(results, list) and results:
            results = results[0]
        if not isinstance(results, TextResult):
            msg = "DeepL returned an unexpected result type"
            raise InvalidResponseError(msg)

        return Result(
            text=results.text,
            detected_source_lang=results.detected_source_lang.lower() if results.detected_source_lang else None,
            metadata={"engine": "deepl"},
        )

    async def close(self) -> None:
        self.__inst = None
        logger.debug("'%s' process termination", self.__class__.__name__)
