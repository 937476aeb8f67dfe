"""Microsoft Translator (Azure AI Translator v3) provider."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Final

from core.trans.engines.http_client import EngineHttpClient
from core.trans.interface import (
    EngineAttributes,
    InvalidResponseError,
    Result,
    TransInterface,
)
from core.trans.languages import AUTO_LANGUAGE, canonical_language_code
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config

__all__: list[str] = ["MicrosoftTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

ENDPOINT: Final[str] = "https://api.cognitive.microsofttranslator.com/translate"
API_VERSION: Final[str] = "3.0"


class MicrosoftTranslation(TransInterface):
    """Microsoft Translator provider.

    Authenticates with a subscription key and its region (``MICROSOFT_API_KEY`` and
    ``MICROSOFT_REGION``).
    """

    CREDENTIAL_KEY: ClassVar[str] = "MICROSOFT_API_KEY"
    REGION_KEY: ClassVar[str] = "MICROSOFT_REGION"

    _CODE_OVERRIDES: ClassVar[dict[str, str]] = {
        "zh-CN": "zh-Hans",
        "zh-TW": "zh-Hant",
        "no": "nb",
        "tl": "fil",
    }

    def __init__(self) -> None:
        super().__init__()
        self._api_key: str = ""
        self._region: str = ""
        self._http: EngineHttpClient = EngineHttpClient(self.fetch_engine_name())

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    @staticmethod
    def fetch_engine_name() -> str:
        return "microsoft"

    def initialize(self, config: Config) -> None:
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.engine_attributes = EngineAttributes(
            name=self.fetch_engine_name(),
            display_name="Microsoft Translator",
            marker="Ⓜ",
        )
        self._api_key = self.get_credential(config, self.CREDENTIAL_KEY)
        self._region = self.get_credential(config, self.REGION_KEY) or "global"
        if not self._api_key:
            logger.info("Microsoft Translator key not configured; provider disabled")

    @classmethod
    def _to_microsoft_code(cls, code: str | None) -> str | None:
        canonical: str = canonical_language_code(code)
        if canonical == AUTO_LANGUAGE:
            return None
        return cls._CODE_OVERRIDES.get(canonical, canonical)

    def _build_headers(self) -> dict[str, str]:
        return {
            "Ocp-Apim-Subscription-Key": self._api_key,
            "Ocp-Apim-Subscription-Region": self._region,
            "Content-Type": "application/json",
        }

    async def translation(
        self, content: str, tgt_lang: str, src_lang: str | None = None, *, timeout: float = 10.0
    ) -> Result:
        """Translate input text through the Translator REST API.

        Raises:
            MissingCredentialsError: If no subscription key is configured.
            InvalidResponseError: If the answer holds no translation.
            TranslateExceptionError: See ``EngineHttpClient.request_text``.
        """
        self.ensure_configured()
        logger.info("'%s': 'start translation'", self.__class__.__name__)

        params: dict[str, str] = {"api-version": API_VERSION, "to": self._to_microsoft_code(tgt_lang) or "en"}
        source: str | None = self._to_microsoft_code(src_lang)
        if source is not None:
            params["from"] = source

        payload: Any = await self._http.request_json(
            "POST",
            ENDPOINT,
            params=params,
            json=[{"Text": content}],
            headers=self._build_headers(),
            total_timeout=timeout,
        )
        return self.parse_response(payload, source)

    @staticmethod
    def parse_response(payload: Any, source: str | None = None) -> Result:
        """Pick the translated text out of a ``/translate`` response.

        Args:
            payload (Any): Decoded JSON body.
            source (str | None): Source code the request was made with.

        Returns:
            Result: Translated text and the detected language when the service reports one.

        Raises:
            InvalidResponseError: If the body does not have the documented layout.
        """
        try:
            entry: dict[str, Any] = payload[0]
            text: Any = entry["translations"][0]["text"]
        except (IndexError, KeyError, TypeError) as err:
            msg: str = f"Microsoft returned an unexpected response: {payload!r}"
            raise InvalidResponseError(msg) from err
        if not isinstance(text, str):
            msg = f"Microsoft returned a non-text translation: {text!r}"
            raise InvalidResponseError(msg)

        detected: str | None = source
        detected_info: Any = entry.get("detectedLanguage")
        if isinstance(detected_info, dict) and detected_info.get("language"):
            detected = str(detected_info["language"])
        return Result(
            text=text,
            detected_source_lang=canonical_language_code(detected) if detected else None,
            metadata={"engine": "microsoft"},
        )

    async def close(self) -> None:
        await self._http.close()
        logger.debug("'%s' process termination", self.__class__.__name__)
