"""Google Cloud Translation API Basic (v2) provider.

Authenticates with an API key (``CREDENTIALS.GOOGLE_API_KEY`` or the ``GOOGLE_API_KEY``
environment variable). The client library is synchronous, so calls run in a worker thread.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from google.api_core.exceptions import (
    BadRequest,
    Forbidden,
    GoogleAPIError,
    ServiceUnavailable,
    TooManyRequests,
    Unauthorized,
)
from google.auth.credentials import AnonymousCredentials
from google.auth.transport.requests import AuthorizedSession
from google.cloud import translate_v2 as translate

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
from core.trans.languages import AUTO_LANGUAGE, canonical_language_code
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config

__all__: list[str] = ["APIKeySession", "GoogleCloudTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class APIKeySession:
    """HTTP session that appends the API key to every request URL."""

    def __init__(self, api_key: str) -> None:
        self.api_key: str = api_key
        self._session: AuthorizedSession = AuthorizedSession(AnonymousCredentials())

    def request(self, method: str, url: str, **kwargs):
        separator = "&" if "?" in url else "?"
        return self._session.request(method, f"{url}{separator}key={self.api_key}", **kwargs)

    def close(self) -> None:
        self._session.close()


class GoogleCloudTranslation(TransInterface):
    """Google Cloud Translation v2 provider.

    Attributes:
        CREDENTIAL_KEY (str): Credential field holding the API key.
    """

    CREDENTIAL_KEY = "GOOGLE_API_KEY"

    def __init__(self) -> None:
        super().__init__()
        self.__inst: translate.Client | None = None
        self.__session: APIKeySession | None = None

    @property
    def _inst(self) -> translate.Client:
        if self.__inst is None:
            msg = "The Google Cloud Translate instance is not initialised"
            raise TranslateExceptionError(msg)
        return self.__inst

    @property
    def is_configured(self) -> bool:
        return self.__inst is not None

    @staticmethod
    def fetch_engine_name() -> str:
        return "google"

    def initialize(self, config: Config) -> None:
        """Create the client when an API key is available.

        Without a key the provider stays registered but unconfigured.

        Args:
            config (Config): Configuration object holding the credentials.
        """
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.engine_attributes = EngineAttributes(
            name=self.fetch_engine_name(),
            display_name="Google Translate",
            marker="Ⓖ",
        )

        api_key: str = self.get_credential(config, self.CREDENTIAL_KEY)
        if not api_key:
            logger.info("Google Cloud API key not configured; provider disabled")
            return

        self.__session = APIKeySession(api_key)
        self.__inst = translate.Client(credentials=AnonymousCredentials(), _http=self.__session)
        logger.debug("Google Cloud Translation client created with API key authentication")

    @staticmethod
    def _to_google_code(code: str | None) -> str | None:
        canonical: str = canonical_language_code(code)
        if canonical == AUTO_LANGUAGE:
            return None
        return canonical

    async def translation(
        self, content: str, tgt_lang: str, src_lang: str | None = None, *, timeout: float = 10.0
    ) -> Result:
        """Translate input text through Google Cloud Translation v2.

        The client call cannot be interrupted; ``timeout`` is enforced by the caller.

        Raises:
            MissingCredentialsError: If no API key is configured.
            NotSupportedLanguagesError: If Google rejects the language pair.
            TranslationRateLimitError: If Google answers 429.
            NetworkFailureError: If the service is unavailable.
            InvalidResponseError: If the answer holds no translated text.
            TranslateExceptionError: For any other API error.
        """
        _ = timeout
        self.ensure_configured()
        logger.info("'%s': 'start translation'", self.__class__.__name__)
        source: str | None = self._to_google_code(src_lang)
        target: str | None = self._to_google_code(tgt_lang)

        try:
            response: Any = await asyncio.to_thread(
                self._inst.translate, content, target_language=target, source_language=source, format_="text"
            )
        except BadRequest as err:
            msg: str = f"Unsupported language pair (src: '{src_lang}', tgt: '{tgt_lang}'): {err}"
            raise NotSupportedLanguagesError(msg) from err
        except TooManyRequests as err:
            msg = f"Google translation rate limited: {err}"
            raise TranslationRateLimitError(msg) from err
        except ServiceUnavailable as err:
            msg = f"Google translation service unavailable: {err}"
            raise NetworkFailureError(msg) from err
        except (Unauthorized, Forbidden) as err:
            msg = f"Google rejected the API key: {err}"
            raise TranslateExceptionError(msg) from err
        except GoogleAPIError as err:
            msg = f"Google translation failed: {err}"
            raise TranslateExceptionError(msg) from err

        return self._build_result(response, source)

    @staticmethod
    def _build_result(response: Any, source: str | None) -> Result:
        if not isinstance(response, dict) or not isinstance(response.get("translatedText"), str):
            msg: str = f"Google returned an unexpected response: {response!r}"
            raise InvalidResponseError(msg)

        detected: str | None = response.get("detectedSourceLanguage", source)
        logger.info("translation completed (%s)", detected)
        return Result(
            text=response["translatedText"],
            detected_source_lang=detected.lower() if detected else None,
            metadata={"engine": "google"},
        )

    async def close(self) -> None:
        if self.__session is not None:
            await asyncio.to_thread(self.__session.close)
        self.__inst = None
        self.__session = None
        logger.info("'%s' process termination", self.__class__.__name__)
