"""Built-in translation provider.

Uses the keyless Google Translate web endpoint (the ``batchexecute`` RPC the web UI talks to), so
it works without any credentials. It is the fallback when automatic selection finds no configured
provider.

Note:
    The web endpoint is undocumented. The response layout handled here is the one the web UI
    currently receives; a layout change surfaces as ``InvalidResponseError``.
"""

from __future__ import annotations

import json
from json import JSONDecodeError
from typing import TYPE_CHECKING, Any, Final
from urllib.parse import quote

from core.trans.engines.http_client import EngineHttpClient
from core.trans.interface import (
    EngineAttributes,
    InvalidResponseError,
    NotSupportedLanguagesError,
    Result,
    TransInterface,
    TranslateExceptionError,
)
from core.trans.languages import AUTO_LANGUAGE, LANGUAGES, canonical_language_code
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config

__all__: list[str] = ["BuiltInTranslation", "GoogleWebClient"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

RPC_ID: Final[str] = "MkEWBc"
MAX_TEXT_LENGTH: Final[int] = 5000
USER_AGENT: Final[str] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


class GoogleWebClient:
    """Minimal client for the Google Translate web RPC."""

    def __init__(self, url_suffix: str = "com") -> None:
        self.url_suffix: str = url_suffix or "com"
        self.url: str = f"https://translate.google.{self.url_suffix}/_/TranslateWebserverUi/data/batchexecute"
        self._http: EngineHttpClient = EngineHttpClient("built_in")

    async def close(self) -> None:
        await self._http.close()

    @staticmethod
    def package_rpc(text: str, lang_src: str, lang_tgt: str) -> str:
        parameter: list[Any] = [[text.strip(), lang_src, lang_tgt, True], [1]]
        escaped_parameter: str = json.dumps(parameter, separators=(",", ":"))
        rpc: list[Any] = [[[RPC_ID, escaped_parameter, None, "generic"]]]
        return f"f.req={quote(json.dumps(rpc, separators=(',', ':')))}&"

    def _build_headers(self) -> dict[str, str]:
        return {
            "Referer": f"https://translate.google.{self.url_suffix}/",
            "User-Agent": USER_AGENT,
            "Content-Type": "application/x-www-form-urlencoded;charset=utf-8",
        }

    async def translate(self, text: str, lang_tgt: str, lang_src: str, *, timeout: float) -> Result:
        body: str = await self._http.request_text(
            "POST",
            self.url,
            data=self.package_rpc(text, lang_src, lang_tgt),
            headers=self._build_headers(),
            total_timeout=timeout,
        )
        return self.parse_response(body)

    @staticmethod
    def parse_response(body: str) -> Result:
        """Extract the translation from a ``batchexecute`` response body.

        Args:
            body (str): Raw response text.

        Returns:
            Result: Translated text and detected source language.

        Raises:
            InvalidResponseError: If no translation can be found in the body.
        """
        for line in body.splitlines():
            if RPC_ID not in line:
                continue
            try:
                decoded: Any = json.loads(json.loads(line)[0][2])
                detected: str | None = decoded[1][3]
                first: Any = decoded[1][0][0]
            except JSONDecodeError as err:
                msg = "failed to decode built-in translation response"
                raise InvalidResponseError(msg) from err
            except (IndexError, TypeError) as err:
                msg = "unexpected built-in translation response layout"
                raise InvalidResponseError(msg) from err

            if len(first) <= 5 or not first[5]:
                # URL-like input comes back untranslated in the first slot.
                if not first or not isinstance(first[0], str):
                    msg = "built-in translation response contains no sentences"
                    raise InvalidResponseError(msg)
                return Result(text=first[0], detected_source_lang="und", metadata={"engine": "built_in"})

            text: str = " ".join(str(sentence[0]).strip() for sentence in first[5] if sentence and sentence[0])
            return Result(text=text, detected_source_lang=detected, metadata={"engine": "built_in"})

        msg = "built-in translation response has no translation payload"
        raise InvalidResponseError(msg)


class BuiltInTranslation(TransInterface):
    def __init__(self) -> None:
        super().__init__()
        self.__inst: GoogleWebClient | None = None

    @property
    def _inst(self) -> GoogleWebClient:
        if self.__inst is None:
            msg = "The built-in translation client is not initialised"
            raise TranslateExceptionError(msg)
        return self.__inst

    @property
    def is_configured(self) -> bool:
        return True

    @staticmethod
    def fetch_engine_name() -> str:
        return "built_in"

    def initialize(self, config: Config) -> None:
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.engine_attributes = EngineAttributes(
            name=self.fetch_engine_name(),
            display_name="Built-in Translator",
            marker="Ⓑ",
            requires_credentials=False,
            supported_languages=frozenset(LANGUAGES),
        )
        self.__inst = GoogleWebClient(url_suffix=config.TRANSLATION.GOOGLE_SUFFIX)

    @staticmethod
    def _to_web_code(code: str | None) -> str:
        canonical: str = canonical_language_code(code)
        if canonical == AUTO_LANGUAGE or canonical in LANGUAGES:
            return canonical
        base: str = canonical.split("-", 1)[0]
        if base in LANGUAGES:
            return base
        msg: str = f"Language not supported by the built-in translator: {code}"
        raise NotSupportedLanguagesError(msg)

    async def translation(
        self, content: str, tgt_lang: str, src_lang: str | None = None, *, timeout: float = 10.0
    ) -> Result:
        logger.info("'%s': 'start translation'", self.__class__.__name__)
        if len(content) >= MAX_TEXT_LENGTH:
            msg: str = f"Built-in translator accepts less than {MAX_TEXT_LENGTH} characters"
            raise TranslateExceptionError(msg)

        result: Result = await self._inst.translate(
            content, self._to_web_code(tgt_lang), self._to_web_code(src_lang), timeout=timeout
        )
        logger.info("translation completed (%s > %s)", src_lang or AUTO_LANGUAGE, tgt_lang)
        return result

    async def close(self) -> None:
        if self.__inst is not None:
            await self.__inst.close()
        logger.info("'%s' process termination", self.__class__.__name__)
