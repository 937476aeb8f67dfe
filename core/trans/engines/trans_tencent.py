"""Tencent Cloud Machine Translation (TMT) provider.

Calls the ``TextTranslate`` action directly over HTTPS and signs every request with TC3-HMAC-SHA256.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, ClassVar, Final

from core.trans.engines.http_client import EngineHttpClient
from core.trans.interface import (
    EngineAttributes,
    InvalidResponseError,
    Result,
    TransInterface,
    TranslateExceptionError,
    TranslationRateLimitError,
)
from core.trans.languages import AUTO_LANGUAGE, canonical_language_code
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from config.loader import Config

__all__: list[str] = ["TencentTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HOST: Final[str] = "tmt.tencentcloudapi.com"
SERVICE: Final[str] = "tmt"
ACTION: Final[str] = "TextTranslate"
API_VERSION: Final[str] = "2018-03-21"
ALGORITHM: Final[str] = "TC3-HMAC-SHA256"
CONTENT_TYPE: Final[str] = "application/json; charset=utf-8"


class TencentTranslation(TransInterface):
    """Tencent Cloud TMT provider.

    Attributes:
        SUPPORTED_LANGUAGES (frozenset[str]): Canonical codes TMT accepts.
        clock (Callable[[], float]): Source of the request timestamp, replaceable in tests.
    """

    SECRET_ID_KEY: ClassVar[str] = "TENCENT_SECRET_ID"
    SECRET_KEY_KEY: ClassVar[str] = "TENCENT_SECRET_KEY"
    REGION_KEY: ClassVar[str] = "TENCENT_REGION"

    SUPPORTED_LANGUAGES: ClassVar[frozenset[str]] = frozenset(
        {"zh-CN", "zh-TW", "en", "ja", "ko", "fr", "es", "it", "de", "tr", "ru", "pt", "vi", "id", "th", "ms", "ar", "hi"}
    )

    def __init__(self) -> None:
        super().__init__()
        self._secret_id: str = ""
        self._secret_key: str = ""
        self._region: str = ""
        self._http: EngineHttpClient = EngineHttpClient(self.fetch_engine_name())
        self.clock: Callable[[], float] = time.time

    @property
    def is_configured(self) -> bool:
        return bool(self._secret_id and self._secret_key)

    @staticmethod
    def fetch_engine_name() -> str:
        return "tencent"

    def initialize(self, config: Config) -> None:
        logger.debug("'%s' Initialization start", self.__class__.__name__)
        self.engine_attributes = EngineAttributes(
            name=self.fetch_engine_name(),
            display_name="Tencent Cloud",
            marker="Ⓣ",
            supported_languages=self.SUPPORTED_LANGUAGES,
        )
        self._secret_id = self.get_credential(config, self.SECRET_ID_KEY)
        self._secret_key = self.get_credential(config, self.SECRET_KEY_KEY)
        self._region = self.get_credential(config, self.REGION_KEY) or "ap-guangzhou"
        if not self.is_configured:
            logger.info("Tencent Cloud secret id/key not configured; provider disabled")

    @staticmethod
    def _to_tencent_code(code: str | None) -> str:
        canonical: str = canonical_language_code(code)
        if canonical == "zh-CN":
            return "zh"
        return canonical

    @staticmethod
    def _hmac_sha256(key: bytes, message: str) -> bytes:
        return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()

    @classmethod
    def sign_request(cls, secret_id: str, secret_key: str, payload: str, timestamp: int) -> str:
        """Build the ``Authorization`` header value for a TC3-HMAC-SHA256 signed POST.

        Args:
            secret_id (str): SecretId of the API key pair.
            secret_key (str): SecretKey of the API key pair.
            payload (str): Exact JSON body that will be sent.
            timestamp (int): Unix time in seconds, also sent as ``X-TC-Timestamp``.

        Returns:
            str: The authorization header value.
        """
        date: str = datetime.fromtimestamp(timestamp, tz=UTC).strftime("%Y-%m-%d")
        signed_headers: str = "content-type;host"
        canonical_request: str = "\n".join(
            [
                "POST",
                "/",
                "",
                f"content-type:{CONTENT_TYPE}\nhost:{HOST}\n",
                signed_headers,
                hashlib.sha256(payload.encode("utf-8")).hexdigest(),
            ]
        )
        credential_scope: str = f"{date}/{SERVICE}/tc3_request"
        string_to_sign: str = "\n".join(
            [
                ALGORITHM,
                str(timestamp),
                credential_scope,
                hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
            ]
        )

        secret_date: bytes = cls._hmac_sha256(f"TC3{secret_key}".encode(), date)
        secret_service: bytes = cls._hmac_sha256(secret_date, SERVICE)
        secret_signing: bytes = cls._hmac_sha256(secret_service, "tc3_request")
        signature: str = hmac.new(secret_signing, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()
        return (
            f"{ALGORITHM} Credential={secret_id}/{credential_scope}, "
            f"SignedHeaders={signed_headers}, Signature={signature}"
        )

    async def translation(
        self, content: str, tgt_lang: str, src_lang: str | None = None, *, timeout: float = 10.0
    ) -> Result:
        """Translate input text through TMT ``TextTranslate``.

        Raises:
            MissingCredentialsError: If the secret id or key is missing.
            TranslationRateLimitError: If TMT reports a ``RequestLimitExceeded`` error.
            InvalidResponseError: If the answer holds no ``TargetText``.
            TranslateExceptionError: For other TMT errors. See also ``EngineHttpClient.request_text``.
        """
        self.ensure_configured()
        logger.info("'%s': 'start translation'", self.__class__.__name__)

        source: str = self._to_tencent_code(src_lang) if src_lang else AUTO_LANGUAGE
        payload: str = json.dumps(
            {"SourceText": content, "Source": source, "Target": self._to_tencent_code(tgt_lang), "ProjectId": 0},
            ensure_ascii=False,
            separators=(",", ":"),
        )
        timestamp: int = int(self.clock())
        headers: dict[str, str] = {
            "Authorization": self.sign_request(self._secret_id, self._secret_key, payload, timestamp),
            "Content-Type": CONTENT_TYPE,
            "Host": HOST,
            "X-TC-Action": ACTION,
            "X-TC-Timestamp": str(timestamp),
            "X-TC-Version": API_VERSION,
            "X-TC-Region": self._region,
        }

        body: Any = await self._http.request_json(
            "POST", f"https://{HOST}", data=payload.encode("utf-8"), headers=headers, total_timeout=timeout
        )
        return self.parse_response(body)

    @staticmethod
    def parse_response(body: Any) -> Result:
        """Turn a TMT response into a Result, raising for service side errors.

        Raises:
            TranslationRateLimitError: For ``RequestLimitExceeded`` codes.
            TranslateExceptionError: For any other error code.
            InvalidResponseError: If no translation is present.
        """
        response: Any = body.get("Response") if isinstance(body, dict) else None
        if not isinstance(response, dict):
            msg: str = f"Tencent returned an unexpected response: {body!r}"
            raise InvalidResponseError(msg)

        error: Any = response.get("Error")
        if isinstance(error, dict):
            code: str = str(error.get("Code", ""))
            msg = f"Tencent translation failed: {code}: {error.get('Message', '')}"
            if code.startswith("RequestLimitExceeded"):
                raise TranslationRateLimitError(msg)
            raise TranslateExceptionError(msg)

        text: Any = response.get("TargetText")
        if not isinstance(text, str):
            msg = f"Tencent response holds no translation: {response!r}"
            raise InvalidResponseError(msg)

        detected: Any = response.get("Source")
        return Result(
            text=text,
            detected_source_lang=canonical_language_code(detected) if isinstance(detected, str) else None,
            metadata={"engine": "tencent", "request_id": str(response.get("RequestId", ""))},
        )

    async def close(self) -> None:
        await self._http.close()
        logger.debug("'%s' process termination", self.__class__.__name__)
