"""Asynchronous HTTP helper shared by the REST based providers.

Wraps an aiohttp session and translates transport failures and HTTP status codes into the
provider exception taxonomy, so each provider only deals with its own payload format.
"""

from __future__ import annotations

import json
from json import JSONDecodeError
from typing import TYPE_CHECKING, Any, Final, Literal

import aiohttp

from core.trans.interface import (
    InvalidResponseError,
    NetworkFailureError,
    TranslateExceptionError,
    TranslationRateLimitError,
    TranslationTimeoutError,
)
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = ["EngineHttpClient"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTPMethod = Literal["GET", "POST"]

CONNECT_TIMEOUT: Final[float] = 3.0
BODY_PREVIEW_LIMIT: Final[int] = 300


class EngineHttpClient:
    """Lazily created aiohttp session with provider-oriented error mapping."""

    def __init__(self, owner: str) -> None:
        """Initialize the client.

        Args:
            owner (str): Provider name used in log and error messages.
        """
        self._owner: str = owner
        self._session: aiohttp.ClientSession | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session. Must be called inside a running event loop."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            logger.debug("%s HTTP session initialized", self._owner)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
            logger.debug("%s HTTP session closed", self._owner)
        self._session = None

    @staticmethod
    def _build_timeout(total_timeout: float) -> aiohttp.ClientTimeout:
        if total_timeout <= 0:
            return aiohttp.ClientTimeout(total=None)
        if total_timeout < CONNECT_TIMEOUT:
            return aiohttp.ClientTimeout(total=total_timeout)
        return aiohttp.ClientTimeout(connect=CONNECT_TIMEOUT, total=total_timeout)

    @staticmethod
    def _preview(body: str) -> str:
        flat: str = body.strip().replace("\n", "\\n")
        if len(flat) > BODY_PREVIEW_LIMIT:
            return f"{flat[:BODY_PREVIEW_LIMIT]}..."
        return flat

    def _raise_for_status(self, status: int, reason: str | None, body: str) -> None:
        if status < 400:
            return
        msg: str = f"{self._owner}: HTTP {status} {reason or ''}".rstrip() + f". Body: {self._preview(body)}"
        if status == 429:
            raise TranslationRateLimitError(msg)
        if status >= 500:
            raise NetworkFailureError(msg)
        raise TranslateExceptionError(msg)

    async def request_text(
        self,
        method: HTTPMethod,
        url: str,
        *,
        total_timeout: float,
        **kwargs: Any,
    ) -> str:
        """Send a request and return the body as text.

        Args:
            method (HTTPMethod): HTTP method.
            url (str): Request URL.
            total_timeout (float): Total timeout in seconds. Zero or less disables it.
            **kwargs: Passed to ``aiohttp.ClientSession.request`` (params, json, data, headers).

        Returns:
            str: Response body.

        Raises:
            TranslationRateLimitError: On HTTP 429.
            NetworkFailureError: On connection problems or HTTP 5xx.
            TranslationTimeoutError: If the request exceeds the timeout.
            TranslateExceptionError: On other HTTP error statuses.
        """
        logger.debug("[%s] %s %s", self._owner, method, url)
        try:
            async with self.session.request(
                method, url, timeout=self._build_timeout(total_timeout), **kwargs
            ) as resp:
                body: str = await resp.text()
                self._raise_for_status(resp.status, resp.reason, body)
                return body
        except TimeoutError as err:
            msg: str = f"{self._owner}: no response within {total_timeout}s"
            raise TranslationTimeoutError(msg) from err
        except aiohttp.ClientConnectorError as err:
            msg = f"{self._owner}: cannot connect to server: {err}"
            raise NetworkFailureError(msg) from err
        except (ConnectionResetError, aiohttp.ClientError) as err:
            msg = f"{self._owner}: connection error: {err}"
            raise NetworkFailureError(msg) from err

    async def request_json(
        self,
        method: HTTPMethod,
        url: str,
        *,
        total_timeout: float,
        **kwargs: Any,
    ) -> Any:
        """Send a request and decode the body as JSON.

        Raises:
            InvalidResponseError: If the body is not valid JSON.
            TranslateExceptionError: See ``request_text``.
        """
        body: str = await self.request_text(method, url, total_timeout=total_timeout, **kwargs)
        try:
            return json.loads(body)
        except JSONDecodeError as err:
            msg: str = f"{self._owner}: response is not JSON: {self._preview(body)}"
            raise InvalidResponseError(msg) from err
