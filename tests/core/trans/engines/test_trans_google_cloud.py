from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

import pytest
from google.api_core.exceptions import BadRequest, Forbidden, InternalServerError, ServiceUnavailable, TooManyRequests

from core.trans.engines import trans_google_cloud as trans_google_cloud_module
from core.trans.interface import (
    InvalidResponseError,
    MissingCredentialsError,
    NetworkFailureError,
    NotSupportedLanguagesError,
    Result,
    TranslateExceptionError,
    TranslationRateLimitError,
)
from models.config_models import Config

if TYPE_CHECKING:
    from collections.abc import Callable


class DummyAuthorizedSession:
    def __init__(self, credentials: object) -> None:
        self.credentials: object = credentials
        self.requests: list[tuple[str, str]] = []
        self.closed: bool = False

    def request(self, method: str, url: str, **kwargs: Any) -> str:
        _ = kwargs
        self.requests.append((method, url))
        return "response"

    def close(self) -> None:
        self.closed = True


class DummyClient:
    translate_result: ClassVar[Any] = {"translatedText": "ok", "detectedSourceLanguage": "EN"}
    translate_error: ClassVar[Exception | None] = None

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.args = args
        self.kwargs = kwargs
        self.calls: list[tuple[str, str | None, str | None]] = []

    def translate(
        self, content: str, target_language: str | None = None, source_language: str | None = None, format_: str = ""
    ) -> Any:
        _ = format_
        self.calls.append((content, target_language, source_language))
        err = type(self).translate_error
        if err is not None:
            raise err
        return type(self).translate_result


@pytest.fixture(autouse=True)
def setup_google_cloud_module(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_to_thread(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    DummyClient.translate_result = {"translatedText": "ok", "detectedSourceLanguage": "EN"}
    DummyClient.translate_error = None
    monkeypatch.setattr(trans_google_cloud_module.translate, "Client", DummyClient)
    monkeypatch.setattr(trans_google_cloud_module, "AuthorizedSession", DummyAuthorizedSession)
    monkeypatch.setattr(trans_google_cloud_module.asyncio, "to_thread", fake_to_thread)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)


@pytest.fixture
def config() -> Config:
    config = Config()
    config.CREDENTIALS.GOOGLE_API_KEY = "api-key"
    return config


def test_inst_property_raises_when_uninitialized() -> None:
    engine = trans_google_cloud_module.GoogleCloudTranslation()

    with pytest.raises(TranslateExceptionError):
        _ = engine._inst


def test_initialize_with_api_key(config: Config) -> None:
    engine = trans_google_cloud_module.GoogleCloudTranslation()

    engine.initialize(config)

    assert engine.engine_name == "google"
    assert engine.marker == "Ⓖ"
    assert engine.is_configured is True
    assert isinstance(engine._inst, DummyClient)
    assert isinstance(engine._inst.kwargs["_http"], trans_google_cloud_module.APIKeySession)


def test_initialize_without_api_key() -> None:
    engine = trans_google_cloud_module.GoogleCloudTranslation()

    engine.initialize(Config())

    assert engine.is_configured is False


def test_api_key_session_appends_key() -> None:
    session = trans_google_cloud_module.APIKeySession("secret")

    session.request("POST", "https://translation.googleapis.com/language/translate/v2")
    session.request("GET", "https://translation.googleapis.com/language/translate/v2/languages?target=en")

    inner: DummyAuthorizedSession = session._session  # type: ignore[assignment]
    assert inner.requests == [
        ("POST", "https://translation.googleapis.com/language/translate/v2?key=secret"),
        ("GET", "https://translation.googleapis.com/language/translate/v2/languages?target=en&key=secret"),
    ]


@pytest.mark.asyncio
async def test_translation_returns_result(config: Config) -> None:
    engine = trans_google_cloud_module.GoogleCloudTranslation()
    engine.initialize(config)

    result: Result = await engine.translation("hello", tgt_lang="zh-CN", src_lang="auto")

    assert result.text == "ok"
    assert result.detected_source_lang == "en"
    assert result.metadata == {"engine": "google"}
    assert engine._inst.calls == [("hello", "zh-CN", None)]


@pytest.mark.asyncio
async def test_translation_falls_back_to_requested_source(config: Config) -> None:
    DummyClient.translate_result = {"translatedText": "ok"}
    engine = trans_google_cloud_module.GoogleCloudTranslation()
    engine.initialize(config)

    result: Result = await engine.translation("hello", tgt_lang="ja", src_lang="en")

    assert result.detected_source_lang == "en"


@pytest.mark.parametrize("response", [None, [], {"translatedText": None}, {"other": "x"}])
@pytest.mark.asyncio
async def test_translation_rejects_unexpected_response(config: Config, response: Any) -> None:
    DummyClient.translate_result = response
    engine = trans_google_cloud_module.GoogleCloudTranslation()
    engine.initialize(config)

    with pytest.raises(InvalidResponseError):
        await engine.translation("hello", tgt_lang="ja")


@pytest.mark.asyncio
async def test_translation_requires_api_key() -> None:
    engine = trans_google_cloud_module.GoogleCloudTranslation()
    engine.initialize(Config())

    with pytest.raises(MissingCredentialsError):
        await engine.translation("hello", tgt_lang="ja")


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (BadRequest("bad language"), NotSupportedLanguagesError),
        (TooManyRequests("slow down"), TranslationRateLimitError),
        (ServiceUnavailable("down"), NetworkFailureError),
        (Forbidden("key rejected"), TranslateExceptionError),
        (InternalServerError("oops"), TranslateExceptionError),
    ],
)
@pytest.mark.asyncio
async def test_translation_maps_google_errors(config: Config, error: Exception, expected: type[Exception]) -> None:
    DummyClient.translate_error = error
    engine = trans_google_cloud_module.GoogleCloudTranslation()
    engine.initialize(config)

    with pytest.raises(expected):
        await engine.translation("hello", tgt_lang="ja")


@pytest.mark.asyncio
async def test_close_releases_session(config: Config) -> None:
    engine = trans_google_cloud_module.GoogleCloudTranslation()
    engine.initialize(config)
    session = engine._inst.kwargs["_http"]

    await engine.close()

    assert session._session.closed is True
    assert engine.is_configured is False
