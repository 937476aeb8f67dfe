from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import TYPE_CHECKING, ClassVar

from core.cache.inflight_manager import InFlightAbandonedError, InFlightManager
from core.cache.manager import TranslationCacheManager
from core.dispatch.concurrency_queue import ConcurrencyQueue
from core.dispatch.rate_limiter import RateLimiter
from core.trans.interface import (
    InvalidResponseError,
    MissingCredentialsError,
    NetworkFailureError,
    NotSupportedLanguagesError,
    Result,
    TranslateExceptionError,
    TranslationRateLimitError,
    TranslationTimeoutError,
)
from core.trans.languages import AUTO_LANGUAGE, base_language, canonical_language_code, detect_script_language
from core.trans.registry import ProviderRegistry, ProviderSelector
from models.translation_models import ErrorKind, TranslationErr, TranslationOk
from utils.cancellation import OperationCancelledError, cancellable_sleep
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from config.loader import Config
    from core.trans.interface import TransInterface
    from models.translation_models import TranslationOutcome
    from utils.cancellation import CancellationToken


__all__: list[str] = ["TransManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class RateLimitedTwiceError(NetworkFailureError):
    """The provider rate-limited both the call and its single retry."""


class TransManager:
    """Orchestrates translation requests.

    A request is normalized, routed to a provider, looked up in the cache and, on a miss, sent to
    the provider through the rate limiter and the concurrency queue. Expected failures come back as
    ``TranslationErr`` values; only programming errors raise.

    Every collaborator is an explicit instance owned by this manager. Passing them in lets tests
    and embedding code share or replace any of them.

    Attributes:
        MAX_ATTEMPTS (ClassVar[int]): Provider calls per request, the first call plus one retry
            after a rate-limit answer.
    """

    MAX_ATTEMPTS: ClassVar[int] = 2

    def __init__(
        self,
        config: Config,
        *,
        registry: ProviderRegistry | None = None,
        selector: ProviderSelector | None = None,
        cache_manager: TranslationCacheManager | None = None,
        rate_limiter: RateLimiter | None = None,
        queue: ConcurrencyQueue | None = None,
        inflight_manager: InFlightManager | None = None,
    ) -> None:
        """Initialize the TransManager and build missing collaborators from the configuration.

        Args:
            config (Config): The configuration object.
            registry (ProviderRegistry | None): Provider instances.
            selector (ProviderSelector | None): Engine hint resolution.
            cache_manager (TranslationCacheManager | None): Translation cache.
            rate_limiter (RateLimiter | None): Admission control, used when ``queue`` is built here.
            queue (ConcurrencyQueue | None): Bounded-parallelism runner for provider calls.
            inflight_manager (InFlightManager | None): Single-flight coordination. Built here only
                when ``TRANSLATION.SINGLE_FLIGHT`` is enabled.
        """
        self.config: Config = config
        self.registry: ProviderRegistry = registry if registry is not None else ProviderRegistry(config)
        self.selector: ProviderSelector = selector if selector is not None else ProviderSelector(self.registry)
        self.cache_manager: TranslationCacheManager = (
            cache_manager if cache_manager is not None else TranslationCacheManager.from_config(config)
        )
        self.rate_limiter: RateLimiter = (
            rate_limiter if rate_limiter is not None else RateLimiter(config.DISPATCH.REQUESTS_PER_SECOND)
        )
        self.queue: ConcurrencyQueue = (
            queue
            if queue is not None
            else ConcurrencyQueue(config.DISPATCH.MAX_CONCURRENT, rate_limiter=self.rate_limiter)
        )
        if inflight_manager is None and config.TRANSLATION.SINGLE_FLIGHT:
            inflight_manager = InFlightManager()
        self.inflight_manager: InFlightManager | None = inflight_manager
        self._translation_count: int = 0

    async def initialize(self) -> None:
        """Initialize every translation engine."""
        logger.info("TransManager initialization started")
        self.registry.initialize()
        logger.info("Configured translation engines: %s", self.registry.configured_ids())

    async def shutdown_engines(self) -> None:
        """Stop queued work and release every engine."""
        await self.queue.close()
        if self.inflight_manager is not None:
            await self.inflight_manager.close()
        await self.registry.close()
        logger.info("TransManager shut down")

    def resolve_language_direction(
        self, text: str, source_lang: str | None, target_lang: str | None
    ) -> tuple[str | None, str]:
        """Decide the source and target languages for a request.

        Explicit arguments win over configuration. With ``AUTO_DETECT_LANGUAGE`` enabled and no
        explicit source, the source is guessed from the script of the text; when the guess equals
        the target, the direction is swapped so that text already in the target language is
        translated back into the configured source language.

        Args:
            text (str): Normalized text.
            source_lang (str | None): Requested source language.
            target_lang (str | None): Requested target language.

        Returns:
            tuple[str | None, str]: Source (None for auto-detection by the provider) and target.
        """
        settings = self.config.TRANSLATION
        target: str = canonical_language_code(target_lang or settings.TARGET_LANGUAGE)
        if source_lang:
            source: str = canonical_language_code(source_lang)
            return (None if source == AUTO_LANGUAGE else source), target

        if not settings.AUTO_DETECT_LANGUAGE:
            source = canonical_language_code(settings.SOURCE_LANGUAGE)
            return (None if source == AUTO_LANGUAGE else source), target

        detected: str = detect_script_language(text)
        if base_language(detected) == base_language(target):
            reverse: str = canonical_language_code(settings.SOURCE_LANGUAGE)
            if reverse != AUTO_LANGUAGE and base_language(reverse) != base_language(detected):
                logger.debug("Detected '%s' equals target; translating to '%s' instead", detected, reverse)
                return detected, reverse
        return detected, target

    async def translate_text(
        self,
        text: str,
        source_lang: str | None = None,
        target_lang: str | None = None,
        engine_hint: str | None = None,
        *,
        token: CancellationToken | None = None,
    ) -> str:
        """Translate and render the outcome as plain text.

        Returns:
            str: The translation, or a short placeholder describing the failure.
        """
        outcome: TranslationOutcome = await self.translate(
            text, source_lang, target_lang, engine_hint, token=token
        )
        return outcome.render()

    async def translate(  # noqa: PLR0911
        self,
        text: str,
        source_lang: str | None = None,
        target_lang: str | None = None,
        engine_hint: str | None = None,
        *,
        token: CancellationToken | None = None,
    ) -> TranslationOutcome:
        """Translate ``text``.

        Args:
            text (str): Text to translate.
            source_lang (str | None): Source language. None uses configuration and detection.
            target_lang (str | None): Target language. None uses configuration.
            engine_hint (str | None): Provider id or ``"auto"``. None uses ``TRANSLATION.ENGINE``.
            token (CancellationToken | None): Abandons the request at its next suspension point.

        Returns:
            TranslationOutcome: ``TranslationOk`` or ``TranslationErr``.
        """
        normalized: str = StringUtils.normalize_multiline(text)
        if not normalized or StringUtils.is_degenerate(normalized):
            logger.debug("Degenerate input rejected: '%s'", StringUtils.preview(normalized))
            return TranslationErr(ErrorKind.INPUT_REJECTED, "no translatable content")
        if token is not None and token.is_cancelled:
            return TranslationErr(ErrorKind.CANCELLED, token.reason)

        hint: str = engine_hint or self.config.TRANSLATION.ENGINE
        is_auto: bool = self.selector.is_auto(hint)
        engine_id: str = self.selector.select_provider(hint)
        engine: TransInterface | None = self.registry.get(engine_id)
        if engine is None:
            logger.error("Translation engine not available: '%s'", engine_id)
            return TranslationErr(
                ErrorKind.MISSING_CREDENTIALS, f"Translation engine '{engine_id}' is not available", engine_id
            )
        if not engine.is_configured:
            logger.warning("'%s' has no credentials; translation skipped", engine_id)
            return TranslationErr(
                ErrorKind.MISSING_CREDENTIALS, f"{engine.display_name} API credentials required", engine_id
            )

        src_lang, tgt_lang = self.resolve_language_direction(normalized, source_lang, target_lang)
        if not engine.supports_language_pair(src_lang, tgt_lang):
            return TranslationErr(
                ErrorKind.UNSUPPORTED_LANGUAGE,
                f"'{engine_id}' does not support {src_lang or AUTO_LANGUAGE} > {tgt_lang}",
                engine_id,
            )

        marker: str = engine.marker if is_auto and self.config.TRANSLATION.SHOW_ENGINE_MARKER else ""
        fingerprint: str = StringUtils.generate_fingerprint(normalized, tgt_lang, src_lang, engine_id)

        cached: str | None = self.cache_manager.get(fingerprint)
        if cached is not None:
            logger.debug("Translation cache hit: '%s'", StringUtils.preview(cached))
            return TranslationOk(cached, engine_id, src_lang, tgt_lang, from_cache=True, marker=marker)

        if self.inflight_manager is None:
            outcome: TranslationOutcome = await self._translate_uncached(
                engine, normalized, src_lang, tgt_lang, fingerprint, token
            )
        else:
            outcome = await self._translate_single_flight(engine, normalized, src_lang, tgt_lang, fingerprint, token)

        if isinstance(outcome, TranslationOk) and marker:
            return replace(outcome, marker=marker)
        return outcome

    async def _translate_single_flight(
        self,
        engine: TransInterface,
        text: str,
        src_lang: str | None,
        tgt_lang: str,
        fingerprint: str,
        token: CancellationToken | None,
    ) -> TranslationOutcome:
        if self.inflight_manager is None:
            msg = "Single-flight requested without an InFlightManager"
            raise RuntimeError(msg)

        while True:
            if token is not None and token.is_cancelled:
                return TranslationErr(ErrorKind.CANCELLED, token.reason, engine.engine_name)
            try:
                is_producer, shared = await self.inflight_manager.mark_inflight_start(fingerprint)
            except InFlightAbandonedError:
                logger.debug("In-flight producer gave up; retrying key: %s", fingerprint[:16])
                continue
            except TimeoutError as err:
                return TranslationErr(ErrorKind.PROVIDER_TIMEOUT, str(err), engine.engine_name)
            if not is_producer and shared is not None:
                logger.debug("Reusing in-flight translation for key: %s", fingerprint[:16])
                return shared
            break

        try:
            outcome: TranslationOutcome = await self._translate_uncached(
                engine, text, src_lang, tgt_lang, fingerprint, token
            )
        except asyncio.CancelledError:
            self.inflight_manager.abandon_inflight(fingerprint)
            raise
        except Exception as err:
            await self.inflight_manager.store_inflight_exception(fingerprint, err)
            raise

        # A cancellation belongs to this caller's token only.
        if isinstance(outcome, TranslationErr) and outcome.kind is ErrorKind.CANCELLED:
            self.inflight_manager.abandon_inflight(fingerprint)
        else:
            await self.inflight_manager.store_inflight_result(fingerprint, outcome)
        return outcome

    async def _translate_uncached(
        self,
        engine: TransInterface,
        text: str,
        src_lang: str | None,
        tgt_lang: str,
        fingerprint: str,
        token: CancellationToken | None,
    ) -> TranslationOutcome:
        engine_id: str = engine.engine_name
        try:
            result: Result = await self._call_with_retry(engine, text, src_lang, tgt_lang, token)
        except OperationCancelledError as err:
            logger.info("Translation cancelled: %s", err)
            return TranslationErr(ErrorKind.CANCELLED, str(err), engine_id)
        except TranslateExceptionError as err:
            kind: ErrorKind = self.classify_error(err)
            logger.error("Translation by '%s' failed (%s): %s", engine_id, kind, err)
            return TranslationErr(kind, str(err), engine_id)

        translated: str = StringUtils.ensure_str(result.text)
        self.cache_manager.put(fingerprint, translated)
        self._count_translation()
        logger.info("Translated by '%s': '%s'", engine_id, StringUtils.preview(translated))
        return TranslationOk(
            translated,
            engine_id,
            src_lang,
            tgt_lang,
            detected_source_lang=result.detected_source_lang,
        )

    async def _call_with_retry(
        self,
        engine: TransInterface,
        text: str,
        src_lang: str | None,
        tgt_lang: str,
        token: CancellationToken | None,
    ) -> Result:
        """Call the provider through the queue, retrying once after a rate-limit answer.

        Raises:
            RateLimitedTwiceError: If the retry is rate-limited as well.
            OperationCancelledError: If the token fires while queued, running or backing off.
            TranslateExceptionError: Any other provider failure, without retry.
        """
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            try:
                return await self.queue.enqueue(
                    lambda: self._invoke_engine(engine, text, src_lang, tgt_lang), token=token
                )
            except TranslationRateLimitError as err:
                if attempt >= self.MAX_ATTEMPTS:
                    msg: str = f"'{engine.engine_name}' rate limited again after retry: {err}"
                    raise RateLimitedTwiceError(msg) from err
                backoff: float = self.config.TRANSLATION.RETRY_BACKOFF
                logger.warning("'%s' rate limited; retrying in %.1fs", engine.engine_name, backoff)
                await cancellable_sleep(backoff, token)

        msg = "unreachable: retry loop exited without result"
        raise RuntimeError(msg)

    async def _invoke_engine(
        self, engine: TransInterface, text: str, src_lang: str | None, tgt_lang: str
    ) -> Result:
        timeout: float = self.config.TRANSLATION.TIMEOUT
        try:
            result: Result = await asyncio.wait_for(
                engine.translation(text, tgt_lang, src_lang, timeout=timeout), timeout=timeout
            )
        except TimeoutError as err:
            msg: str = f"'{engine.engine_name}' did not answer within {timeout}s"
            raise TranslationTimeoutError(msg) from err

        if not isinstance(result, Result) or not isinstance(result.text, str) or not result.text.strip():
            msg = f"'{engine.engine_name}' returned an empty translation"
            raise InvalidResponseError(msg)
        return result

    @staticmethod
    def classify_error(err: TranslateExceptionError) -> ErrorKind:
        """Map a provider exception to the failure class reported to callers."""
        if isinstance(err, MissingCredentialsError):
            return ErrorKind.MISSING_CREDENTIALS
        if isinstance(err, TranslationTimeoutError):
            return ErrorKind.PROVIDER_TIMEOUT
        if isinstance(err, InvalidResponseError):
            return ErrorKind.PROVIDER_INVALID_RESPONSE
        if isinstance(err, NotSupportedLanguagesError):
            return ErrorKind.UNSUPPORTED_LANGUAGE
        if isinstance(err, TranslationRateLimitError):
            return ErrorKind.PROVIDER_RATE_LIMITED
        return ErrorKind.NETWORK_FAILURE

    def _count_translation(self) -> None:
        self._translation_count += 1
        interval: int = self.config.CACHE.CLEANUP_INTERVAL
        if interval > 0 and self._translation_count % interval == 0:
            removed: int = self.cache_manager.clear_expired()
            logger.debug("Periodic cache cleanup removed %d expired entries", removed)
