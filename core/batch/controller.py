"""Debounced batch translation driven by editor events.

Selection and scroll events call ``trigger()``. Each trigger restarts a debounce timer and the
batch only runs once the timer elapses undisturbed. While a batch runs, further triggers are
dropped rather than queued; the next event after completion picks up the fresh state.

Items run one at a time through the orchestrator with a fixed pause between them, in addition to
the rate limiter. A batch is not atomic: a failed item is logged and the batch moves on.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from models.batch_models import BatchReport, BatchState
from models.translation_models import ErrorKind, TranslationOk
from utils.cancellation import CancellationToken, OperationCancelledError
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Iterable

    from core.trans.manager import TransManager
    from models.batch_models import BatchItem
    from models.translation_models import TranslationOutcome

__all__: list[str] = ["BatchController"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class BatchController:
    """Coalesces editor events into serial translation batches.

    Attributes:
        manager (TransManager): Orchestrator every item goes through.
        debounce_sec (float): Quiet period after the last trigger before a batch runs.
        item_delay_sec (float): Pause between two items of a batch.
        items_provider (Callable[[], Iterable[BatchItem]] | None): Supplies the items of a
            triggered batch, typically the comments currently visible in the editor.
        on_result (Callable[[BatchItem, TranslationOk], None] | None): Called for every item
            translated successfully.
    """

    def __init__(
        self,
        manager: TransManager,
        *,
        items_provider: Callable[[], Iterable[BatchItem]] | None = None,
        on_result: Callable[[BatchItem, TranslationOk], None] | None = None,
        debounce_sec: float | None = None,
        item_delay_sec: float | None = None,
    ) -> None:
        batch_config = manager.config.BATCH
        self.manager: TransManager = manager
        self.items_provider: Callable[[], Iterable[BatchItem]] | None = items_provider
        self.on_result: Callable[[BatchItem, TranslationOk], None] | None = on_result
        self.debounce_sec: float = batch_config.DEBOUNCE_SEC if debounce_sec is None else debounce_sec
        self.item_delay_sec: float = batch_config.ITEM_DELAY_SEC if item_delay_sec is None else item_delay_sec

        self._state: BatchState = BatchState.IDLE
        self._in_flight: bool = False
        self._timer: asyncio.TimerHandle | None = None
        self._token: CancellationToken | None = None
        self._batch_task: asyncio.Task[BatchReport] | None = None
        self._processed: set[str] = set()
        self.last_report: BatchReport | None = None

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def processed_keys(self) -> frozenset[str]:
        return frozenset(self._processed)

    def trigger(self) -> bool:
        """Restart the debounce timer.

        Returns:
            bool: False if the trigger was dropped because a batch is running.
        """
        if self._in_flight:
            logger.info("Ignoring trigger; a batch is already running")
            return False

        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().call_later(self.debounce_sec, self._on_debounce_elapsed)
        self._state = BatchState.DEBOUNCING
        logger.debug("Batch debounce timer (re)started: %.2fs", self.debounce_sec)
        return True

    def on_selection_changed(self) -> bool:
        return self.trigger()

    def on_visible_range_changed(self) -> bool:
        return self.trigger()

    def on_document_changed(self, keys: Iterable[str] | None = None, *, document: str | None = None) -> int:
        """Forget processed items after an edit.

        Args:
            keys (Iterable[str] | None): Keys of the edited items.
            document (str | None): Forget every item of this document.

        Returns:
            int: Number of keys forgotten. With neither argument, the whole set is cleared.
        """
        if keys is None and document is None:
            count: int = len(self._processed)
            self._processed.clear()
            logger.debug("Processed item set cleared (%d keys)", count)
            return count

        targets: set[str] = set(keys or ())
        if document is not None:
            prefix: str = f"{document}:"
            targets.update(key for key in self._processed if key.startswith(prefix))
        return self.invalidate(targets)

    def invalidate(self, keys: Iterable[str]) -> int:
        """Remove keys from the processed set so their items are translated again."""
        removed: int = 0
        for key in keys:
            if key in self._processed:
                self._processed.discard(key)
                removed += 1
        if removed:
            logger.debug("Invalidated %d processed items", removed)
        return removed

    def _on_debounce_elapsed(self) -> None:
        self._timer = None
        if self._in_flight:
            logger.info("Debounce elapsed during a running batch; dropped")
            return
        if self.items_provider is None:
            logger.warning("Batch triggered without an items provider; nothing to translate")
            self._state = BatchState.IDLE
            return
        try:
            items: list[BatchItem] = list(self.items_provider())
        except Exception as err:  # noqa: BLE001 - runs as a loop callback; nothing above can handle it
            logger.error("Items provider failed; batch skipped: %s", err, exc_info=True)
            self._state = BatchState.IDLE
            return
        self._batch_task = asyncio.create_task(self.run_batch(items))

    async def run_batch(self, items: Iterable[BatchItem]) -> BatchReport:
        """Translate ``items`` one after another.

        Items whose key was already processed, and items without text, are skipped before any
        orchestrator call.

        Args:
            items (Iterable[BatchItem]): Items to translate.

        Returns:
            BatchReport: Per-item outcomes and counters. ``dropped`` is set when another batch was
            already running.
        """
        if self._in_flight:
            logger.info("Batch dropped; another batch is running")
            return BatchReport(dropped=True)

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._in_flight = True
        self._state = BatchState.RUNNING
        token: CancellationToken = CancellationToken()
        self._token = token
        report = BatchReport()

        try:
            pending: list[BatchItem] = []
            for item in items:
                if item.key in self._processed or not item.text.strip():
                    report.skipped += 1
                else:
                    pending.append(item)
            logger.info("Batch started: %d items queued, %d skipped", len(pending), report.skipped)

            for index, item in enumerate(pending):
                if index > 0:
                    try:
                        await token.sleep(self.item_delay_sec)
                    except OperationCancelledError:
                        report.cancelled = True
                        break
                if token.is_cancelled:
                    report.cancelled = True
                    break

                outcome: TranslationOutcome | None = await self._process_item(item, token)
                if outcome is None:
                    continue
                if not outcome.is_ok and outcome.kind is ErrorKind.CANCELLED:
                    report.cancelled = True
                    break
                report.outcomes[item.key] = outcome
        finally:
            self._in_flight = False
            self._token = None
            self._state = BatchState.DEBOUNCING if self._timer is not None else BatchState.IDLE
            self.last_report = report

        logger.info(
            "Batch finished: %d translated, %d failed, %d skipped%s",
            report.translated,
            report.failed,
            report.skipped,
            " (cancelled)" if report.cancelled else "",
        )
        return report

    async def _process_item(self, item: BatchItem, token: CancellationToken) -> TranslationOutcome | None:
        try:
            outcome: TranslationOutcome = await self.manager.translate(
                item.text, item.source_lang, item.target_lang, item.engine, token=token
            )
        except Exception:  # noqa: BLE001 - isolate item failures
            logger.exception("Unexpected error translating '%s'", StringUtils.preview(item.text))
            return None

        if isinstance(outcome, TranslationOk):
            self._processed.add(item.key)
            if self.on_result is not None:
                self.on_result(item, outcome)
        elif outcome.kind is ErrorKind.INPUT_REJECTED:
            self._processed.add(item.key)
        elif outcome.kind is not ErrorKind.CANCELLED:
            logger.warning("Item '%s' failed: %s (%s)", StringUtils.preview(item.text), outcome.kind, outcome.detail)
        return outcome

    def cancel(self, reason: str = "batch abandoned") -> None:
        """Stop the pending timer and abandon the running batch at its next suspension point."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            if not self._in_flight:
                self._state = BatchState.IDLE
        if self._token is not None:
            self._token.cancel(reason)

    async def close(self) -> None:
        """Cancel pending and running work and wait for the running batch to wind down."""
        self.cancel("controller closed")
        if self._batch_task is not None and not self._batch_task.done():
            await self._batch_task
        self._batch_task = None
        logger.debug("BatchController closed")
