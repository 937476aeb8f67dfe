from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, cast

import pytest

from core.batch.controller import BatchController
from models.batch_models import BatchItem, BatchReport, BatchState
from models.config_models import Config
from models.translation_models import ErrorKind, TranslationErr, TranslationOk
from utils.cancellation import OperationCancelledError

if TYPE_CHECKING:
    from core.trans.manager import TransManager
    from models.translation_models import TranslationOutcome
    from utils.cancellation import CancellationToken


class FakeManager:
    def __init__(
        self, outcomes: dict[str, TranslationOutcome | Exception] | None = None, delay: float = 0.0
    ) -> None:
        self.config: Config = Config()
        self.calls: list[str] = []
        self.outcomes: dict[str, TranslationOutcome | Exception] = outcomes or {}
        self.delay: float = delay

    async def translate(
        self,
        text: str,
        source_lang: str | None = None,
        target_lang: str | None = None,
        engine_hint: str | None = None,
        *,
        token: CancellationToken | None = None,
    ) -> TranslationOutcome:
        _ = engine_hint
        self.calls.append(text)
        if self.delay and token is not None:
            try:
                await token.sleep(self.delay)
            except OperationCancelledError as err:
                return TranslationErr(ErrorKind.CANCELLED, str(err))
        outcome: TranslationOutcome | Exception | None = self.outcomes.get(text)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome or TranslationOk(text.upper(), "fake", source_lang, target_lang or "zh-CN")


def make_items(*texts: str, document: str = "main.go") -> list[BatchItem]:
    return [BatchItem.from_location(document, line, 0, text) for line, text in enumerate(texts)]


def make_controller(manager: FakeManager, **kwargs: object) -> BatchController:
    kwargs.setdefault("debounce_sec", 0.05)
    kwargs.setdefault("item_delay_sec", 0.0)
    return BatchController(cast("TransManager", manager), **kwargs)  # type: ignore[arg-type]


def test_defaults_come_from_configuration() -> None:
    controller = BatchController(cast("TransManager", FakeManager()))

    assert controller.debounce_sec == 5.0
    assert controller.item_delay_sec == 0.3
    assert controller.state is BatchState.IDLE


@pytest.mark.asyncio
async def test_run_batch_translates_items_in_order() -> None:
    manager = FakeManager()
    delivered: list[tuple[str, str]] = []
    controller = make_controller(manager, on_result=lambda item, outcome: delivered.append((item.text, outcome.text)))

    report: BatchReport = await controller.run_batch(make_items("one", "two", "three"))

    assert manager.calls == ["one", "two", "three"]
    assert delivered == [("one", "ONE"), ("two", "TWO"), ("three", "THREE")]
    assert report.translated == 3
    assert report.failed == 0
    assert controller.state is BatchState.IDLE
    assert controller.last_report is report


@pytest.mark.asyncio
async def test_processed_items_are_skipped_next_time() -> None:
    manager = FakeManager()
    controller = make_controller(manager)
    items: list[BatchItem] = make_items("one", "two")

    await controller.run_batch(items)
    report: BatchReport = await controller.run_batch(items)

    assert manager.calls == ["one", "two"]
    assert report.skipped == 2
    assert report.outcomes == {}


@pytest.mark.asyncio
async def test_blank_items_are_skipped_without_calls() -> None:
    manager = FakeManager()
    controller = make_controller(manager)

    report: BatchReport = await controller.run_batch([BatchItem(key="k1", text="   "), BatchItem(key="k2", text="ok")])

    assert manager.calls == ["ok"]
    assert report.skipped == 1


@pytest.mark.asyncio
async def test_failed_items_are_retried_next_batch() -> None:
    manager = FakeManager({"two": TranslationErr(ErrorKind.NETWORK_FAILURE, "down", "fake")})
    controller = make_controller(manager)
    items: list[BatchItem] = make_items("one", "two")

    report: BatchReport = await controller.run_batch(items)
    assert report.translated == 1
    assert report.failed == 1
    assert items[1].key not in controller.processed_keys

    manager.outcomes.clear()
    await controller.run_batch(items)

    assert manager.calls == ["one", "two", "two"]
    assert controller.processed_keys == {item.key for item in items}


@pytest.mark.asyncio
async def test_rejected_input_is_marked_processed() -> None:
    manager = FakeManager({"----": TranslationErr(ErrorKind.INPUT_REJECTED, "no translatable content")})
    controller = make_controller(manager)
    items: list[BatchItem] = make_items("----")

    await controller.run_batch(items)

    assert items[0].key in controller.processed_keys


@pytest.mark.asyncio
async def test_unexpected_error_does_not_stop_batch() -> None:
    manager = FakeManager({"two": RuntimeError("bug")})
    controller = make_controller(manager)

    report: BatchReport = await controller.run_batch(make_items("one", "two", "three"))

    assert manager.calls == ["one", "two", "three"]
    assert report.translated == 2
    assert len(report.outcomes) == 2


@pytest.mark.asyncio
async def test_items_are_spaced_by_item_delay() -> None:
    manager = FakeManager()
    controller = make_controller(manager, item_delay_sec=0.05)
    started: float = time.monotonic()

    await controller.run_batch(make_items("one", "two", "three"))

    assert time.monotonic() - started >= 0.09


@pytest.mark.asyncio
async def test_trigger_debounces_into_a_single_batch() -> None:
    manager = FakeManager()
    items: list[BatchItem] = make_items("one", "two")
    controller = make_controller(manager, items_provider=lambda: items)

    assert controller.on_selection_changed() is True
    await asyncio.sleep(0.02)
    assert controller.on_visible_range_changed() is True
    assert controller.state is BatchState.DEBOUNCING
    await asyncio.sleep(0.03)
    assert manager.calls == []

    await asyncio.sleep(0.15)

    assert manager.calls == ["one", "two"]
    assert controller.state is BatchState.IDLE
    assert controller.last_report is not None
    assert controller.last_report.translated == 2


@pytest.mark.asyncio
async def test_trigger_is_dropped_while_batch_runs() -> None:
    manager = FakeManager(delay=0.1)
    controller = make_controller(manager)
    items: list[BatchItem] = make_items("one")

    running: asyncio.Task[BatchReport] = asyncio.create_task(controller.run_batch(items))
    await asyncio.sleep(0.01)

    assert controller.in_flight is True
    assert controller.state is BatchState.RUNNING
    assert controller.trigger() is False
    dropped: BatchReport = await controller.run_batch(items)
    assert dropped.dropped is True

    report: BatchReport = await running
    assert report.translated == 1
    assert manager.calls == ["one"]


@pytest.mark.asyncio
async def test_trigger_without_items_provider_returns_to_idle() -> None:
    controller = make_controller(FakeManager(), debounce_sec=0.01)

    controller.trigger()
    await asyncio.sleep(0.05)

    assert controller.state is BatchState.IDLE


@pytest.mark.asyncio
async def test_failing_items_provider_returns_to_idle() -> None:
    def broken_provider() -> list[BatchItem]:
        msg = "document closed"
        raise RuntimeError(msg)

    manager = FakeManager()
    controller = make_controller(manager, debounce_sec=0.01, items_provider=broken_provider)

    controller.trigger()
    await asyncio.sleep(0.05)

    assert controller.state is BatchState.IDLE
    assert controller.in_flight is False
    assert manager.calls == []

    controller.items_provider = lambda: make_items("one")
    controller.trigger()
    await asyncio.sleep(0.05)
    assert manager.calls == ["one"]


@pytest.mark.asyncio
async def test_cancel_abandons_remaining_items() -> None:
    manager = FakeManager()
    controller = make_controller(manager, item_delay_sec=0.05)
    controller.on_result = lambda item, outcome: controller.cancel("stale")

    report: BatchReport = await controller.run_batch(make_items("one", "two", "three"))

    assert manager.calls == ["one"]
    assert report.cancelled is True
    assert report.translated == 1


@pytest.mark.asyncio
async def test_close_cancels_running_batch() -> None:
    manager = FakeManager(delay=1.0)
    items: list[BatchItem] = make_items("one", "two")
    controller = make_controller(manager, debounce_sec=0.01, items_provider=lambda: items)

    controller.trigger()
    await asyncio.sleep(0.05)
    assert controller.in_flight is True

    await asyncio.wait_for(controller.close(), timeout=1.0)

    assert manager.calls == ["one"]
    assert controller.last_report is not None
    assert controller.last_report.cancelled is True
    assert controller.in_flight is False
    assert controller.processed_keys == frozenset()


@pytest.mark.asyncio
async def test_document_changes_invalidate_processed_items() -> None:
    manager = FakeManager()
    controller = make_controller(manager)
    main_items: list[BatchItem] = make_items("one", "two", document="main.go")
    util_items: list[BatchItem] = make_items("three", document="util.go")
    await controller.run_batch(main_items + util_items)

    assert controller.on_document_changed([main_items[0].key]) == 1
    assert controller.on_document_changed(document="util.go") == 1
    assert controller.processed_keys == {main_items[1].key}
    assert controller.on_document_changed() == 1
    assert controller.processed_keys == frozenset()


@pytest.mark.asyncio
async def test_invalidate_ignores_unknown_keys() -> None:
    controller = make_controller(FakeManager())

    assert controller.invalidate(["missing"]) == 0
