from __future__ import annotations

import pytest

from models.batch_models import KEY_TEXT_LIMIT, BatchItem, BatchReport
from models.cache_models import CacheStatistics, TranslationCacheEntry
from models.translation_models import PLACEHOLDERS, ErrorKind, TranslationErr, TranslationOk


def test_ok_render_without_marker() -> None:
    assert TranslationOk("你好", "deepl", "en", "zh-CN").render() == "你好"


def test_ok_render_with_marker() -> None:
    assert TranslationOk("你好", "deepl", "en", "zh-CN", marker="Ⓓ").render() == "Ⓓ 你好"


def test_missing_credentials_renders_detail() -> None:
    err = TranslationErr(ErrorKind.MISSING_CREDENTIALS, "DeepL API credentials required", "deepl")

    assert err.render() == "DeepL API credentials required"
    assert err.is_ok is False


@pytest.mark.parametrize("kind", [kind for kind in ErrorKind if kind is not ErrorKind.MISSING_CREDENTIALS])
def test_every_error_kind_has_placeholder(kind: ErrorKind) -> None:
    assert TranslationErr(kind, "detail").render() == PLACEHOLDERS[kind]


def test_rejected_input_renders_empty() -> None:
    assert TranslationErr(ErrorKind.INPUT_REJECTED).render() == ""


def test_batch_item_key_embeds_location_and_text_prefix() -> None:
    long_text: str = "x" * (KEY_TEXT_LIMIT + 20)

    item: BatchItem = BatchItem.from_location("main.go", 3, 4, long_text, target_lang="ja")

    assert item.key == f"main.go:3:4:{'x' * KEY_TEXT_LIMIT}"
    assert item.text == long_text
    assert item.target_lang == "ja"


def test_batch_report_counts_outcomes() -> None:
    report = BatchReport(
        outcomes={
            "a": TranslationOk("A", "fake", None, "ja"),
            "b": TranslationErr(ErrorKind.NETWORK_FAILURE),
            "c": TranslationOk("C", "fake", None, "ja"),
        }
    )

    assert report.translated == 2
    assert report.failed == 1


def test_cache_entry_expires_at_ttl() -> None:
    entry = TranslationCacheEntry(key="k", value="v", created_at=100.0)

    assert entry.is_expired(159.9, 60.0) is False
    assert entry.is_expired(160.0, 60.0) is True


def test_cache_statistics_hit_ratio() -> None:
    assert CacheStatistics().hit_ratio == 0.0
    assert CacheStatistics(hits=3, misses=1).hit_ratio == 0.75
