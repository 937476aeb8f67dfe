from __future__ import annotations

import pytest

from core.trans.languages import AUTO_LANGUAGE, base_language, canonical_language_code, detect_script_language


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        (None, AUTO_LANGUAGE),
        ("", AUTO_LANGUAGE),
        ("AUTO", AUTO_LANGUAGE),
        ("en", "en"),
        ("EN", "en"),
        ("en_us", "en-US"),
        ("pt-br", "pt-BR"),
        ("zh", "zh-CN"),
        ("zh-Hans", "zh-CN"),
        ("ZH_TW", "zh-TW"),
        ("zh-hk", "zh-TW"),
        (" ja ", "ja"),
    ],
)
def test_canonical_language_code(code: str | None, expected: str) -> None:
    assert canonical_language_code(code) == expected


@pytest.mark.parametrize(("code", "expected"), [("zh-CN", "zh"), ("en-US", "en"), ("ja", "ja"), (None, "auto")])
def test_base_language(code: str | None, expected: str) -> None:
    assert base_language(code) == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("hello world", "en"),
        ("你好", "zh-CN"),
        ("returns the 长度 of the slice", "zh-CN"),
        ("こんにちは", "en"),
        ("", "en"),
    ],
)
def test_detect_script_language(text: str, expected: str) -> None:
    assert detect_script_language(text) == expected
