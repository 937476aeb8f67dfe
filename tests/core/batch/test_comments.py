from __future__ import annotations

import pytest

from core.batch.comments import extract_go_comments
from models.batch_models import BatchItem

GO_SOURCE: str = "\n".join(
    [
        "package main",
        "",
        "// Add returns the sum.",
        "func Add(a, b int) int {",
        '\ts := "http://example.com // not a comment /* nor this */"',
        "\treturn a + b /* inline */ // trailing",
        "}",
        "",
        "/*",
        " * Block comment",
        " * spanning lines.",
        " */",
        "var x = 1 /* one */ /* two */",
        "var r = '/' // rune",
        "//",
    ]
)


def texts(items: list[BatchItem]) -> list[str]:
    return [item.text for item in items]


def test_extracts_line_and_block_comments_in_order() -> None:
    items: list[BatchItem] = extract_go_comments(GO_SOURCE, "main.go")

    assert texts(items) == [
        "Add returns the sum.",
        "inline",
        "trailing",
        "Block comment\nspanning lines.",
        "one",
        "two",
        "rune",
    ]


def test_keys_encode_document_and_position() -> None:
    items: list[BatchItem] = extract_go_comments(GO_SOURCE, "main.go")

    assert [item.key for item in items[:3]] == [
        "main.go:2:0:Add returns the sum.",
        "main.go:5:14:inline",
        "main.go:5:27:trailing",
    ]
    assert items[3].key.startswith("main.go:8:0:")
    assert items[4].key == "main.go:12:10:one"
    assert items[5].key == "main.go:12:20:two"


def test_keys_are_stable_across_extractions() -> None:
    first: list[BatchItem] = extract_go_comments(GO_SOURCE, "main.go")
    second: list[BatchItem] = extract_go_comments(GO_SOURCE, "main.go")

    assert [item.key for item in first] == [item.key for item in second]


def test_range_limits_scanned_lines() -> None:
    items: list[BatchItem] = extract_go_comments(GO_SOURCE, "main.go", start_line=8, end_line=12)

    assert texts(items) == ["Block comment\nspanning lines.", "one", "two"]


def test_item_options_are_forwarded() -> None:
    items: list[BatchItem] = extract_go_comments("// hello", "a.go", target_lang="ja", engine="deepl")

    assert items[0].target_lang == "ja"
    assert items[0].engine == "deepl"
    assert items[0].source_lang is None


@pytest.mark.parametrize("source", ["", "package main", "/* never closed\nstill open", "//\n/* */"])
def test_sources_without_usable_comments(source: str) -> None:
    assert extract_go_comments(source, "x.go") == []


def test_block_comment_followed_by_code_on_closing_line() -> None:
    source: str = "/* first\n   second */ x := 1 // third"

    items: list[BatchItem] = extract_go_comments(source, "x.go")

    assert texts(items) == ["first\n   second", "third"]
