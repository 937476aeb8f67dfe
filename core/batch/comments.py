"""Comment extraction from Go source text.

A line scanner in the spirit of an editor extension: ``//`` line comments and ``/* */`` block
comments are found without a full Go lexer. Comment markers inside string literals on the same
line are not recognised as comments.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from models.batch_models import BatchItem
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = ["extract_go_comments"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# Double-quoted strings with escapes, raw strings and rune literals.
STRING_LITERAL_PATTERN: Final[re.Pattern[str]] = re.compile(r'"(?:\\.|[^"\\])*"|`[^`]*`|\'(?:\\.|[^\'\\])*\'')
BLOCK_LINE_PREFIX_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\s*\*(?!/)\s?")


def _mask_literals(line: str) -> str:
    """Replace string literal contents with spaces so offsets stay valid."""
    return STRING_LITERAL_PATTERN.sub(lambda match: " " * len(match.group(0)), line)


def _clean_block(lines: list[str]) -> str:
    return "\n".join(BLOCK_LINE_PREFIX_PATTERN.sub("", line).rstrip() for line in lines).strip()


def extract_go_comments(
    source: str,
    document: str,
    *,
    start_line: int = 0,
    end_line: int | None = None,
    **item_kwargs,
) -> list[BatchItem]:
    """Collect the comments of a Go source as batch items.

    Items are keyed by document, the line and column where the comment starts, and its text, so
    re-extracting unchanged source yields the same keys.

    Args:
        source (str): Source text.
        document (str): Document identifier used in item keys, e.g. a file path.
        start_line (int): First line to scan, 0-based.
        end_line (int | None): Last line to scan, inclusive. None scans to the end.
        **item_kwargs: Passed to every ``BatchItem`` (source_lang, target_lang, engine).

    Returns:
        list[BatchItem]: One item per non-empty comment, in source order.
    """
    lines: list[str] = source.splitlines()
    last: int = len(lines) - 1 if end_line is None else min(end_line, len(lines) - 1)
    items: list[BatchItem] = []

    block_start: tuple[int, int] | None = None
    block_lines: list[str] = []

    for index in range(max(start_line, 0), last + 1):
        line: str = lines[index]
        column_offset: int = 0

        if block_start is not None:
            close: int = line.find("*/")
            if close < 0:
                block_lines.append(line)
                continue
            block_lines.append(line[:close])
            text: str = _clean_block(block_lines)
            if text:
                items.append(BatchItem.from_location(document, block_start[0], block_start[1], text, **item_kwargs))
            block_start, block_lines = None, []
            column_offset = close + 2

        # A line may hold several block comments or a block comment followed by a line comment.
        while True:
            masked: str = _mask_literals(line)
            line_pos: int = masked.find("//", column_offset)
            block_pos: int = masked.find("/*", column_offset)

            if line_pos >= 0 and (block_pos < 0 or line_pos < block_pos):
                text = line[line_pos + 2 :].strip()
                if text:
                    items.append(BatchItem.from_location(document, index, line_pos, text, **item_kwargs))
                break

            if block_pos < 0:
                break

            close = line.find("*/", block_pos + 2)
            if close < 0:
                block_start = (index, block_pos)
                block_lines = [line[block_pos + 2 :]]
                break
            text = _clean_block([line[block_pos + 2 : close]])
            if text:
                items.append(BatchItem.from_location(document, index, block_pos, text, **item_kwargs))
            column_offset = close + 2

    if block_start is not None:
        logger.debug("Unterminated block comment at %s:%d", document, block_start[0])

    logger.debug("Extracted %d comments from '%s'", len(items), document)
    return items
