from __future__ import annotations

import hashlib
import re
import unicodedata
from typing import Final

__all__: list[str] = ["StringUtils"]

EXCESS_BLANK_LINES_PATTERN: Final[re.Pattern[str]] = re.compile(r"\n{3,}")
LOG_PREVIEW_LENGTH: Final[int] = 20


class StringUtils:
    """Static helpers for text normalization and fingerprinting.

    The orchestrator relies on these functions being pure: the same input always produces the same
    normalized text and therefore the same cache fingerprint.
    """

    @staticmethod
    def ensure_str(value: str | None) -> str:
        """Return ``value`` as a string, mapping None to an empty string.

        Whitespace is preserved on purpose; callers decide what to strip.
        """
        if not isinstance(value, str):
            value = str(value) if value is not None else ""
        return value

    @staticmethod
    def compress_blanks(value: str) -> str:
        """Collapse runs of whitespace into single spaces and strip both ends."""
        value = StringUtils.ensure_str(value)
        return " ".join(value.split())

    @staticmethod
    def normalize_text(text: str) -> str:
        """Apply Unicode NFC normalization."""
        return unicodedata.normalize("NFC", text)

    @staticmethod
    def normalize_multiline(text: str | None) -> str:
        """Prepare free text for translation.

        Strips the whole text, strips every line, and then reduces three or more consecutive line
        breaks to two so that at most one empty line separates paragraphs.

        Args:
            text (str | None): Raw text as received from the caller.

        Returns:
            str: The normalized text. Empty when the input held only whitespace.
        """
        value: str = StringUtils.ensure_str(text).replace("\r\n", "\n").replace("\r", "\n").strip()
        value = "\n".join(line.strip() for line in value.split("\n"))
        return EXCESS_BLANK_LINES_PATTERN.sub("\n\n", value)

    @staticmethod
    def is_degenerate(text: str) -> bool:
        """Check whether the text has nothing worth translating.

        Text is degenerate when every character is whitespace, punctuation or a symbol
        (Unicode categories Z*, P*, S* and control characters).

        Args:
            text (str): Text to inspect, usually already normalized.

        Returns:
            bool: True if no letter or digit is present.
        """
        return not any(unicodedata.category(char)[0] in ("L", "N", "M") for char in text)

    @staticmethod
    def generate_fingerprint(
        normalized_text: str,
        target_lang: str,
        source_lang: str | None,
        engine: str,
    ) -> str:
        """Generate a SHA-256 cache fingerprint for a translation request.

        Args:
            normalized_text (str): Text after ``normalize_multiline``.
            target_lang (str): Target language code.
            source_lang (str | None): Source language code. None stands for auto-detection.
            engine (str): Resolved provider id.

        Returns:
            str: Hex digest identifying the request.
        """
        key_data: str = (
            f"{StringUtils.normalize_text(normalized_text)}|{target_lang}|{source_lang or 'auto'}|{engine}"
        )
        return hashlib.sha256(key_data.encode("utf-8")).hexdigest()

    @staticmethod
    def preview(text: str, limit: int = LOG_PREVIEW_LENGTH) -> str:
        """Shorten text for log output."""
        flat: str = text.replace("\n", "\\n")
        if len(flat) > limit:
            return f"{flat[:limit]}..."
        return flat
