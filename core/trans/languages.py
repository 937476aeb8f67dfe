"""Language code helpers shared by the orchestrator and the providers."""

from __future__ import annotations

import re
from typing import Final

__all__: list[str] = [
    "AUTO_LANGUAGE",
    "LANGUAGES",
    "base_language",
    "canonical_language_code",
    "detect_script_language",
]

AUTO_LANGUAGE: Final[str] = "auto"

# Codes accepted by the keyless Google web endpoint.
LANGUAGES: Final[dict[str, str]] = {
    "af": "afrikaans",
    "ar": "arabic",
    "bg": "bulgarian",
    "bn": "bengali",
    "cs": "czech",
    "da": "danish",
    "de": "german",
    "el": "greek",
    "en": "english",
    "es": "spanish",
    "et": "estonian",
    "fa": "persian",
    "fi": "finnish",
    "fr": "french",
    "he": "hebrew",
    "hi": "hindi",
    "hr": "croatian",
    "hu": "hungarian",
    "id": "indonesian",
    "it": "italian",
    "ja": "japanese",
    "ko": "korean",
    "lt": "lithuanian",
    "lv": "latvian",
    "ms": "malay",
    "nl": "dutch",
    "no": "norwegian",
    "pl": "polish",
    "pt": "portuguese",
    "ro": "romanian",
    "ru": "russian",
    "sk": "slovak",
    "sl": "slovenian",
    "sr": "serbian",
    "sv": "swedish",
    "th": "thai",
    "tl": "filipino",
    "tr": "turkish",
    "uk": "ukrainian",
    "ur": "urdu",
    "vi": "vietnamese",
    "zh-CN": "chinese (simplified)",
    "zh-TW": "chinese (traditional)",
}

CHINESE_PATTERN: Final[re.Pattern[str]] = re.compile(r"[\u4e00-\u9fa5]")

_REGION_ALIASES: Final[dict[str, str]] = {
    "zh": "zh-CN",
    "zh-hans": "zh-CN",
    "zh-cn": "zh-CN",
    "zh-sg": "zh-CN",
    "zh-hant": "zh-TW",
    "zh-tw": "zh-TW",
    "zh-hk": "zh-TW",
}


def canonical_language_code(code: str | None) -> str:
    """Bring a language code into the ``xx`` / ``xx-YY`` form used throughout the package.

    Chinese variants are folded into ``zh-CN`` and ``zh-TW``; None and empty map to ``"auto"``.

    Args:
        code (str | None): Language code in any case, with ``-`` or ``_`` as separator.

    Returns:
        str: The canonical code.
    """
    if not code:
        return AUTO_LANGUAGE
    lowered: str = code.strip().replace("_", "-").lower()
    if lowered == AUTO_LANGUAGE:
        return AUTO_LANGUAGE
    if lowered in _REGION_ALIASES:
        return _REGION_ALIASES[lowered]
    lang, _, region = lowered.partition("-")
    return f"{lang}-{region.upper()}" if region else lang


def base_language(code: str | None) -> str:
    """Return the primary subtag, e.g. ``zh`` for ``zh-CN``."""
    return canonical_language_code(code).split("-", 1)[0]


def detect_script_language(text: str) -> str:
    """Guess the language of a comment from its script.

    Only distinguishes Chinese from everything else, which is treated as English.
    """
    return "zh-CN" if CHINESE_PATTERN.search(text) else "en"
