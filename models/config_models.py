"""Configuration data models for the translation engine.

Each dataclass maps one section of the INI file. Field names are the INI keys and the default
values double as type hints for the loader, which converts every string from the file to the type
of the default.
"""

from __future__ import annotations

from dataclasses import dataclass, field

__all__: list[str] = [
    "Batch",
    "Cache",
    "Config",
    "Credentials",
    "Dispatch",
    "General",
    "Translation",
]


@dataclass
class General:
    DEBUG: bool = False
    LOG_FILE: str = ""
    SCRIPT_NAME: str = ""


@dataclass
class Translation:
    ENGINE: str = "auto"
    SOURCE_LANGUAGE: str = "en"
    TARGET_LANGUAGE: str = "zh-CN"
    AUTO_DETECT_LANGUAGE: bool = True
    TIMEOUT: float = 10.0
    RETRY_BACKOFF: float = 2.0
    SHOW_ENGINE_MARKER: bool = False
    SINGLE_FLIGHT: bool = False
    ENGINE_WEIGHTS: dict[str, int] = field(
        default_factory=lambda: {"microsoft": 20, "google": 30, "deepl": 30, "tencent": 20}
    )
    GOOGLE_SUFFIX: str = "com"


@dataclass
class Dispatch:
    REQUESTS_PER_SECOND: float = 5.0
    MAX_CONCURRENT: int = 3


@dataclass
class Cache:
    TTL_DAYS: float = 30.0
    MAX_ENTRIES: int = 1000
    CLEANUP_INTERVAL: int = 10


@dataclass
class Batch:
    DEBOUNCE_SEC: float = 5.0
    ITEM_DELAY_SEC: float = 0.3


@dataclass
class Credentials:
    """Provider credentials. Empty values fall back to the environment variable of the same name."""

    MICROSOFT_API_KEY: str = ""
    MICROSOFT_REGION: str = "global"
    GOOGLE_API_KEY: str = ""
    DEEPL_AUTH_KEY: str = ""
    TENCENT_SECRET_ID: str = ""
    TENCENT_SECRET_KEY: str = ""
    TENCENT_REGION: str = "ap-guangzhou"


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    TRANSLATION: Translation = field(default_factory=Translation)
    DISPATCH: Dispatch = field(default_factory=Dispatch)
    CACHE: Cache = field(default_factory=Cache)
    BATCH: Batch = field(default_factory=Batch)
    CREDENTIALS: Credentials = field(default_factory=Credentials)
