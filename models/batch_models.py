"""Models for batch translation runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final, Self

if TYPE_CHECKING:
    from models.translation_models import TranslationOutcome

__all__: list[str] = ["BatchItem", "BatchReport", "BatchState"]

KEY_TEXT_LIMIT: Final[int] = 100


class BatchState(StrEnum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    RUNNING = "running"


@dataclass(frozen=True)
class BatchItem:
    """One piece of text to translate in a batch.

    Attributes:
        key (str): Idempotency key. Items whose key was already processed are skipped.
        text (str): Text to translate.
        source_lang (str | None): Source language, None to let the orchestrator decide.
        target_lang (str | None): Target language, None to let the orchestrator decide.
        engine (str | None): Provider hint, None for the configured engine.
    """

    key: str
    text: str
    source_lang: str | None = None
    target_lang: str | None = None
    engine: str | None = None

    @classmethod
    def from_location(cls, document: str, line: int, column: int, text: str, **kwargs) -> Self:
        """Build an item keyed by its position in a document.

        The key embeds the first characters of the text so an edited comment at the same position
        is treated as new work.
        """
        key: str = f"{document}:{line}:{column}:{text[:KEY_TEXT_LIMIT]}"
        return cls(key=key, text=text, **kwargs)


@dataclass
class BatchReport:
    """Summary of one batch run.

    Attributes:
        outcomes (dict[str, TranslationOutcome]): Outcome per processed item key.
        skipped (int): Items filtered out because they were already processed or empty.
        cancelled (bool): True if the run was abandoned through its cancellation token.
        dropped (bool): True if the run never started because another batch was in flight.
    """

    outcomes: dict[str, TranslationOutcome] = field(default_factory=dict)
    skipped: int = 0
    cancelled: bool = False
    dropped: bool = False

    @property
    def translated(self) -> int:
        return sum(1 for outcome in self.outcomes.values() if outcome.is_ok)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes.values() if not outcome.is_ok)
