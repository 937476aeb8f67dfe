"""Debounced batch translation of editor content."""

from core.batch.comments import extract_go_comments
from core.batch.controller import BatchController

__all__: list[str] = ["BatchController", "extract_go_comments"]
