"""Utility modules for the translation engine.

This package provides logging setup, text normalization and cooperative cancellation.
"""

from utils.cancellation import CancellationToken, OperationCancelledError
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

__all__: list[str] = ["CancellationToken", "LoggerUtils", "OperationCancelledError", "StringUtils"]
