from __future__ import annotations

import logging
import warnings
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING

import pytest

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

NAMESPACE: str = "GoppTranslateTest"


@pytest.fixture(autouse=True)
def fresh_logger_utils(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setattr(LoggerUtils, "_instance", None)
    monkeypatch.setattr(LoggerUtils, "_configured", False)
    monkeypatch.setattr(LoggerUtils, "_LOGGER_NAMESPACE", NAMESPACE)
    monkeypatch.setattr(warnings, "showwarning", warnings.showwarning)
    yield
    root: logging.Logger = logging.getLogger(NAMESPACE)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


def test_get_logger_uses_namespace() -> None:
    assert LoggerUtils.get_logger("core.trans.manager").name == f"{NAMESPACE}.core.trans.manager"
    assert LoggerUtils.get_logger().name == NAMESPACE


def test_logger_utils_is_singleton() -> None:
    assert LoggerUtils() is LoggerUtils("ignored.log")


def test_console_only_without_file() -> None:
    LoggerUtils()

    handler_types: list[type] = [type(handler) for handler in logging.getLogger(NAMESPACE).handlers]
    assert handler_types == [logging.StreamHandler]


def test_null_console_handler() -> None:
    LoggerUtils(use_null_console=True)

    handler_types: list[type] = [type(handler) for handler in logging.getLogger(NAMESPACE).handlers]
    assert handler_types == [logging.NullHandler]


def test_file_logging_records_messages(tmp_path: Path) -> None:
    log_file: Path = tmp_path / "gopp.log"
    LoggerUtils(log_file, use_null_console=True)

    LoggerUtils.get_logger("tests").info("translated %d items", 3)
    for handler in logging.getLogger(NAMESPACE).handlers:
        handler.flush()

    assert any(isinstance(handler, RotatingFileHandler) for handler in logging.getLogger(NAMESPACE).handlers)
    assert "translated 3 items" in log_file.read_text(encoding="utf-8")


def test_warnings_are_routed_to_log(tmp_path: Path) -> None:
    log_file: Path = tmp_path / "gopp.log"
    logger_utils = LoggerUtils(log_file, use_null_console=True)

    assert warnings.showwarning == logger_utils.warning_to_log
    logger_utils.warning_to_log("deprecated option", UserWarning, "loader.py", 12)
    for handler in logging.getLogger(NAMESPACE).handlers:
        handler.flush()

    assert "loader.py:12: UserWarning: deprecated option" in log_file.read_text(encoding="utf-8")


def test_set_level_and_fallback() -> None:
    logger_utils = LoggerUtils(use_null_console=True)

    logger_utils.set_level("DEBUG")
    assert logger_utils.get_level().name == "DEBUG"

    logger_utils.set_level("LOUD")  # type: ignore[arg-type]
    assert logger_utils.get_level().value == logging.INFO


def test_initialize_after_configuration_is_rejected() -> None:
    LoggerUtils(use_null_console=True)

    with pytest.raises(RuntimeError):
        LoggerUtils.initialize("Other")


def test_set_console_level_lowers_console_and_keeps_file_handler(tmp_path: Path) -> None:
    logger_utils = LoggerUtils(tmp_path / "gopp.log")
    root: logging.Logger = logging.getLogger(NAMESPACE)

    logger_utils.set_console_level("DEBUG")

    console: logging.Handler = next(handler for handler in root.handlers if type(handler) is logging.StreamHandler)
    file_handler: logging.Handler = next(handler for handler in root.handlers if isinstance(handler, RotatingFileHandler))
    assert console.level == logging.DEBUG
    assert console.formatter is not None
    assert console.formatter._fmt == "%(levelname)-8s %(name)s: %(message)s"  # noqa: SLF001
    assert file_handler.level == logging.DEBUG


def test_set_console_level_unknown_name_restores_warning() -> None:
    logger_utils = LoggerUtils()
    logger_utils.set_console_level("DEBUG")

    logger_utils.set_console_level("LOUD")  # type: ignore[arg-type]

    console: logging.Handler = logging.getLogger(NAMESPACE).handlers[0]
    assert console.level == logging.WARNING
    assert console.formatter is not None
    assert console.formatter._fmt == "%(message)s"  # noqa: SLF001
