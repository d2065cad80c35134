from __future__ import annotations

import logging
import warnings
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING

import pytest

from utils.logger_utils import DEFAULT_NAMESPACE, LoggerUtils

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def fresh_logger(monkeypatch: pytest.MonkeyPatch) -> Iterator[logging.Logger]:
    """Let LoggerUtils configure the namespace logger again and undo it afterwards."""
    root = logging.getLogger(DEFAULT_NAMESPACE)
    handlers = list(root.handlers)
    level = root.level
    monkeypatch.setattr(LoggerUtils, "_configured", False)
    monkeypatch.setattr(LoggerUtils, "_instance", None)
    monkeypatch.setattr(warnings, "showwarning", warnings.showwarning)
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def test_get_logger_uses_namespace() -> None:
    assert LoggerUtils.get_logger("core.tts.session").name == f"{DEFAULT_NAMESPACE}.core.tts.session"
    assert LoggerUtils.get_logger().name == DEFAULT_NAMESPACE


def test_configures_once(fresh_logger: logging.Logger, tmp_path: Path) -> None:
    first = LoggerUtils(tmp_path / "speechqueue.log", quiet_console=True)
    count = len(fresh_logger.handlers)

    second = LoggerUtils(tmp_path / "other.log")

    assert first is second
    assert len(fresh_logger.handlers) == count
    assert any(isinstance(handler, RotatingFileHandler) for handler in fresh_logger.handlers)


def test_set_level_falls_back_to_info(fresh_logger: logging.Logger, caplog: pytest.LogCaptureFixture) -> None:
    utils = LoggerUtils(quiet_console=True)

    utils.set_level("debug")
    assert fresh_logger.level == logging.DEBUG

    utils.set_level("LOUD")
    assert fresh_logger.level == logging.INFO
    assert "Unknown logging level 'LOUD'" in caplog.text


def test_warnings_are_logged(fresh_logger: logging.Logger, caplog: pytest.LogCaptureFixture) -> None:
    LoggerUtils(quiet_console=True)

    warnings.showwarning("old API", DeprecationWarning, "module.py", 7)

    assert "module.py:7: DeprecationWarning: old API" in caplog.text
