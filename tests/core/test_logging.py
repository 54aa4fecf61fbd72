from __future__ import annotations

import logging

import pytest

from lms.core.logging import _ContainerFormatter, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    root.setLevel(level)
    root.handlers[:] = handlers


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_installs_single_handler() -> None:
    setup_logging("info")
    setup_logging("info")
    assert len(logging.getLogger().handlers) == 1


def test_setup_logging_quiets_noisy_loggers_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_setup_logging_allows_uvicorn_at_error() -> None:
    setup_logging("error")
    assert logging.getLogger("uvicorn").level == logging.ERROR


def _format(level: int, lineno: int) -> str:
    record = logging.LogRecord(
        name="test",
        level=level,
        pathname="catalog_service.py",
        lineno=lineno,
        msg="hello",
        args=(),
        exc_info=None,
    )
    return _ContainerFormatter().format(record)


def test_formatter_excludes_location_for_info() -> None:
    output = _format(logging.INFO, 1)
    assert "hello" in output
    assert "[catalog_service.py:" not in output


def test_formatter_includes_location_for_warning() -> None:
    assert "[catalog_service.py:42]" in _format(logging.WARNING, 42)


def test_formatter_includes_milliseconds() -> None:
    # 2026-01-01T12:00:00.123+0000
    stamp = _format(logging.INFO, 1).split(" ", 1)[0]
    assert "." in stamp
    assert len(stamp.split(".")[1]) == len("123+0000")
