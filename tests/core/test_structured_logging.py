"""Tests for JSON log output.

The log pipeline filters on request_id, path and status_code, so those
must arrive as top-level JSON keys rather than inside the message.
"""

from __future__ import annotations

import json
import logging
import sys

from lms.core.logging import _ContainerFormatter, _JsonFormatter


def _record(level: int = logging.INFO, msg: str = "message", args: tuple = ()) -> logging.LogRecord:
    return logging.LogRecord(
        name="lms.services.progress_service",
        level=level,
        pathname="progress_service.py",
        lineno=42,
        msg=msg,
        args=args,
        exc_info=None,
    )


def test_json_formatter_produces_valid_json() -> None:
    output = _JsonFormatter().format(_record(msg="Quiz attempt %s", args=("recorded",)))
    parsed = json.loads(output)
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "lms.services.progress_service"
    assert parsed["message"] == "Quiz attempt recorded"
    assert "timestamp" in parsed


def test_json_formatter_includes_request_context_fields() -> None:
    record = _record()
    record.request_id = "abc-123"  # type: ignore[attr-defined]
    record.method = "PUT"  # type: ignore[attr-defined]
    record.path = "/v1/courses/x/video-progress"  # type: ignore[attr-defined]
    record.status_code = 200  # type: ignore[attr-defined]
    record.duration_ms = 12.5  # type: ignore[attr-defined]

    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["request_id"] == "abc-123"
    assert parsed["method"] == "PUT"
    assert parsed["path"] == "/v1/courses/x/video-progress"
    assert parsed["status_code"] == 200
    assert parsed["duration_ms"] == 12.5


def test_json_formatter_omits_placeholder_request_id() -> None:
    """Records logged outside a request carry request_id '-'; it is dropped."""
    record = _record()
    record.request_id = "-"  # type: ignore[attr-defined]
    parsed = json.loads(_JsonFormatter().format(record))
    assert "request_id" not in parsed


def test_json_formatter_includes_exception_info() -> None:
    try:
        raise ValueError("test error")
    except ValueError:
        record = _record(level=logging.ERROR, msg="Something failed")
        record.exc_info = sys.exc_info()

    parsed = json.loads(_JsonFormatter().format(record))
    assert "ValueError: test error" in parsed["exception"]


def test_container_formatter_is_plain_text() -> None:
    output = _ContainerFormatter().format(_record(msg="server started"))
    assert "INFO" in output
    assert "lms.services.progress_service" in output
    assert "server started" in output
    assert not output.lstrip().startswith("{")
