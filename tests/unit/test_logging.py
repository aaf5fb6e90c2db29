from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from myebb.app.core.logging import JsonFormatter, configure_logging


def test_configure_logging_creates_handlers(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    log_file = tmp_path / "client.log"
    monkeypatch.setenv("LOG_FILE", str(log_file))
    monkeypatch.chdir(tmp_path)

    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    original_level = root_logger.level
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    try:
        configure_logging(logging.WARNING)
        handlers = [
            handler
            for handler in root_logger.handlers
            if isinstance(handler, RotatingFileHandler)
        ]
        assert handlers
        assert Path(handlers[0].baseFilename) == log_file
        assert root_logger.level == logging.WARNING

        handler_count = len(root_logger.handlers)
        configure_logging()
        assert len(root_logger.handlers) == handler_count
    finally:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            root_logger.addHandler(handler)
        root_logger.setLevel(original_level)


def test_json_formatter_outputs_keys() -> None:
    formatter = JsonFormatter()
    record = logging.LogRecord(
        name="myebb.request",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg="request complete",
        args=(),
        exc_info=None,
    )
    record.request_id = "req-1"
    record.status = 200
    record.extra_fields = {"authenticated": True}

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "request complete"
    assert payload["request_id"] == "req-1"
    assert payload["status"] == 200
    assert payload["authenticated"] is True
    assert payload["level"] == "INFO"


def test_json_formatter_merges_context_and_record_time() -> None:
    formatter = JsonFormatter({"app": "myebb", "version": "0.1.0"})
    record = logging.LogRecord(
        name="myebb.app.services.session",
        level=logging.INFO,
        pathname=__file__,
        lineno=7,
        msg="session %s",
        args=("login",),
        exc_info=None,
    )
    record.created = 1_792_310_400.0
    record.event = "login"

    payload = json.loads(formatter.format(record))

    assert payload["app"] == "myebb"
    assert payload["version"] == "0.1.0"
    assert payload["message"] == "session login"
    assert payload["event"] == "login"
    assert payload["ts"].startswith("2026-10-18T")
