from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Any

from .config import get_settings

_RECORD_FIELDS = ("request_id", "path", "method", "status", "duration_ms", "event")
_MAX_LOG_BYTES = 1_000_000
_LOG_BACKUPS = 3


class JsonFormatter(logging.Formatter):
    """One JSON object per line, stamped with the record's own creation time.

    ``context`` is merged into every line (the CLI passes the app name and
    version); per-record fields from ``extra=`` override it.
    """

    def __init__(self, context: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self._context = dict(context or {})

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self._context,
        }

        for field in _RECORD_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            payload.update(extra_fields)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: int = logging.INFO) -> None:
    """Attach the rotating file and stderr handlers unless logging is already set up."""

    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    settings = get_settings()
    formatter = JsonFormatter({"app": "myebb", "version": settings.version})

    file_handler = RotatingFileHandler(
        settings.log_file,
        maxBytes=_MAX_LOG_BYTES,
        backupCount=_LOG_BACKUPS,
        encoding="utf-8",
    )
    # stdout is reserved for command output.
    console_handler = logging.StreamHandler(sys.stderr)

    root_logger.setLevel(level)
    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
