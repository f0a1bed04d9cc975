"""Structured JSON logging.

Modules log through ``logging.getLogger(__name__)``; configure_logging
installs a formatter that writes one JSON object per line. Extra fields
go in ``extra={"properties": {...}}``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO

_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARNING",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "FATAL",
}


class JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "level": _LEVEL_NAMES.get(record.levelno, record.levelname),
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "message": record.getMessage(),
            "logger": record.name,
        }

        properties = getattr(record, "properties", None)
        if properties:
            entry["properties"] = {key: str(value) for key, value in properties.items()}

        if record.exc_info:
            entry["trace"] = self.formatException(record.exc_info)

        return json.dumps(entry)


class JsonHandler(logging.StreamHandler):
    """Stream handler that writes JsonFormatter lines."""

    def __init__(self, stream: IO[str] | None = None):
        super().__init__(stream or sys.stdout)
        self.setFormatter(JsonFormatter())


def configure_logging(level: str | int = "INFO", stream: IO[str] | None = None) -> JsonHandler:
    """Route all logging through a JSON handler on stream.

    Replaces handlers previously installed by this function so repeated
    calls do not duplicate output.

    Args:
        level: Minimum level name or number.
        stream: Output stream. Defaults to stdout.

    Returns:
        The installed handler.
    """
    handler = JsonHandler(stream)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing, JsonHandler):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level if isinstance(level, int) else level.upper())
    return handler
