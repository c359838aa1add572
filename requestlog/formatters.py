"""Console and JSON renderers for log records."""

import json
import logging
from datetime import datetime, timezone

from requestlog.models import Level

# ANSI color codes
COLORS = {
    Level.ERROR: "\033[31m",    # red
    Level.WARN: "\033[33m",     # yellow
    Level.INFO: "\033[32m",     # green
    Level.DEBUG: "\033[34m",    # blue
    Level.VERBOSE: "\033[36m",  # cyan
}
RESET = "\033[0m"


def record_context(record: logging.LogRecord) -> dict:
    return getattr(record, "context", None) or {}


def iso_timestamp(created: float) -> str:
    ts = datetime.fromtimestamp(created, timezone.utc)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ConsoleFormatter(logging.Formatter):
    """``YYYY-MM-DD HH:MM:SS [level]: message`` followed by indented context."""

    def __init__(self, color: bool = True):
        super().__init__()
        self._color = color

    def format(self, record: logging.LogRecord) -> str:
        level = Level.from_levelno(record.levelno)
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        label = level.value
        if self._color:
            label = f"{COLORS[level]}{label}{RESET}"

        line = f"{timestamp} [{label}]: {record.getMessage()}"
        context = record_context(record)
        if context:
            line += "\n" + json.dumps(context, indent=2, default=str)
        return line


class JsonFormatter(logging.Formatter):
    """One self-contained JSON object per record.

    ``defaults`` (service identity, environment) are merged before the
    record's context, so the context wins on a clash. A context ``message``
    is kept under ``detail``; the top-level fields always describe the record.
    """

    RESERVED = ("timestamp", "level", "message")

    def __init__(self, defaults: dict | None = None):
        super().__init__()
        self._defaults = dict(defaults or {})

    def format(self, record: logging.LogRecord) -> str:
        data = dict(self._defaults)
        context = record_context(record)
        for key, value in context.items():
            if key not in self.RESERVED:
                data[key] = value
        if "message" in context:
            data["detail"] = context["message"]

        head = {
            "timestamp": iso_timestamp(record.created),
            "level": Level.from_levelno(record.levelno).value,
            "message": record.getMessage(),
        }
        return json.dumps({**head, **data}, default=str)
