"""Log sinks: a console stream and a date-and-size rotating JSON file writer."""

import logging
import os
import re
import sys
from datetime import datetime, timedelta

from requestlog.config import Config
from requestlog.formatters import ConsoleFormatter, JsonFormatter
from requestlog.models import Level

DATE_FORMAT = "%Y-%m-%d"


class DailyRotatingFileHandler(logging.Handler):
    """Append-only writer for ``<prefix>-YYYY-MM-DD.log`` files.

    A new file starts when the calendar date changes, or when the current
    file has reached ``max_bytes`` (continuing as ``<prefix>-DATE.1.log``,
    ``.2.log``, ...). Files of this prefix dated more than
    ``retention_days`` ago are deleted on open and on every date change.

    I/O failures never escape ``emit``; they go to ``handleError``, which
    reports to stderr.
    """

    def __init__(
        self,
        log_dir: str,
        prefix: str,
        max_bytes: int,
        retention_days: int,
        level=logging.NOTSET,
        time_func=None,
    ):
        super().__init__(level)
        self._log_dir = log_dir
        self._prefix = prefix
        self._max_bytes = max_bytes
        self._retention_days = retention_days
        self._time_func = time_func or datetime.now
        self._pattern = re.compile(
            rf"^{re.escape(prefix)}-(\d{{4}}-\d{{2}}-\d{{2}})(?:\.(\d+))?\.log$"
        )
        self._stream = None
        self._current_date = self._today()
        self._index = 0
        try:
            os.makedirs(log_dir, exist_ok=True)
            self._index = self._latest_index(self._current_date)
            self.enforce_retention()
            self._open()
        except OSError:
            # retried on the first emit
            self._stream = None

    @property
    def current_path(self) -> str:
        return self._path_for(self._current_date, self._index)

    def _today(self) -> str:
        return self._time_func().strftime(DATE_FORMAT)

    def _path_for(self, date: str, index: int) -> str:
        suffix = f".{index}" if index else ""
        return os.path.join(self._log_dir, f"{self._prefix}-{date}{suffix}.log")

    def _latest_index(self, date: str) -> int:
        latest = 0
        for name in os.listdir(self._log_dir):
            match = self._pattern.match(name)
            if match and match.group(1) == date:
                latest = max(latest, int(match.group(2) or 0))
        return latest

    def _open(self):
        os.makedirs(self._log_dir, exist_ok=True)
        self._stream = open(self.current_path, "a", encoding="utf-8")

    def _close(self):
        if self._stream and not self._stream.closed:
            self._stream.close()
        self._stream = None

    def _should_rotate_size(self) -> bool:
        try:
            return os.path.getsize(self.current_path) >= self._max_bytes
        except OSError:
            return False

    def _roll_if_needed(self):
        today = self._today()
        if today != self._current_date:
            self._close()
            self._current_date = today
            self._index = self._latest_index(today)
            self.enforce_retention()
        elif self._stream is not None and self._should_rotate_size():
            self._close()
            self._index += 1

        if self._stream is None:
            self._open()

    def enforce_retention(self) -> list[str]:
        """Delete this prefix's files dated before the retention window. Returns deleted names."""
        cutoff = (self._time_func() - timedelta(days=self._retention_days)).strftime(DATE_FORMAT)
        deleted = []
        for name in sorted(os.listdir(self._log_dir)):
            match = self._pattern.match(name)
            # ISO dates compare correctly as strings
            if match and match.group(1) < cutoff:
                os.remove(os.path.join(self._log_dir, name))
                deleted.append(name)
        return deleted

    def emit(self, record: logging.LogRecord):
        try:
            msg = self.format(record)
            self._roll_if_needed()
            self._stream.write(msg + "\n")
            self._stream.flush()
        except Exception:
            self._close()
            self.handleError(record)

    def close(self):
        self.acquire()
        try:
            self._close()
        finally:
            self.release()
        super().close()


def build_handlers(config: Config, stream=None, time_func=None) -> list[logging.Handler]:
    """Console sink plus the combined and errors-only file series."""
    defaults = {"service": config.service_name, "environment": config.environment}

    console = logging.StreamHandler(stream or sys.stdout)
    console.setFormatter(ConsoleFormatter(color=config.console_color))

    combined = DailyRotatingFileHandler(
        config.log_dir,
        "combined",
        max_bytes=config.log_max_file_bytes,
        retention_days=config.log_retention_days,
        time_func=time_func,
    )
    combined.setFormatter(JsonFormatter(defaults))

    errors = DailyRotatingFileHandler(
        config.log_dir,
        "error",
        max_bytes=config.log_max_file_bytes,
        retention_days=config.log_retention_days,
        level=Level.ERROR.levelno,
        time_func=time_func,
    )
    errors.setFormatter(JsonFormatter(defaults))

    return [console, combined, errors]
