"""Structured logger: the single entry point for every log record the service emits."""

import logging
import sys

from requestlog.config import Config
from requestlog.error_context import extract_error_info
from requestlog.handlers import build_handlers
from requestlog.models import Level
from requestlog.sanitize import sanitize


class StructuredLogger:
    """Leveled logger writing to every configured sink at once.

    Records below ``config.min_level`` are dropped. Context mappings are
    redacted before they reach any sink. ``log`` never raises: logging is
    best-effort and must not break the request that triggered it.

    Example:
        logger = StructuredLogger(config)
        logger.info("Request completed", {"category": "API", "durationMs": 12})
    """

    def __init__(self, config: Config, handlers: list[logging.Handler] | None = None):
        self.config = config
        self.min_level = Level.parse(config.min_level)
        # Not registered with logging.getLogger: instances never share sinks or levels.
        self._logger = logging.Logger(config.service_name, self.min_level.levelno)
        self._logger.propagate = False

        for handler in handlers if handlers is not None else build_handlers(config):
            self._logger.addHandler(handler)

    @property
    def handlers(self) -> list[logging.Handler]:
        return list(self._logger.handlers)

    def is_enabled_for(self, level: Level | str) -> bool:
        level = level if isinstance(level, Level) else Level.parse(level)
        return level.levelno >= self.min_level.levelno

    def log(self, level: Level | str, message: str, context: dict | None = None) -> None:
        try:
            level = level if isinstance(level, Level) else Level.parse(level)
            self._logger.log(
                level.levelno, message, extra={"context": sanitize(context or {})}
            )
        except Exception as exc:
            sys.stderr.write(f"requestlog: failed to log {message!r}: {exc}\n")

    def error(self, message: str, error=None, context: dict | None = None) -> None:
        context = dict(context or {})
        if error is not None:
            if isinstance(error, BaseException):
                info = extract_error_info(error)
                context["error"] = {
                    "message": info["message"],
                    "stack": info["stack"],
                    "name": info["name"],
                }
            else:
                context["error"] = str(error)
        self.log(Level.ERROR, message, context)

    def warn(self, message: str, context: dict | None = None) -> None:
        self.log(Level.WARN, message, context)

    def info(self, message: str, context: dict | None = None) -> None:
        self.log(Level.INFO, message, context)

    def debug(self, message: str, context: dict | None = None) -> None:
        self.log(Level.DEBUG, message, context)

    def verbose(self, message: str, context: dict | None = None) -> None:
        self.log(Level.VERBOSE, message, context)

    def close(self) -> None:
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()
