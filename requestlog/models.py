"""Log levels and categories shared by the logger, middleware and query tool."""

import logging
from enum import Enum

VERBOSE = 5
logging.addLevelName(VERBOSE, "VERBOSE")


class Level(str, Enum):
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"
    VERBOSE = "verbose"

    @property
    def levelno(self) -> int:
        return LEVEL_NUMBERS[self]

    @classmethod
    def parse(cls, name: str) -> "Level":
        """Accept wire names plus the stdlib spellings (WARNING, CRITICAL)."""
        key = name.strip().lower()
        if key == "warning":
            key = "warn"
        elif key == "critical":
            key = "error"
        return cls(key)

    @classmethod
    def from_levelno(cls, levelno: int) -> "Level":
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.VERBOSE


LEVEL_NUMBERS = {
    Level.ERROR: logging.ERROR,
    Level.WARN: logging.WARNING,
    Level.INFO: logging.INFO,
    Level.DEBUG: logging.DEBUG,
    Level.VERBOSE: VERBOSE,
}


class Category(str, Enum):
    API = "API"
    VALIDATION = "VALIDATION"
    GENERATION = "GENERATION"
    STORAGE = "STORAGE"
    AUTHENTICATION = "AUTHENTICATION"
    NETWORK = "NETWORK"
    FRONTEND_ERROR = "FRONTEND_ERROR"
    PERFORMANCE = "PERFORMANCE"
    SYSTEM = "SYSTEM"
    UNKNOWN = "UNKNOWN"
