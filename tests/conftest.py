"""Shared pytest fixtures for the requestlog test suite."""

import glob
import json
import logging
import os

import pytest

from requestlog.app import create_app
from requestlog.config import Config
from requestlog.formatters import JsonFormatter
from requestlog.logger import StructuredLogger


class ListHandler(logging.Handler):
    """Keeps formatted JSON records in memory."""

    def __init__(self, level=logging.NOTSET):
        super().__init__(level)
        self.setFormatter(JsonFormatter({"service": "test-service", "environment": "test"}))
        self.records = []

    def emit(self, record):
        self.records.append(json.loads(self.format(record)))


@pytest.fixture
def config(tmp_path):
    return Config(environment="test", log_dir=str(tmp_path / "logs"), console_color=False)


@pytest.fixture
def make_logger():
    """Build a StructuredLogger writing to an in-memory handler."""
    created = []

    def _make(config=None):
        handler = ListHandler()
        logger = StructuredLogger(config or Config(environment="test"), handlers=[handler])
        created.append(logger)
        return logger, handler.records

    yield _make
    for logger in created:
        logger.close()


@pytest.fixture
def make_app(config):
    created = []

    def _make(cfg=None):
        application = create_app(cfg or config)
        application.config["TESTING"] = True
        created.append(application)
        return application

    yield _make
    for application in created:
        application.config["components"]["logger"].close()


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    return app.test_client()


def read_log_records(log_dir, prefix="combined"):
    records = []
    for path in sorted(glob.glob(os.path.join(log_dir, f"{prefix}-*.log"))):
        with open(path, "r", encoding="utf-8") as f:
            records.extend(json.loads(line) for line in f if line.strip())
    return records


@pytest.fixture
def read_records(config):
    """Read records the app wrote to ``config.log_dir``."""

    def _read(prefix="combined", log_dir=None):
        return read_log_records(log_dir or config.log_dir, prefix)

    return _read
