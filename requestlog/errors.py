"""Application error carrying an HTTP status and a machine-readable code."""

import re

from werkzeug.exceptions import HTTPException


class ApplicationError(Exception):
    def __init__(self, message: str, status_code: int = 500, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


def _code_from_name(name: str) -> str:
    """'Request Entity Too Large' -> 'REQUEST_ENTITY_TOO_LARGE'."""
    return re.sub(r"[^A-Za-z0-9]+", "_", name).strip("_").upper()


def from_http_exception(exc: HTTPException) -> ApplicationError:
    error = ApplicationError(
        exc.description or exc.name,
        status_code=exc.code or 500,
        code=_code_from_name(exc.name),
    )
    error.__cause__ = exc
    return error
