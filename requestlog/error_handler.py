"""Terminal error handling: every failure becomes one error record and one JSON response."""

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException, MethodNotAllowed, NotFound

from requestlog.config import Config
from requestlog.error_context import build_context, fingerprint
from requestlog.errors import ApplicationError, from_http_exception
from requestlog.logger import StructuredLogger
from requestlog.middleware import request_body
from requestlog.sanitize import sanitize

GENERIC_MESSAGE = "Internal server error"


class ErrorHandler:
    def __init__(self, logger: StructuredLogger, config: Config):
        self._logger = logger
        self._config = config

    def handle(self, error: Exception):
        """Log ``error`` with full request context and build the client response."""
        status = getattr(error, "status_code", None) or 500
        code = getattr(error, "code", None)
        if not isinstance(code, str):
            code = None

        body = request_body()
        context = build_context(error, request, {
            "code": code,
            "statusCode": status,
            "requestId": g.get("request_id"),
            "body": sanitize(body) if body is not None else None,
            "query": request.args.to_dict(flat=False),
            "params": dict(request.view_args or {}),
        })
        error_fingerprint = fingerprint(error, context)
        sanitized = sanitize(context.to_dict())

        self._logger.error(f"Error {status}: {context.message}", error, {
            **sanitized,
            "category": context.category.value,
            "code": code,
            "fingerprint": error_fingerprint,
        })

        message = context.message or GENERIC_MESSAGE
        if self._config.is_production and status >= 500:
            message = GENERIC_MESSAGE

        payload = {"success": False, "error": message}
        if code:
            payload["code"] = code
        if not self._config.is_production and sanitized.get("stack"):
            payload["stack"] = sanitized["stack"]
        return jsonify(payload), status

    def not_found(self, exc: HTTPException):
        """Unmatched routes and methods go through the same path as any other error."""
        error = ApplicationError(
            f"Route {request.method} {request.path} not found", 404, "NOT_FOUND"
        )
        error.__cause__ = exc
        return self.handle(error)

    def http_error(self, exc: HTTPException):
        return self.handle(from_http_exception(exc))


def register_error_handlers(app: Flask, logger: StructuredLogger, config: Config) -> ErrorHandler:
    handler = ErrorHandler(logger, config)
    app.register_error_handler(NotFound, handler.not_found)
    app.register_error_handler(MethodNotAllowed, handler.not_found)
    app.register_error_handler(HTTPException, handler.http_error)
    app.register_error_handler(Exception, handler.handle)
    return handler
