"""Request/response instrumentation installed as Flask before/after hooks."""

import json
import time
import uuid

from flask import Flask, g, request

from requestlog.config import Config
from requestlog.error_context import client_address
from requestlog.logger import StructuredLogger
from requestlog.models import Category, Level
from requestlog.performance import PerformanceTracker
from requestlog.sanitize import sanitize

MUTATING_METHODS = ("POST", "PUT", "PATCH")


def new_request_id() -> str:
    """Millisecond timestamp plus a random suffix. Good enough for correlating log lines."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:7]}"


def format_kb(num_bytes: int) -> str | None:
    return f"{num_bytes / 1024:.2f}KB" if num_bytes > 0 else None


def request_body():
    body = request.get_json(silent=True)
    if body is None and request.form:
        body = request.form.to_dict()
    return body


def request_size(body) -> int:
    if request.content_length:
        return request.content_length
    if body is not None:
        try:
            return len(json.dumps(body, default=str))
        except (TypeError, ValueError):
            return 0
    return 0


class RequestInstrumentation:
    """Emits one "started" and one completion record per request.

    The completion record is written once the final response exists, so it
    sees the status and size produced by views and error handlers alike.
    The health endpoint is not logged in production.
    """

    def __init__(self, logger: StructuredLogger, tracker: PerformanceTracker, config: Config):
        self._logger = logger
        self._tracker = tracker
        self._config = config

    def init_app(self, app: Flask) -> None:
        app.before_request(self._start)
        app.after_request(self._complete)

    def _skipped(self) -> bool:
        return self._config.is_production and request.path == self._config.health_path

    def _start(self):
        g.request_id = new_request_id()
        g.request_start = time.perf_counter()
        g.request_started_at = time.time()
        g.request_logged = not self._skipped()
        if not g.request_logged:
            return None

        g.request_size = request_size(request_body())
        if not self._logger.is_enabled_for(Level.DEBUG):
            return None

        self._logger.debug("Request started", {
            "category": Category.API.value,
            "requestId": g.request_id,
            "method": request.method,
            "url": request.full_path.rstrip("?"),
            "ip": client_address(request),
            "userAgent": request.headers.get("User-Agent"),
            "requestSize": g.request_size,
        })
        return None

    def _complete(self, response):
        if "request_id" in g:
            response.headers["X-Request-Id"] = g.request_id
        if not g.get("request_logged"):
            return response

        duration = int(round((time.perf_counter() - g.request_start) * 1000))
        status = response.status_code
        ip = client_address(request)
        size = g.get("request_size", 0)

        data = {
            "category": Category.API.value,
            "requestId": g.request_id,
            "method": request.method,
            "url": request.full_path.rstrip("?"),
            "ip": ip,
            "statusCode": status,
            "duration": f"{duration}ms",
            "durationMs": duration,
            "requestSize": format_kb(size),
            "responseSize": format_kb(response.content_length or 0),
        }
        data = {key: value for key, value in data.items() if value is not None}

        body = request_body() if request.method in MUTATING_METHODS else None
        if body is not None:
            sanitized = sanitize(body)
            if size < self._config.body_log_limit_bytes:
                data["body"] = sanitized
            else:
                data["bodySize"] = format_kb(size)
                preview = json.dumps(sanitized, default=str)
                data["bodyPreview"] = preview[: self._config.body_preview_chars]

        if status >= 500:
            self._logger.error("Request completed with server error", context=data)
        elif status >= 400:
            self._logger.warn("Request completed with client error", data)
        elif self._tracker.is_slow_operation(duration, "request"):
            self._logger.warn("Slow request detected", data)
        else:
            self._logger.info("Request completed", data)

        metadata = {"method": request.method, "path": request.path, "ip": ip}
        if status >= 500:
            metadata["error"] = True
        self._tracker.record_metric(
            f"{request.method} {request.path}", duration, g.request_started_at, metadata
        )
        return response
