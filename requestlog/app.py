import signal
import sys
from datetime import datetime, timezone

from flask import Flask, jsonify, request

from requestlog.cache import ResponseCache
from requestlog.config import Config, load_config
from requestlog.error_context import client_address, fingerprint_parts
from requestlog.error_handler import register_error_handlers
from requestlog.errors import ApplicationError
from requestlog.logger import StructuredLogger
from requestlog.middleware import RequestInstrumentation
from requestlog.models import Category
from requestlog.performance import PerformanceTracker, format_memory_usage, memory_usage
from requestlog.rate_limiter import RateLimiter
from requestlog.sanitize import sanitize
from requestlog.validation import ERROR_REPORT_SCHEMA, PayloadValidator


def create_app(config: Config | None = None, handlers=None) -> Flask:
    """Flask application factory.

    ``handlers`` replaces the default console and file sinks, mainly for tests.
    """
    app = Flask(__name__)

    if config is None:
        config = load_config()

    logger = StructuredLogger(config, handlers=handlers)
    tracker = PerformanceTracker(
        capacity=config.metrics_capacity,
        slow_request_ms=config.slow_request_ms,
        slow_operation_ms=config.slow_operation_ms,
    )
    cache = ResponseCache(
        logger,
        max_entries=config.cache_max_entries,
        ttl_seconds=config.cache_ttl_seconds,
    )
    report_limiter = RateLimiter(
        config.error_report_max_requests, config.error_report_window_seconds
    )
    report_validator = PayloadValidator(ERROR_REPORT_SCHEMA)

    RequestInstrumentation(logger, tracker, config).init_app(app)
    error_handler = register_error_handlers(app, logger, config)

    # Store components on app for collaborators and tests
    app.config["components"] = {
        "config": config,
        "logger": logger,
        "tracker": tracker,
        "cache": cache,
        "error_handler": error_handler,
    }

    # --- Routes ---

    @app.route(config.health_path)
    def health():
        return jsonify({
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    @app.route("/api/logs/error", methods=["POST"])
    def report_frontend_error():
        if not report_limiter.allow(client_address(request)):
            raise ApplicationError(
                "Too many error reports, please try again later.", 429, "RATE_LIMITED"
            )

        payload = request.get_json(silent=True)
        is_valid, _ = report_validator.validate(payload)
        if not is_valid:
            raise ApplicationError("Invalid error report format", 400, "INVALID_ERROR_REPORT")

        error = payload["error"]
        logger.error("Frontend error reported", context={
            "category": Category.FRONTEND_ERROR.value,
            "fingerprint": fingerprint_parts(
                Category.FRONTEND_ERROR, error["message"], error.get("stack")
            ),
            "error": {
                "message": error["message"],
                "stack": error.get("stack"),
                "name": error.get("name") or "Error",
            },
            "componentStack": error.get("componentStack"),
            "context": sanitize(payload.get("context")),
            "userAgent": payload.get("userAgent"),
            "url": payload.get("url"),
            "clientTimestamp": payload.get("timestamp"),
            "browserInfo": {
                "userAgent": request.headers.get("User-Agent"),
                "referer": request.headers.get("Referer"),
            },
        })
        return jsonify({"success": True, "message": "Error reported successfully"})

    return app


def shutdown_handler(logger: StructuredLogger):
    """Signal handler that records the signal, then exits so cleanup in ``main`` runs."""

    def _handle(signum, _frame):
        logger.info("Shutdown signal received", {
            "category": Category.SYSTEM.value,
            "signal": signal.Signals(signum).name,
        })
        sys.exit(0)

    return _handle


def main():
    config = load_config()
    app = create_app(config)
    logger = app.config["components"]["logger"]

    handler = shutdown_handler(logger)
    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)

    logger.info("Server starting up", {
        "category": Category.SYSTEM.value,
        "environment": config.environment,
        "port": config.port,
        "memory": format_memory_usage(memory_usage()),
    })
    try:
        app.run(host=config.host, port=config.port)
    finally:
        logger.info("Server closed", {"category": Category.SYSTEM.value})
        logger.close()
