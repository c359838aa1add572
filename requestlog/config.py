"""Configuration: frozen dataclass built from defaults, optional YAML, then env vars."""

import os
import sys
from dataclasses import dataclass, fields, replace

import yaml


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    environment: str = "development"
    service_name: str = "storyframe-server"
    host: str = "0.0.0.0"
    port: int = 3002
    log_dir: str = "./logs"
    log_level: str = ""
    log_max_file_bytes: int = 20 * 1024 * 1024  # 20 MB
    log_retention_days: int = 30
    console_color: bool = True
    metrics_capacity: int = 1000
    slow_request_ms: int = 3000
    slow_operation_ms: int = 5000
    body_log_limit_bytes: int = 10 * 1024
    body_preview_chars: int = 200
    health_path: str = "/api/health"
    cache_max_entries: int = 50
    cache_ttl_seconds: int = 600
    error_report_max_requests: int = 50
    error_report_window_seconds: int = 900

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def min_level(self) -> str:
        """Effective minimum log level name."""
        if self.log_level:
            return self.log_level.lower()
        return "info" if self.is_production else "verbose"


ENV_VARS = {
    "environment": "APP_ENV",
    "service_name": "SERVICE_NAME",
    "host": "HOST",
    "port": "PORT",
    "log_dir": "LOG_DIR",
    "log_level": "LOG_LEVEL",
    "log_max_file_bytes": "LOG_MAX_FILE_BYTES",
    "log_retention_days": "LOG_RETENTION_DAYS",
    "console_color": "LOG_COLOR",
    "metrics_capacity": "METRICS_CAPACITY",
    "slow_request_ms": "SLOW_REQUEST_MS",
    "slow_operation_ms": "SLOW_OPERATION_MS",
    "body_log_limit_bytes": "BODY_LOG_LIMIT_BYTES",
    "body_preview_chars": "BODY_PREVIEW_CHARS",
    "health_path": "HEALTH_PATH",
    "cache_max_entries": "CACHE_MAX_ENTRIES",
    "cache_ttl_seconds": "CACHE_TTL_SECONDS",
    "error_report_max_requests": "ERROR_REPORT_MAX_REQUESTS",
    "error_report_window_seconds": "ERROR_REPORT_WINDOW_SECONDS",
}


def _coerce(field_type, value):
    if field_type in (bool, "bool"):
        return value if isinstance(value, bool) else _parse_bool(str(value))
    if field_type in (int, "int"):
        return int(value)
    return str(value)


def _load_yaml(path: str) -> dict:
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError:
        print(f"Warning: Invalid YAML in {path}, using defaults", file=sys.stderr)
        return {}
    return data if isinstance(data, dict) else {}


def load_config(path: str | None = None) -> Config:
    """Build Config from defaults, an optional YAML file, and environment variables.

    Environment variables win over the YAML file, which wins over defaults.
    Unknown YAML keys are ignored.
    """
    types = {f.name: f.type for f in fields(Config)}
    overrides = {}

    path = path or os.environ.get("CONFIG_PATH")
    if path:
        for key, value in _load_yaml(path).items():
            if key in types and value is not None:
                overrides[key] = _coerce(types[key], value)

    for name, env_var in ENV_VARS.items():
        raw = os.environ.get(env_var)
        if raw is not None:
            overrides[name] = _coerce(types[name], raw)

    return replace(Config(), **overrides)
