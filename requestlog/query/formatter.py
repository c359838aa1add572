"""Renderers for query results and their summary views."""

import json
from typing import Callable

from requestlog.error_context import format_stack_trace
from requestlog.query.reader import parse_timestamp
from requestlog.query.stats import ErrorGroup, PerformanceSummary, QUERY_SLOW_THRESHOLD_MS

# ANSI color codes
COLORS = {
    "ERROR": "\033[31m",    # red
    "WARN": "\033[33m",     # yellow
    "INFO": "\033[32m",     # green
    "DEBUG": "\033[34m",    # blue
    "VERBOSE": "\033[36m",  # cyan
}
RESET = "\033[0m"


def _header(entry: dict, color: bool) -> str:
    ts = parse_timestamp(entry.get("timestamp"))
    timestamp = ts.isoformat() if ts else str(entry.get("timestamp", "?"))
    level = str(entry.get("level", "")).upper()
    padded = level.ljust(5)
    if color and level in COLORS:
        padded = f"{COLORS[level]}{padded}{RESET}"
    category = f"[{entry['category']}] " if entry.get("category") else ""
    return f"{timestamp} {padded} {category}{entry.get('message', '')}"


def format_text(entry: dict, color: bool = False, show_stack: bool = False) -> str:
    """Header line, then error detail and duration when present."""
    lines = [_header(entry, color)]

    error = entry.get("error")
    if str(entry.get("level", "")).lower() == "error" and error:
        if isinstance(error, dict):
            if error.get("message"):
                lines.append(f"  Error: {error['message']}")
            if show_stack and error.get("stack"):
                stack = "\n    ".join(format_stack_trace(error["stack"])[:3])
                lines.append(f"  Stack: {stack}")
        else:
            lines.append(f"  Error: {error}")

    duration = entry.get("durationMs") or entry.get("duration")
    if duration:
        lines.append(f"  Duration: {duration}")

    return "\n".join(lines)


def format_json(entry: dict) -> str:
    """One compact JSON object per line."""
    return json.dumps(entry, default=str)


def get_formatter(output_format: str = "text", color: bool = False,
                  show_stack: bool = False) -> Callable[[dict], str]:
    """Pick the entry renderer for ``--output``."""
    if output_format == "json":
        return format_json
    return lambda entry: format_text(entry, color=color, show_stack=show_stack)


def format_error_summary(groups: list[ErrorGroup], limit: int = 10) -> str:
    lines = ["=== Error Summary ==="]
    if not groups:
        lines.append("No errors found.")
    for group in groups[:limit]:
        lines.append(f"{group.count}x {group.sample.get('message') or group.key}")
        lines.append(f"  Last: {group.last_occurrence}")
    return "\n".join(lines)


def format_performance_summary(summary: PerformanceSummary, limit: int = 5) -> str:
    lines = [
        "=== Performance Summary ===",
        f"Total requests: {summary.total_requests}",
        f"Average duration: {summary.avg_duration:.2f}ms",
        f"Slow requests (>{QUERY_SLOW_THRESHOLD_MS / 1000:g}s): {len(summary.slow_requests)}",
    ]
    if summary.slow_requests:
        lines.append("")
        lines.append("Slowest requests:")
        for entry in summary.slow_requests[:limit]:
            duration = entry.get("durationMs") or entry.get("duration")
            lines.append(f"  {entry.get('message', '')} - {duration}")
    return "\n".join(lines)
