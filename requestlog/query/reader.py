"""Log file discovery and tolerant JSON-lines parsing."""

import fnmatch
import json
import os
from datetime import datetime, timezone
from typing import Generator


def list_log_files(log_dir: str, pattern: str | None = None) -> list[str]:
    """Return ``*.log`` paths in ``log_dir``, newest modification first.

    ``pattern`` is a shell-style glob matched against the file name.
    Raises FileNotFoundError if ``log_dir`` does not exist.
    """
    if not os.path.isdir(log_dir):
        raise FileNotFoundError(f"Log directory not found: {log_dir}")

    paths = []
    for name in os.listdir(log_dir):
        if not name.endswith(".log"):
            continue
        if pattern and not fnmatch.fnmatch(name, pattern):
            continue
        paths.append(os.path.join(log_dir, name))

    paths.sort(key=os.path.getmtime, reverse=True)
    return paths


def read_records(filepath: str) -> Generator[dict, None, None]:
    """Yield each JSON object in a file; lines that do not parse are skipped."""
    with open(filepath, "r", encoding="utf-8", errors="replace") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(record, dict):
                yield record


def parse_log_file(filepath: str) -> list[dict]:
    try:
        return list(read_records(filepath))
    except OSError:
        return []


def read_all(paths: list[str]) -> list[dict]:
    records = []
    for path in paths:
        records.extend(parse_log_file(path))
    return records


def parse_timestamp(value) -> datetime | None:
    """Parse an ISO 8601 timestamp (``Z`` suffix allowed). Naive values are taken as UTC."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
