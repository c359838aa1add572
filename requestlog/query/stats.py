"""Summaries over parsed records: error groups and request latency."""

from dataclasses import dataclass, field
from typing import Iterable

from requestlog.query.reader import parse_timestamp

QUERY_SLOW_THRESHOLD_MS = 3000
PERFORMANCE_CATEGORIES = ("PERFORMANCE", "API")


@dataclass
class ErrorGroup:
    key: str
    count: int
    last_occurrence: str
    sample: dict


@dataclass
class PerformanceSummary:
    total_requests: int = 0
    avg_duration: float = 0.0
    slow_requests: list[dict] = field(default_factory=list)


def aggregate_errors(entries: Iterable[dict]) -> list[ErrorGroup]:
    """Group error-level records by fingerprint, else message; most frequent first."""
    groups: dict[str, ErrorGroup] = {}

    for entry in entries:
        if str(entry.get("level", "")).lower() != "error":
            continue
        key = entry.get("fingerprint") or entry.get("message") or "unknown"
        timestamp = entry.get("timestamp", "")

        group = groups.get(key)
        if group is None:
            groups[key] = ErrorGroup(key=key, count=1, last_occurrence=timestamp, sample=entry)
            continue

        group.count += 1
        current = parse_timestamp(timestamp)
        latest = parse_timestamp(group.last_occurrence)
        if current is not None and (latest is None or current > latest):
            group.last_occurrence = timestamp

    return sorted(groups.values(), key=lambda g: g.count, reverse=True)


def entry_duration(entry: dict) -> float | None:
    """``durationMs`` as a number; accepts ``"123ms"`` strings."""
    raw = entry.get("durationMs")
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        raw = raw.strip().removesuffix("ms")
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


def performance_summary(
    entries: Iterable[dict],
    top_n: int = 10,
    slow_threshold_ms: float = QUERY_SLOW_THRESHOLD_MS,
) -> PerformanceSummary:
    """Average duration over PERFORMANCE/API records plus the slowest ones above the threshold."""
    perf_entries = [e for e in entries if e.get("category") in PERFORMANCE_CATEGORIES]

    durations = []
    slow = []
    for entry in perf_entries:
        duration = entry_duration(entry)
        if duration is None:
            continue
        durations.append(duration)
        if duration > slow_threshold_ms:
            slow.append((duration, entry))

    slow.sort(key=lambda item: item[0], reverse=True)
    return PerformanceSummary(
        total_requests=len(perf_entries),
        avg_duration=sum(durations) / len(durations) if durations else 0.0,
        slow_requests=[entry for _, entry in slow[:top_n]],
    )
