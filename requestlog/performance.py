"""In-process operation timing with a bounded metric buffer."""

import collections
import inspect
import threading
import time
from dataclasses import dataclass, field

import psutil

SLOW_REQUEST_THRESHOLD_MS = 3000
SLOW_OPERATION_THRESHOLD_MS = 5000
DEFAULT_CAPACITY = 1000


@dataclass(frozen=True)
class PerformanceMetric:
    operation: str
    duration: float  # milliseconds
    timestamp: float  # epoch seconds at start
    metadata: dict | None = None


@dataclass
class PerformanceStats:
    count: int = 0
    avg_duration: float = 0.0
    min_duration: float = 0.0
    max_duration: float = 0.0
    slow_operations: list[PerformanceMetric] = field(default_factory=list)


class PerformanceTracker:
    """Records timed operations into a FIFO buffer of fixed capacity.

    Request-class operations (name contains "request" or "api") are slow
    above ``slow_request_ms``; everything else above ``slow_operation_ms``.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        slow_request_ms: float = SLOW_REQUEST_THRESHOLD_MS,
        slow_operation_ms: float = SLOW_OPERATION_THRESHOLD_MS,
    ):
        self.capacity = capacity
        self.slow_request_ms = slow_request_ms
        self.slow_operation_ms = slow_operation_ms
        self._metrics = collections.deque(maxlen=capacity)
        self._lock = threading.Lock()

    def threshold_for(self, operation: str) -> float:
        name = operation.lower()
        if "request" in name or "api" in name:
            return self.slow_request_ms
        return self.slow_operation_ms

    def is_slow_operation(self, duration: float, operation: str) -> bool:
        return duration > self.threshold_for(operation)

    def record_metric(
        self,
        operation: str,
        duration: float,
        timestamp: float | None = None,
        metadata: dict | None = None,
    ) -> PerformanceMetric:
        """Append a metric, evicting the oldest one once the buffer is full."""
        metric = PerformanceMetric(
            operation=operation,
            duration=max(0.0, float(duration)),
            timestamp=time.time() if timestamp is None else timestamp,
            metadata=dict(metadata) if metadata else None,
        )
        with self._lock:
            self._metrics.append(metric)
        return metric

    def track_operation(self, operation: str, fn, metadata: dict | None = None):
        """Call ``fn()`` and record how long it took.

        If ``fn`` returns an awaitable, an awaitable is returned that records
        once the original settles. Results and exceptions pass through
        unchanged; failures are recorded with ``error: True``.
        """
        started_at = time.time()
        start = time.perf_counter()
        try:
            result = fn()
        except BaseException:
            self._finish(operation, start, started_at, metadata, failed=True)
            raise

        if inspect.isawaitable(result):
            return self._track_awaitable(operation, result, start, started_at, metadata)

        self._finish(operation, start, started_at, metadata)
        return result

    async def _track_awaitable(self, operation, awaitable, start, started_at, metadata):
        try:
            value = await awaitable
        except BaseException:
            self._finish(operation, start, started_at, metadata, failed=True)
            raise
        self._finish(operation, start, started_at, metadata)
        return value

    def _finish(self, operation, start, started_at, metadata, failed=False):
        duration = (time.perf_counter() - start) * 1000
        if failed:
            metadata = {**(metadata or {}), "error": True}
        self.record_metric(operation, duration, started_at, metadata)

    def metrics(self) -> list[PerformanceMetric]:
        """Snapshot of the buffer, oldest first."""
        with self._lock:
            return list(self._metrics)

    def get_stats(self, operation: str | None = None) -> PerformanceStats:
        metrics = self.metrics()
        if operation is not None:
            metrics = [m for m in metrics if m.operation == operation]
        if not metrics:
            return PerformanceStats()

        durations = [m.duration for m in metrics]
        return PerformanceStats(
            count=len(metrics),
            avg_duration=sum(durations) / len(durations),
            min_duration=min(durations),
            max_duration=max(durations),
            slow_operations=[m for m in metrics if self.is_slow_operation(m.duration, m.operation)],
        )

    def clear(self):
        with self._lock:
            self._metrics.clear()

    @property
    def size(self) -> int:
        return len(self._metrics)


def memory_usage() -> dict[str, int]:
    """Resident and virtual memory of this process, in bytes."""
    info = psutil.Process().memory_info()
    return {"rss": info.rss, "vms": info.vms}


def format_bytes(num_bytes: float) -> str:
    if num_bytes <= 0:
        return "0 B"
    for unit in ("B", "KB", "MB", "GB"):
        if num_bytes < 1024 or unit == "GB":
            return f"{num_bytes:.2f} {unit}"
        num_bytes /= 1024


def format_memory_usage(usage: dict[str, int]) -> str:
    return f"RSS: {format_bytes(usage['rss'])}, VMS: {format_bytes(usage['vms'])}"
