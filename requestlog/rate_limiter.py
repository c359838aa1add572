"""Per-client limits on how often an endpoint may be called."""

import threading
import time
from dataclasses import dataclass


@dataclass
class Window:
    started: float
    count: int = 0


class RateLimiter:
    """Allows ``max_requests`` per client within each ``window_seconds`` span.

    Windows are fixed, not sliding: a client's counter starts over once its
    window has fully elapsed. Expired windows are dropped whenever a new
    client shows up, so addresses seen once do not pile up.
    """

    def __init__(self, max_requests: int, window_seconds: float, time_func=None):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._time_func = time_func or time.monotonic
        self._windows: dict[str, Window] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def _expired(self, window: Window, now: float) -> bool:
        return now - window.started >= self.window_seconds

    def allow(self, client: str) -> bool:
        """Count one call from ``client``; False once it is over the limit."""
        now = self._time_func()
        with self._lock:
            window = self._windows.get(client)
            if window is None:
                self._prune(now)
            if window is None or self._expired(window, now):
                window = self._windows[client] = Window(started=now)
            window.count += 1
            return window.count <= self.max_requests

    def _prune(self, now: float):
        for client in [c for c, w in self._windows.items() if self._expired(w, now)]:
            del self._windows[client]
