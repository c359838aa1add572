"""Bounded TTL cache for JSON GET responses."""

import functools
import threading
import time
from dataclasses import dataclass
from typing import Any

from flask import jsonify, request

from requestlog.models import Category

DEFAULT_LIMIT = "20"


@dataclass(frozen=True)
class CacheEntry:
    data: Any
    timestamp: float


def cache_key(path: str, args) -> str:
    """Key on path, normalized ``query`` and ``limit``; cache-busting params are ignored."""
    query = args.get("query")
    normalized = query.strip().lower() if query else "no-query"
    limit = args.get("limit") or DEFAULT_LIMIT
    return f"{path}_{normalized}_{limit}"


class ResponseCache:
    """Keeps at most ``max_entries`` responses for ``ttl_seconds`` each.

    When the cache grows past its bound, entries are ordered by write time
    and the oldest are dropped; reads do not refresh an entry.
    """

    def __init__(self, logger, max_entries: int = 50, ttl_seconds: float = 600, time_func=None):
        self._logger = logger
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._time_func = time_func or time.time
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str):
        """Return the cached data, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or self._time_func() - entry.timestamp >= self.ttl_seconds:
            return None
        return entry.data

    def age(self, key: str) -> float | None:
        entry = self._entries.get(key)
        return None if entry is None else self._time_func() - entry.timestamp

    def set(self, key: str, data) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(data=data, timestamp=self._time_func())
            evicted = self._evict()
        self._logger.debug("Cached result", {
            "category": Category.API.value,
            "key": key,
            "cacheSize": len(self._entries),
        })
        if evicted:
            self._logger.debug("Cleaned old cache entries", {
                "category": Category.API.value,
                "evicted": evicted,
                "cacheSize": len(self._entries),
            })

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict(self) -> int:
        excess = len(self._entries) - self.max_entries
        if excess <= 0:
            return 0
        oldest = sorted(self._entries.items(), key=lambda item: item[1].timestamp)[:excess]
        for key, _ in oldest:
            del self._entries[key]
        return excess

    def cached(self, view):
        """Flask view decorator serving repeated GETs from the cache.

        ``clearCache=true`` drops the entry and forces a fresh response.
        Only 200 JSON responses are stored.
        """

        @functools.wraps(view)
        def wrapper(*args, **kwargs):
            key = cache_key(request.path, request.args)
            if request.args.get("clearCache") == "true":
                self.delete(key)
                self._logger.debug("Cache cleared", {"category": Category.API.value, "key": key})
            else:
                data = self.get(key)
                if data is not None:
                    self._logger.debug("Returning cached result", {
                        "category": Category.API.value,
                        "key": key,
                        "cacheAge": f"{round(self.age(key) or 0)}s",
                    })
                    return jsonify(data)

            response = view(*args, **kwargs)
            if isinstance(response, dict):
                self.set(key, response)
                return jsonify(response)
            if getattr(response, "status_code", None) == 200 and response.is_json:
                self.set(key, response.get_json())
            return response

        return wrapper
