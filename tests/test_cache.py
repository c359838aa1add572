"""Tests for requestlog.cache"""

import pytest
from flask import jsonify

from requestlog.cache import ResponseCache, cache_key


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache_and_records(make_logger, clock):
    logger, records = make_logger()
    return ResponseCache(logger, max_entries=2, ttl_seconds=600, time_func=clock), records


class TestCacheKey:
    def test_normalizes_query(self):
        assert cache_key("/api/search", {"query": "  Cats "}) == "/api/search_cats_20"

    def test_ignores_cache_busting_params(self):
        assert cache_key("/api/search", {"query": "cats", "_t": "123"}) == cache_key(
            "/api/search", {"query": "cats"}
        )

    def test_no_query(self):
        assert cache_key("/api/list", {"limit": "5"}) == "/api/list_no-query_5"


class TestResponseCache:
    def test_set_and_get(self, cache_and_records):
        cache, records = cache_and_records
        cache.set("a", {"v": 1})
        assert cache.get("a") == {"v": 1}
        assert "a" in cache
        assert records[0]["message"] == "Cached result"
        assert records[0]["category"] == "API"

    def test_expires_after_ttl(self, cache_and_records, clock):
        cache, _ = cache_and_records
        cache.set("a", {"v": 1})
        clock.now += 599
        assert cache.get("a") == {"v": 1}
        clock.now += 1
        assert cache.get("a") is None

    def test_evicts_oldest_write(self, cache_and_records, clock):
        cache, records = cache_and_records
        cache.set("a", 1)
        clock.now += 1
        cache.set("b", 2)
        clock.now += 1
        cache.get("a")
        cache.set("c", 3)
        assert len(cache) == 2
        assert "a" not in cache
        assert cache.get("b") == 2
        assert records[-1]["message"] == "Cleaned old cache entries"
        assert records[-1]["evicted"] == 1

    def test_delete_and_clear(self, cache_and_records):
        cache, _ = cache_and_records
        cache.set("a", 1)
        assert cache.delete("a")
        assert not cache.delete("a")
        cache.set("b", 2)
        cache.clear()
        assert len(cache) == 0

    def test_age(self, cache_and_records, clock):
        cache, _ = cache_and_records
        assert cache.age("a") is None
        cache.set("a", 1)
        clock.now += 30
        assert cache.age("a") == 30


class TestCachedDecorator:
    @pytest.fixture
    def setup(self, app):
        cache = app.config["components"]["cache"]
        calls = []

        @app.route("/api/search")
        @cache.cached
        def search():
            calls.append(1)
            return {"results": [len(calls)]}

        @app.route("/api/created")
        @cache.cached
        def created():
            calls.append(1)
            return jsonify({"n": len(calls)}), 201

        return app.test_client(), calls

    def test_second_request_served_from_cache(self, setup, read_records):
        client, calls = setup
        first = client.get("/api/search?query=cats")
        second = client.get("/api/search?query=Cats&_t=99")
        assert first.get_json() == second.get_json() == {"results": [1]}
        assert len(calls) == 1
        messages = [r["message"] for r in read_records()]
        assert "Returning cached result" in messages

    def test_clear_cache_forces_refresh(self, setup):
        client, calls = setup
        client.get("/api/search?query=cats")
        refreshed = client.get("/api/search?query=cats&clearCache=true")
        assert refreshed.get_json() == {"results": [2]}
        assert client.get("/api/search?query=cats").get_json() == {"results": [2]}
        assert len(calls) == 2

    def test_different_query_not_shared(self, setup):
        client, calls = setup
        client.get("/api/search?query=cats")
        client.get("/api/search?query=dogs")
        assert len(calls) == 2

    def test_non_200_not_cached(self, setup):
        client, calls = setup
        assert client.get("/api/created").status_code == 201
        assert client.get("/api/created").get_json() == {"n": 2}
