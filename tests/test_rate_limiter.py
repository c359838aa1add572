"""Tests for requestlog.rate_limiter"""

import pytest

from requestlog.rate_limiter import RateLimiter


@pytest.fixture
def clock():
    return [0.0]


def _limiter(clock, max_requests=2, window_seconds=10):
    return RateLimiter(max_requests, window_seconds, time_func=lambda: clock[0])


class TestRateLimiter:
    def test_allows_up_to_max(self, clock):
        limiter = _limiter(clock, max_requests=3)
        assert [limiter.allow("a") for _ in range(4)] == [True, True, True, False]

    def test_window_boundary(self, clock):
        limiter = _limiter(clock)
        limiter.allow("a")
        limiter.allow("a")

        clock[0] = 9.9
        assert limiter.allow("a") is False

        clock[0] = 10.0
        assert limiter.allow("a") is True

    def test_clients_are_independent(self, clock):
        limiter = _limiter(clock, max_requests=1)
        assert limiter.allow("10.0.0.1") is True
        assert limiter.allow("10.0.0.1") is False
        assert limiter.allow("10.0.0.2") is True

    def test_expired_windows_pruned_on_new_client(self, clock):
        limiter = _limiter(clock)
        limiter.allow("a")
        limiter.allow("b")
        assert len(limiter) == 2

        clock[0] = 15.0
        limiter.allow("c")
        assert len(limiter) == 1

    def test_default_clock(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        assert limiter.allow("a") is True
        assert limiter.allow("a") is False
