import pytest
import redis

from pulse.services.rate_limiter import RateLimiter
from pulse.utils import settings


class FakeRedis:
    """Just enough of redis.Redis for the fixed-window script."""

    def __init__(self):
        self.counts = {}

    def eval(self, script, numkeys, key, window):
        self.counts[key] = self.counts.get(key, 0) + 1
        return [self.counts[key], int(window)]


class DownRedis:
    def __init__(self):
        self.calls = 0

    def eval(self, *args):
        self.calls += 1
        raise redis.ConnectionError("connection refused")


def test_allows_up_to_the_limit_then_blocks():
    limiter = RateLimiter(client=FakeRedis(), max_requests=3, window_seconds=900)

    results = [limiter.hit("10.0.0.1") for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert results[-1].reset_in == 900


def test_clients_are_counted_separately():
    limiter = RateLimiter(client=FakeRedis(), max_requests=1, window_seconds=60)

    assert limiter.hit("10.0.0.1").allowed
    assert limiter.hit("10.0.0.2").allowed
    assert not limiter.hit("10.0.0.1").allowed


def test_fails_open_after_retries_when_redis_is_down():
    down = DownRedis()
    limiter = RateLimiter(client=down, max_requests=1, window_seconds=60)

    result = limiter.hit("10.0.0.1")

    assert result.allowed is True
    assert down.calls == 3


@pytest.fixture
def limited_client(client, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", True)
    client.app.state.rate_limiter = RateLimiter(client=FakeRedis(), max_requests=2, window_seconds=900)
    return client


def test_api_returns_429_once_the_window_is_spent(limited_client):
    first = limited_client.get("/api/bands")
    assert first.status_code == 200
    assert first.headers["X-RateLimit-Remaining"] == "1"

    limited_client.get("/api/bands")
    blocked = limited_client.get("/api/bands")

    assert blocked.status_code == 429
    assert blocked.json()["success"] is False
    assert blocked.headers["Retry-After"] == "900"
