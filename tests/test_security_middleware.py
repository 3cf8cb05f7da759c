import pytest

from auth import security_middleware
from auth.security_middleware import RateLimitMiddleware


@pytest.fixture
def clock(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(security_middleware.time, "monotonic", lambda: now[0])
    return now


def test_rate_limit_per_ip(clock):
    limiter = RateLimitMiddleware(app=None, requests_per_minute=2)

    assert limiter._check_rate_limit("10.0.0.1")
    assert limiter._check_rate_limit("10.0.0.1")
    assert not limiter._check_rate_limit("10.0.0.1")
    assert limiter._check_rate_limit("10.0.0.2")

    clock[0] += 61
    assert limiter._check_rate_limit("10.0.0.1")


def test_idle_ips_are_evicted(clock):
    limiter = RateLimitMiddleware(app=None, requests_per_minute=5)
    for i in range(50):
        limiter._check_rate_limit(f"10.0.1.{i}")
    assert len(limiter._hits) == 50

    clock[0] += 30
    limiter._check_rate_limit("10.0.2.1")
    assert len(limiter._hits) == 51

    clock[0] += 45
    limiter._check_rate_limit("10.0.2.2")
    assert set(limiter._hits) == {"10.0.2.1", "10.0.2.2"}
