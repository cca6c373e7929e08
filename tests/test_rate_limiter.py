import pytest
from fastapi import HTTPException

from app.utils.rate_limiter import RateLimiter


def test_minute_limit():
    limiter = RateLimiter(requests_per_minute=2, requests_per_hour=100)

    limiter.check("client", now=1000.0)
    limiter.check("client", now=1010.0)
    with pytest.raises(HTTPException) as exc_info:
        limiter.check("client", now=1020.0)
    assert exc_info.value.status_code == 429

    # the window slides
    limiter.check("client", now=1061.0)


def test_hour_limit():
    limiter = RateLimiter(requests_per_minute=100, requests_per_hour=3)

    for minute in range(3):
        limiter.check("client", now=minute * 60.0)
    with pytest.raises(HTTPException):
        limiter.check("client", now=300.0)

    limiter.check("client", now=3601.0)


def test_clients_are_independent():
    limiter = RateLimiter(requests_per_minute=1, requests_per_hour=10)

    limiter.check("a", now=0.0)
    limiter.check("b", now=0.0)


def test_only_llm_paths_are_limited():
    limiter = RateLimiter(limited_paths=["/api/answers"])

    assert limiter.applies_to("/api/answers")
    assert not limiter.applies_to("/api/topics")


def test_idle_clients_are_forgotten():
    limiter = RateLimiter(requests_per_minute=5, requests_per_hour=50)

    for i in range(1000):
        limiter.check(f"client-{i}", now=0.0)
    assert len(limiter.history) == 1000

    limiter.check("late", now=100000.0)

    assert list(limiter.history) == ["late"]


def test_active_clients_survive_cleanup():
    limiter = RateLimiter(requests_per_minute=5, requests_per_hour=50)

    limiter.check("old", now=0.0)
    limiter.check("recent", now=3000.0)
    limiter.check("other", now=3700.0)

    assert set(limiter.history) == {"recent", "other"}
    assert list(limiter.history["recent"]) == [3000.0]
