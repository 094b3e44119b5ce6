"""Unit tests for the outbound search rate limiter."""

from __future__ import annotations

import pytest

from app.services.rate_limiter import RequestRateLimiter


class _FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _limiter(clock: _FakeClock, *, per_minute: int = 2, interval: float = 1.0) -> RequestRateLimiter:
    return RequestRateLimiter(
        max_requests_per_minute=per_minute,
        min_interval_seconds=interval,
        clock=clock,
        sleep=clock.sleep,
    )


@pytest.mark.asyncio
async def test_first_request_is_not_delayed() -> None:
    clock = _FakeClock()
    limiter = _limiter(clock)

    waited = await limiter.acquire()

    assert waited == 0.0
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_consecutive_requests_respect_minimum_interval() -> None:
    clock = _FakeClock()
    limiter = _limiter(clock, per_minute=10, interval=3.0)

    await limiter.acquire()
    clock.now = 1.0
    waited = await limiter.acquire()

    assert waited == pytest.approx(2.0)
    assert clock.now == pytest.approx(3.0)


@pytest.mark.asyncio
async def test_full_window_waits_until_oldest_request_expires() -> None:
    clock = _FakeClock()
    limiter = _limiter(clock)

    await limiter.acquire()
    await limiter.acquire()
    waited = await limiter.acquire()

    # Second call waits 1s for spacing, third waits for the 60s window
    assert clock.sleeps == [pytest.approx(1.0), pytest.approx(59.0)]
    assert waited == pytest.approx(59.0)
    assert limiter.status()["requests_in_window"] == 2


def test_status_reports_next_available_time() -> None:
    clock = _FakeClock()
    limiter = _limiter(clock, per_minute=5, interval=3.0)

    assert limiter.status() == {
        "requests_in_window": 0,
        "max_requests_per_minute": 5,
        "min_interval_seconds": 3.0,
        "next_available_in": 0.0,
    }
