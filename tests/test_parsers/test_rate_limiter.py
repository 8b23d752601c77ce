"""Tests for the token bucket rate limiter."""

import asyncio

import pytest

from src.parsers.rate_limiter import RateLimiter


@pytest.mark.asyncio
async def test_burst_within_capacity_does_not_wait():
    limiter = RateLimiter(max_rps=50)
    loop = asyncio.get_running_loop()
    start = loop.time()
    for _ in range(10):
        await limiter.acquire()
    assert loop.time() - start < 0.1


@pytest.mark.asyncio
async def test_empty_bucket_suspends_until_refill():
    """Capacity 10 at 10 rps: the 11th permit waits ~0.1s instead of failing."""
    limiter = RateLimiter(max_rps=10)
    loop = asyncio.get_running_loop()
    start = loop.time()
    for _ in range(11):
        await limiter.acquire()
    assert loop.time() - start >= 0.08


@pytest.mark.asyncio
async def test_concurrency_cap_bounds_in_flight():
    limiter = RateLimiter(max_rps=1000, max_concurrency=2)
    peak = 0

    async def worker() -> None:
        nonlocal peak
        async with limiter.slot():
            peak = max(peak, limiter.in_flight)
            await asyncio.sleep(0.01)

    await asyncio.gather(*[worker() for _ in range(6)])
    assert peak == 2
    assert limiter.in_flight == 0


@pytest.mark.asyncio
async def test_slot_released_on_error():
    limiter = RateLimiter(max_rps=1000, max_concurrency=1)

    with pytest.raises(RuntimeError):
        async with limiter.slot():
            raise RuntimeError("boom")

    # Would deadlock if the permit leaked.
    await asyncio.wait_for(_enter(limiter), timeout=1.0)
    assert limiter.in_flight == 0


async def _enter(limiter: RateLimiter) -> None:
    async with limiter.slot():
        pass


def test_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        RateLimiter(max_rps=0)
