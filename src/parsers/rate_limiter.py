import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class RateLimiter:
    """Token bucket rate limiter with an optional cap on in-flight calls.

    Refills ``max_rps`` tokens per second up to a burst capacity of
    ``max(1, max_rps)``. Callers suspend until a token is available; nothing
    is ever rejected. Build ONE instance at startup and pass it to every
    client that shares the upstream quota.
    """

    def __init__(self, max_rps: float, max_concurrency: int = 0) -> None:
        if max_rps <= 0:
            raise ValueError("max_rps must be positive")
        self._rate = max_rps
        self._capacity = max(1.0, max_rps)
        self._tokens = self._capacity
        self._updated: float | None = None
        self._lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def _refill(self, now: float) -> None:
        if self._updated is not None:
            self._tokens = min(self._capacity, self._tokens + (now - self._updated) * self._rate)
        self._updated = now

    async def acquire(self) -> None:
        """Take one rate token, sleeping until the bucket has refilled."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            self._refill(loop.time())
            if self._tokens < 1:
                await asyncio.sleep((1 - self._tokens) / self._rate)
                self._refill(loop.time())
            self._tokens -= 1

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold a concurrency permit and one rate token for the block."""
        if self._semaphore is not None:
            await self._semaphore.acquire()
        try:
            await self.acquire()
            self._in_flight += 1
            try:
                yield
            finally:
                self._in_flight -= 1
        finally:
            if self._semaphore is not None:
                self._semaphore.release()
