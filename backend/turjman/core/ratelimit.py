"""Per-client token bucket rate limiting."""

import time
from typing import Any, Callable, Dict, Tuple

from starlette.requests import Request


class RateLimitExceeded(Exception):
    """Raised when a client has no tokens left."""

    def __init__(self, message: str = "Too many requests"):
        self.message = message
        super().__init__(message)


class RateLimiter:
    """
    Token bucket keyed by client.

    Buckets start full at ``capacity`` and refill continuously at
    ``refill_per_s`` tokens per second. Handlers run on a single event loop,
    so the bucket table is mutated without a lock.
    """

    def __init__(
        self,
        capacity: float,
        refill_per_s: float,
        clock: Callable[[], float] = time.monotonic
    ):
        self.capacity = float(capacity)
        self.refill = float(refill_per_s)
        self._clock = clock
        self._buckets: Dict[Any, Tuple[float, float]] = {}

    def consume(self, key: Any, cost: float = 1.0) -> bool:
        now = self._clock()
        tokens, ts = self._buckets.get(key, (self.capacity, now))
        tokens = min(self.capacity, tokens + (now - ts) * self.refill)
        if tokens >= cost:
            tokens -= cost
            ok = True
        else:
            ok = False
        self._buckets[key] = (tokens, now)
        return ok

    def check(self, key: Any) -> None:
        if not self.consume(key):
            raise RateLimitExceeded()


def client_key(request: Request) -> str:
    """First X-Forwarded-For address, then X-Real-IP, else ``unknown``."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return "unknown"
