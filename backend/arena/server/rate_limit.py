"""Per-connection token bucket for throttling inbound arena frames."""

import time
from collections.abc import Callable


class TokenBucket:
    """Token bucket limiter.

    The bucket starts full at `burst` tokens and refills continuously at
    `rate` tokens per second. `consume()` spends one token per accepted frame.
    """

    def __init__(self, rate: float, burst: int, clock: Callable[[], float] = time.monotonic) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self._rate = rate
        self._burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._last_refill = clock()

    @property
    def tokens(self) -> float:
        self._refill()
        return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(float(self._burst), self._tokens + (now - self._last_refill) * self._rate)
        self._last_refill = now

    def consume(self) -> bool:
        """Spend one token. False means the caller should drop the frame."""
        self._refill()
        if self._tokens < 1.0:
            return False
        self._tokens -= 1.0
        return True

    def time_until_available(self) -> float:
        """Seconds until the next token can be spent (0.0 if one is available now)."""
        self._refill()
        if self._tokens >= 1.0:
            return 0.0
        return (1.0 - self._tokens) / self._rate
