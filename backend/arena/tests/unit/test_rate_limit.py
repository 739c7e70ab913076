"""Tests for the token bucket rate limiter."""

import pytest

from arena.server.rate_limit import TokenBucket


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


class TestTokenBucket:
    def test_burst_allowed_immediately(self, clock):
        bucket = TokenBucket(rate=1.0, burst=5, clock=clock)
        assert all(bucket.consume() for _ in range(5))
        assert bucket.consume() is False

    def test_refill_restores_tokens(self, clock):
        bucket = TokenBucket(rate=10.0, burst=5, clock=clock)
        for _ in range(5):
            bucket.consume()

        clock.now += 0.25

        assert bucket.consume() is True
        assert bucket.consume() is True
        assert bucket.consume() is False

    def test_refill_capped_at_burst(self, clock):
        bucket = TokenBucket(rate=10.0, burst=3, clock=clock)
        clock.now += 1000

        assert bucket.tokens == 3.0
        assert all(bucket.consume() for _ in range(3))
        assert bucket.consume() is False

    def test_time_until_available(self, clock):
        bucket = TokenBucket(rate=4.0, burst=1, clock=clock)
        assert bucket.time_until_available() == 0.0

        bucket.consume()

        assert bucket.time_until_available() == pytest.approx(0.25)
        clock.now += 0.1
        assert bucket.time_until_available() == pytest.approx(0.15)

    @pytest.mark.parametrize(("rate", "burst"), [(0.0, 1), (-1.0, 1), (1.0, 0)])
    def test_invalid_parameters_rejected(self, rate, burst):
        with pytest.raises(ValueError):
            TokenBucket(rate=rate, burst=burst)
