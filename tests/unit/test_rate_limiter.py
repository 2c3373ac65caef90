"""Unit tests for the token bucket."""

from typing import List

import pytest

from year_builder.utils import TokenBucket, Unlimited


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.mark.unit
class TestTokenBucket:
    """Tests for TokenBucket class."""

    def test_first_request_does_not_wait(self) -> None:
        clock = FakeClock()
        bucket = TokenBucket(rate=3.0, capacity=1, clock=clock, sleep=clock.sleep)
        assert bucket.acquire() == 0.0
        assert clock.sleeps == []

    def test_sustained_rate(self) -> None:
        clock = FakeClock()
        bucket = TokenBucket(rate=2.0, capacity=1, clock=clock, sleep=clock.sleep)

        for _ in range(4):
            bucket.acquire()

        assert clock.sleeps == [0.5, 0.5, 0.5]
        assert clock.now == 1.5

    def test_burst(self) -> None:
        clock = FakeClock()
        bucket = TokenBucket(rate=2.0, capacity=3, clock=clock, sleep=clock.sleep)

        assert [bucket.try_acquire() for _ in range(4)] == [True, True, True, False]

        clock.now += 0.5
        assert bucket.try_acquire() is True

    def test_refill_capped_at_capacity(self) -> None:
        clock = FakeClock()
        bucket = TokenBucket(rate=3.0, capacity=2, clock=clock, sleep=clock.sleep)
        clock.now += 60
        assert [bucket.try_acquire() for _ in range(3)] == [True, True, False]

    @pytest.mark.parametrize("rate, capacity", [(0, 1), (-1, 1), (3, 0)])
    def test_invalid_settings(self, rate: float, capacity: float) -> None:
        with pytest.raises(ValueError):
            TokenBucket(rate=rate, capacity=capacity)

    def test_unlimited(self) -> None:
        assert Unlimited().acquire() == 0.0
