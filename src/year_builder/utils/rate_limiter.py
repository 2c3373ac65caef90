"""Token-bucket pacing for calls against the Notion API."""

import time
from typing import Callable


class TokenBucket:
    """Blocking token bucket.

    Each remote call takes one token; tokens refill continuously at
    ``rate`` per second up to ``capacity``. When the bucket is empty,
    ``acquire`` sleeps until a token is available.

    Attributes:
        rate: Tokens added per second
        capacity: Maximum number of stored tokens (burst size)
    """

    def __init__(
        self,
        rate: float = 3.0,
        capacity: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the bucket.

        Args:
            rate: Sustained requests per second
            capacity: Burst size
            clock: Monotonic clock (injectable for tests)
            sleep: Sleep function (injectable for tests)
        """
        if rate <= 0:
            raise ValueError("rate must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self.rate = rate
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = capacity
        self._last_refill = clock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last_refill
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._last_refill = now

    def try_acquire(self) -> bool:
        """Take a token if one is available, without waiting."""
        self._refill()
        if self._tokens >= 1.0:
            self._tokens -= 1.0
            return True
        return False

    def acquire(self) -> float:
        """Take a token, sleeping until one is available.

        Returns:
            Total seconds spent waiting
        """
        waited = 0.0
        while not self.try_acquire():
            wait_time = (1.0 - self._tokens) / self.rate
            self._sleep(wait_time)
            waited += wait_time
        return waited


class Unlimited:
    """Pacing policy that never waits."""

    def acquire(self) -> float:
        return 0.0
