from __future__ import annotations

import time
from typing import Callable

from hourlyavg.errors import DeadlineExceededError

Clock = Callable[[], float]


class Deadline:
    """Wall-clock cutoff shared by the fetch and aggregation phases.

    The token is passed explicitly to whoever needs it and polled
    cooperatively; nothing interrupts a blocking read in flight.
    """

    def __init__(self, timeout: float, *, clock: Clock = time.monotonic) -> None:
        self.timeout = float(timeout)
        self._clock = clock
        self._expires_at = clock() + self.timeout

    @classmethod
    def expired(cls, timeout: float = 0.0, *, clock: Clock = time.monotonic) -> "Deadline":
        deadline = cls(timeout, clock=clock)
        deadline._expires_at = float("-inf")
        return deadline

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    def is_expired(self) -> bool:
        return self._clock() >= self._expires_at

    def check(self) -> None:
        if self.is_expired():
            raise DeadlineExceededError(self.timeout)
