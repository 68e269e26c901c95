"""Utilities for spacing out calls against the backend APIs."""
from __future__ import annotations

import time
from typing import Callable, Optional


class RateLimiter:
    """Enforces a minimum interval between consecutive calls.

    The first call never waits. The pipeline is single-threaded so no locking
    is required.
    """

    def __init__(
        self,
        min_interval: Optional[float] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._interval = float(min_interval) if min_interval else 0.0
        self._clock = clock
        self._sleep = sleep
        self._next_available = 0.0

    @property
    def interval(self) -> float:
        return self._interval

    def acquire(self) -> None:
        if self._interval <= 0:
            return
        now = self._clock()
        if now < self._next_available:
            self._sleep(self._next_available - now)
            now = self._clock()
        self._next_available = now + self._interval
