"""Cooldown timer used to throttle expensive per-module recomputation."""

import time
from typing import Callable, Optional


class Interval:
    """
    Fires at most once per period.

    The first check always fires. The clock is injectable so tests can drive
    time explicitly.
    """

    def __init__(self, period_s: float, clock: Callable[[], float] = time.monotonic):
        if period_s < 0:
            raise ValueError("Interval period must not be negative")
        self.period_s = period_s
        self._clock = clock
        self._last: Optional[float] = None

    def check(self) -> bool:
        """Return True and restart the period if it has elapsed."""
        now = self._clock()
        if self._last is None or now - self._last >= self.period_s:
            self._last = now
            return True
        return False

    def reset(self) -> None:
        """Make the next check fire immediately."""
        self._last = None

    @property
    def remaining_s(self) -> float:
        """Time until the next check can fire."""
        if self._last is None:
            return 0.0
        return max(0.0, self.period_s - (self._clock() - self._last))
