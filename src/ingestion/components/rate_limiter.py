"""
Fixed-delay pacing for calls against the rate-limited flights API.
"""

import time
from typing import Callable


class FixedDelayTicker:
    """
    Enforces a minimum delay between consecutive ticks.

    The first ``wait()`` returns immediately; each later one sleeps for
    whatever is left of ``delay_seconds`` since the previous tick. Clock
    and sleep are injectable so tests can run without sleeping.
    """

    def __init__(
        self,
        delay_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self.delay_seconds = delay_seconds
        self._clock = clock
        self._sleep = sleep
        self._last_tick: float | None = None

    def wait(self) -> float:
        """Block until the next tick is allowed. Returns seconds slept."""
        slept = 0.0
        if self._last_tick is not None:
            remaining = self.delay_seconds - (self._clock() - self._last_tick)
            if remaining > 0:
                self._sleep(remaining)
                slept = remaining
        self._last_tick = self._clock()
        return slept

    def reset(self) -> None:
        self._last_tick = None


__all__ = ["FixedDelayTicker"]
