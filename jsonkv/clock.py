from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        """Return the current time as whole seconds since the Unix epoch."""
        ...


class SystemClock(Clock):
    def now(self) -> int:
        return int(time.time())


class ManualClock(Clock):
    """
    Clock that only moves when told to.

    Useful for hosts that drive time themselves (simulations, replays) and for tests.
    """

    def __init__(self, start: int = 0) -> None:
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        self._now += int(seconds)
        return self._now

    def set(self, ts: int) -> None:
        self._now = int(ts)
