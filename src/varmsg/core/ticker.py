"""Fixed-period timing pulses."""

from __future__ import annotations

import threading
import time
from typing import Callable


class Ticker:
    """Delivers one pulse per period to a blocking caller.

    Deadlines are computed from the start time, so a slow pulse does not
    push every later pulse back. Deadlines missed while the caller was busy
    coalesce into a single pulse, and the next deadline is the first one
    still in the future.
    """

    def __init__(self, period: float = 1.0, clock: Callable[[], float] = time.monotonic) -> None:
        if period <= 0:
            raise ValueError("Ticker period must be positive")
        self.period = period
        self._clock = clock
        self._stopped = threading.Event()
        self._next = clock() + period

    @property
    def next_deadline(self) -> float:
        return self._next

    def wait(self) -> bool:
        """Block until the next pulse; return False once the ticker is stopped."""

        while not self._stopped.is_set():
            remaining = self._next - self._clock()
            if remaining <= 0:
                missed = int(-remaining // self.period)
                self._next += (missed + 1) * self.period
                return True
            self._stopped.wait(remaining)
        return False

    def stop(self) -> None:
        """Stop the ticker; a blocked wait() returns False promptly."""

        self._stopped.set()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()
