"""
Monotonic clock and timed polling.

Every wait in the harness goes through a Clock so that polling intervals,
timeouts and elapsed-time measurements can be driven deterministically in
tests.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable

logger = logging.getLogger(__name__)


class Clock(ABC):
    """Millisecond monotonic clock with an explicit sleep suspension point."""

    @abstractmethod
    def monotonic_ms(self) -> float:
        pass

    @abstractmethod
    def sleep_ms(self, duration_ms: float) -> None:
        pass


class SystemClock(Clock):
    """Clock backed by `time.monotonic` and `time.sleep`."""

    def monotonic_ms(self) -> float:
        return time.monotonic() * 1000.0

    def sleep_ms(self, duration_ms: float) -> None:
        if duration_ms > 0:
            time.sleep(duration_ms / 1000.0)


def poll_until(
    condition: Callable[[], bool],
    timeout_ms: float,
    interval_ms: float,
    clock: Clock,
) -> bool:
    """
    Evaluate `condition` every `interval_ms` until it holds or `timeout_ms` elapses.

    The condition is checked once immediately. The last sleep is shortened so
    the loop never overshoots the timeout by more than one check.

    Returns:
        True if the condition held before the timeout, False otherwise.
    """
    deadline = clock.monotonic_ms() + timeout_ms
    while True:
        if condition():
            return True
        remaining = deadline - clock.monotonic_ms()
        if remaining <= 0:
            return False
        clock.sleep_ms(min(interval_ms, remaining))
