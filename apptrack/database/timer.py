"""
Retry Timer - a single, replaceable delayed callback.

Only one callback can be pending at a time: scheduling a new one cancels the
previous handle before the new one is installed.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """Anything that can be cancelled, e.g. asyncio.TimerHandle."""

    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def loop_scheduler(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Schedule callback on the running event loop after delay seconds."""
    return asyncio.get_running_loop().call_later(delay, callback)


class RetryTimer:
    """
    Owns at most one pending delayed callback.

    Usage:
        timer = RetryTimer()
        timer.schedule(5.0, retry)   # pending
        timer.schedule(10.0, retry)  # first one cancelled, second pending
        timer.cancel()               # nothing pending
    """

    def __init__(self, scheduler: Scheduler | None = None):
        self._scheduler = scheduler or loop_scheduler
        self._handle: TimerHandle | None = None
        self._delay: float | None = None

    @property
    def pending(self) -> bool:
        """True while a scheduled callback has neither fired nor been cancelled."""
        return self._handle is not None

    @property
    def delay(self) -> float | None:
        """Delay of the pending callback in seconds."""
        return self._delay if self._handle is not None else None

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        """
        Replace any pending callback with callback, due after delay seconds.

        Args:
            delay: Seconds to wait
            callback: Synchronous callable invoked on expiry
        """
        self.cancel()

        def _fire() -> None:
            # Only the currently installed handle may fire
            if self._handle is not handle:
                return
            self._handle = None
            self._delay = None
            callback()

        handle = self._scheduler(delay, _fire)
        self._handle = handle
        self._delay = delay
        logger.debug("Retry timer scheduled in %.1f seconds", delay)

    def cancel(self) -> bool:
        """
        Cancel the pending callback, if any.

        Returns:
            True if a pending callback was cancelled
        """
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        self._delay = None
        logger.debug("Pending retry timer cancelled")
        return True
