"""
Reconnection Strategy - Tracks failed attempts and computes backoff delays.

Single Responsibility: Retry counting and delay calculation. Scheduling is
left to the caller (see RetryTimer).
"""

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class ReconnectionConfig:
    """Configuration for reconnection behavior."""

    base_delay: float = 5.0
    max_attempts: int = 5


@dataclass
class ReconnectionStrategy:
    """
    Tracks consecutive connection failures and computes exponential backoff.

    Algorithm:
        wait_time = base_delay * (2 ^ (attempt - 1))

    Example progression (base_delay=5, max_attempts=5):
        Attempt 1 failed: retry in 5s
        Attempt 2 failed: retry in 10s
        Attempt 3 failed: retry in 20s
        Attempt 4 failed: retry in 40s
        Attempt 5 failed: no further retry

    Usage:
        strategy = ReconnectionStrategy(config=ReconnectionConfig(base_delay=5))

        strategy.record_failure()
        if strategy.should_retry():
            timer.schedule(strategy.calculate_delay(), retry)
    """

    config: ReconnectionConfig = field(default_factory=ReconnectionConfig)
    _attempt_count: int = field(default=0, init=False)

    @property
    def attempt_count(self) -> int:
        """Consecutive failed attempts since the last reset."""
        return self._attempt_count

    def record_failure(self) -> int:
        """
        Record a connection failure.

        Returns:
            The updated attempt count
        """
        self._attempt_count += 1
        return self._attempt_count

    def reset(self) -> None:
        """Reset attempt counter after a successful connection or a fresh cycle."""
        if self._attempt_count > 0:
            logger.debug(
                "Resetting retry counter after %d failed attempts",
                self._attempt_count,
            )
        self._attempt_count = 0

    def should_retry(self) -> bool:
        """
        Check if another automatic attempt should be scheduled.

        Returns:
            True while the attempt count is below max_attempts
        """
        return self._attempt_count < self.config.max_attempts

    def calculate_delay(self) -> float:
        """
        Calculate delay before the next attempt.

        Returns:
            Delay in seconds; base_delay when no failure has been recorded
        """
        if self._attempt_count == 0:
            return self.config.base_delay

        return self.config.base_delay * (2 ** (self._attempt_count - 1))

    def get_status(self) -> dict:
        """
        Get current retry status.

        Returns:
            Dict with attempt count, max attempts, and next delay
        """
        return {
            "attempt_count": self._attempt_count,
            "max_attempts": self.config.max_attempts,
            "next_delay": self.calculate_delay(),
            "should_retry": self.should_retry(),
        }
