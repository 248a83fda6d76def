"""
Tests for the retry building blocks: ReconnectionStrategy and RetryTimer.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from apptrack.database.reconnection import ReconnectionConfig, ReconnectionStrategy
from apptrack.database.timer import RetryTimer

from conftest import RecordingScheduler


class TestReconnectionStrategy:
    def test_defaults(self):
        strategy = ReconnectionStrategy()

        assert strategy.config.base_delay == 5.0
        assert strategy.config.max_attempts == 5
        assert strategy.attempt_count == 0

    def test_exponential_delays(self):
        strategy = ReconnectionStrategy()
        delays = []
        for _ in range(5):
            strategy.record_failure()
            delays.append(strategy.calculate_delay())

        assert delays == [5.0, 10.0, 20.0, 40.0, 80.0]

    def test_should_retry_below_cap(self):
        strategy = ReconnectionStrategy(config=ReconnectionConfig(max_attempts=2))

        assert strategy.record_failure() == 1
        assert strategy.should_retry() is True
        assert strategy.record_failure() == 2
        assert strategy.should_retry() is False

    def test_reset(self):
        strategy = ReconnectionStrategy()
        strategy.record_failure()
        strategy.record_failure()

        strategy.reset()

        assert strategy.attempt_count == 0
        assert strategy.calculate_delay() == 5.0

    def test_custom_base_delay(self):
        strategy = ReconnectionStrategy(config=ReconnectionConfig(base_delay=0.5))
        strategy.record_failure()
        strategy.record_failure()

        assert strategy.calculate_delay() == 1.0

    def test_get_status(self):
        strategy = ReconnectionStrategy()
        strategy.record_failure()

        assert strategy.get_status() == {
            "attempt_count": 1,
            "max_attempts": 5,
            "next_delay": 5.0,
            "should_retry": True,
        }


class TestRetryTimer:
    def test_schedule_marks_pending(self):
        scheduler = RecordingScheduler()
        timer = RetryTimer(scheduler)

        timer.schedule(5.0, MagicMock())

        assert timer.pending is True
        assert timer.delay == 5.0
        assert scheduler.delays == [5.0]

    def test_reschedule_cancels_previous(self):
        scheduler = RecordingScheduler()
        timer = RetryTimer(scheduler)

        timer.schedule(5.0, MagicMock())
        timer.schedule(10.0, MagicMock())

        assert scheduler.handles[0].cancelled is True
        assert [h.delay for h in scheduler.active] == [10.0]
        assert timer.delay == 10.0

    def test_fire_clears_pending_and_runs_callback(self):
        scheduler = RecordingScheduler()
        timer = RetryTimer(scheduler)
        callback = MagicMock()
        timer.schedule(5.0, callback)

        scheduler.fire_latest()

        callback.assert_called_once_with()
        assert timer.pending is False
        assert timer.delay is None

    def test_superseded_handle_never_runs(self):
        scheduler = RecordingScheduler()
        timer = RetryTimer(scheduler)
        stale = MagicMock()
        timer.schedule(5.0, stale)
        timer.schedule(10.0, MagicMock())

        scheduler.handles[0].callback()

        stale.assert_not_called()
        assert timer.pending is True

    def test_cancel(self):
        scheduler = RecordingScheduler()
        timer = RetryTimer(scheduler)
        timer.schedule(5.0, MagicMock())

        assert timer.cancel() is True
        assert timer.cancel() is False
        assert scheduler.handles[0].cancelled is True
        assert timer.pending is False


@pytest.mark.asyncio
async def test_default_scheduler_uses_event_loop():
    timer = RetryTimer()
    fired = asyncio.Event()

    timer.schedule(0.01, fired.set)
    await asyncio.wait_for(fired.wait(), timeout=1)

    assert timer.pending is False


@pytest.mark.asyncio
async def test_default_scheduler_cancel():
    timer = RetryTimer()
    callback = MagicMock()

    timer.schedule(0.01, callback)
    timer.cancel()
    await asyncio.sleep(0.05)

    callback.assert_not_called()
