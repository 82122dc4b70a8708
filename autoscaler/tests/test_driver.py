#!/usr/bin/env python3
"""
Tests for the fixed-delay scaler driver
"""

import threading
import time
from datetime import timedelta
from unittest.mock import Mock

import pytest

from bigtable_autoscaler.core import ScalerDriver
from bigtable_autoscaler.core.driver import EXIT_FATAL, EXIT_OK
from bigtable_autoscaler.exceptions import ScalerFatalError


class RecordingScaler:
    """Scaler stand-in that records tick start/end times"""

    def __init__(self, duration: float = 0.0, fail_on: int = 0):
        self.duration = duration
        self.fail_on = fail_on
        self.starts = []
        self.ends = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def tick(self):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.starts.append(time.monotonic())
        try:
            if self.fail_on and len(self.starts) == self.fail_on:
                raise ScalerFatalError("giving up")
            time.sleep(self.duration)
        finally:
            self.ends.append(time.monotonic())
            with self._lock:
                self.active -= 1


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestScalerDriver:
    """Test cases for ScalerDriver"""

    def test_first_tick_runs_immediately(self):
        scaler = RecordingScaler()
        driver = ScalerDriver(scaler, timedelta(seconds=60))

        driver.start()
        assert wait_for(lambda: len(scaler.starts) == 1)
        driver.stop()

        assert driver.wait(poll_interval=0.05) == EXIT_OK
        assert len(scaler.starts) == 1

    def test_delay_is_measured_from_end_of_tick(self):
        scaler = RecordingScaler(duration=0.1)
        driver = ScalerDriver(scaler, timedelta(seconds=0.1))

        driver.start()
        assert wait_for(lambda: len(scaler.starts) >= 3)
        driver.stop()
        driver.wait(poll_interval=0.05)

        for previous_end, next_start in zip(scaler.ends, scaler.starts[1:]):
            assert next_start - previous_end >= 0.09

    def test_never_runs_ticks_concurrently(self):
        scaler = RecordingScaler(duration=0.02)
        driver = ScalerDriver(scaler, timedelta(0))

        driver.start()
        assert wait_for(lambda: len(scaler.starts) >= 10)
        driver.stop()
        driver.wait(poll_interval=0.05)

        assert scaler.max_active == 1

    def test_fatal_error_stops_loop_with_non_zero_exit(self):
        scaler = RecordingScaler(fail_on=2)
        driver = ScalerDriver(scaler, timedelta(seconds=0.01))

        driver.start()
        exit_code = driver.wait(poll_interval=0.05)

        assert exit_code == EXIT_FATAL
        assert isinstance(driver.fatal_error, ScalerFatalError)
        assert len(scaler.starts) == 2
        assert not driver.running

    def test_stop_lets_in_flight_tick_finish(self):
        scaler = RecordingScaler(duration=0.3)
        driver = ScalerDriver(scaler, timedelta(seconds=60))

        driver.start()
        assert wait_for(lambda: len(scaler.starts) == 1)
        driver.stop()
        driver.wait(poll_interval=0.05)

        assert len(scaler.ends) == 1

    def test_cannot_start_twice(self):
        driver = ScalerDriver(RecordingScaler(), timedelta(seconds=60))
        driver.start()
        try:
            with pytest.raises(RuntimeError):
                driver.start()
        finally:
            driver.stop()
            driver.wait(poll_interval=0.05)

    def test_run_once(self):
        scaler = Mock()
        driver = ScalerDriver(scaler, timedelta(seconds=60))

        assert driver.run_once() == EXIT_OK
        scaler.tick.assert_called_once_with()

    def test_run_once_reports_skipped_tick(self):
        scaler = Mock()
        scaler.tick.return_value = False
        driver = ScalerDriver(scaler, timedelta(seconds=60))

        assert driver.run_once() == EXIT_FATAL
        assert driver.fatal_error is None

    def test_run_once_reports_fatal_error(self):
        scaler = Mock()
        scaler.tick.side_effect = ScalerFatalError("boom")
        driver = ScalerDriver(scaler, timedelta(seconds=60))

        assert driver.run_once() == EXIT_FATAL
