#!/usr/bin/env python3
"""
Scheduler that runs scaler ticks with a fixed delay on a single worker thread
"""

import logging
import threading
from datetime import timedelta
from typing import Optional

from .scaler import Scaler

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1


class ScalerDriver:
    """
    Invokes Scaler.tick() on one dedicated worker thread

    The delay is measured from the end of one tick to the start of the next,
    so a long resize pushes the following tick back instead of piling up.
    Any exception escaping a tick stops the worker; wait() then reports a
    non-zero exit code and the process is expected to exit.
    """

    def __init__(self, scaler: Scaler, interval: timedelta):
        self.scaler = scaler
        self.interval = interval
        self.fatal_error: Optional[BaseException] = None
        self.tick_count = 0
        self.last_tick_completed = False

        self._stop_event = threading.Event()
        self._worker: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self) -> None:
        if self._worker is not None:
            raise RuntimeError("Driver already started")
        self._worker = threading.Thread(target=self._run_loop, name="scaler-worker", daemon=True)
        self._worker.start()
        logger.info(f"Starting autoscaling loop with {self.interval.total_seconds()}s interval")

    def stop(self) -> None:
        """Stop scheduling new ticks; an in-flight tick is allowed to finish"""
        if not self._stop_event.is_set():
            logger.info("Stopping autoscaling loop")
        self._stop_event.set()

    def wait(self, poll_interval: float = 0.5) -> int:
        """
        Block until the worker exits

        Joins in short slices so signal handlers keep running on the main thread.

        Returns:
            EXIT_OK after a clean stop, EXIT_FATAL after a fatal tick error
        """
        if self._worker is not None:
            while self._worker.is_alive():
                self._worker.join(poll_interval)
        return EXIT_FATAL if self.fatal_error is not None else EXIT_OK

    def run_once(self) -> int:
        """
        Run a single tick on the calling thread

        A tick skipped because of a transient cluster service error counts
        as a failure.
        """
        if not self._tick():
            return EXIT_FATAL
        if not self.last_tick_completed:
            logger.error("Single tick did not complete, see the error above")
            return EXIT_FATAL
        return EXIT_OK

    def _tick(self) -> bool:
        self.tick_count += 1
        try:
            self.last_tick_completed = self.scaler.tick() is not False
            return True
        except Exception as e:
            logger.critical(f"Fatal error in autoscaling tick #{self.tick_count}: {e}", exc_info=True)
            self.fatal_error = e
            self._stop_event.set()
            return False

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            if not self._tick():
                break
            self._stop_event.wait(self.interval.total_seconds())
        logger.info("Autoscaling loop stopped")
