"""
Periodic re-scan loop for watch mode.

The watcher only schedules; each check is an ordinary batch run supplied by
the caller. Stopping is cooperative through a threading.Event, so stop() can
be called from a signal handler or another thread and takes effect during
the wait between checks.
"""

import threading
from datetime import datetime
from typing import Any, Callable, Optional

from ..utils.logger_setup import get_logger

logger = get_logger(__name__)


class Watcher:
    """Runs a check function repeatedly until stopped."""

    def __init__(self, check: Callable[[], Any], interval_seconds: float,
                 stop_event: Optional[threading.Event] = None):
        """
        Initialize Watcher.

        Args:
            check: Function run once per iteration
            interval_seconds: Pause between the end of one check and the next
            stop_event: Event that ends the loop when set (optional)
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive: {interval_seconds}")
        self.check = check
        self.interval_seconds = interval_seconds
        self.stop_event = stop_event or threading.Event()
        self.iterations = 0
        self.last_run: Optional[datetime] = None

    def run(self, max_iterations: Optional[int] = None) -> int:
        """
        Run checks until stopped or max_iterations is reached.

        An exception raised by a check is logged and the loop continues
        with the next iteration.

        Args:
            max_iterations: Stop after this many checks (None: run until stopped)

        Returns:
            Number of checks performed
        """
        logger.info(f"Watch mode started (every {self.interval_seconds:g}s)")
        while not self.stop_event.is_set():
            self.last_run = datetime.now()
            try:
                self.check()
            except Exception as e:
                logger.error(f"Watch check failed: {e}")
            self.iterations += 1

            if max_iterations is not None and self.iterations >= max_iterations:
                break
            # Returns early when stop() is called
            self.stop_event.wait(self.interval_seconds)

        logger.info(f"Watch mode stopped after {self.iterations} check(s)")
        return self.iterations

    def stop(self):
        self.stop_event.set()
