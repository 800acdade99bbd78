"""
Fixed-interval scheduler.

Runs one task at a time on the calling thread. The next tick is computed from
the start of the previous run, so a slow run shortens the following wait but
never overlaps it.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional


class FixedIntervalScheduler:
    """Call ``task`` every ``interval`` seconds until ``stop_event`` is set."""

    def __init__(
        self,
        task: Callable[[], object],
        interval: float,
        *,
        stop_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval!r}")
        self.task = task
        self.interval = float(interval)
        self.stop_event = stop_event or threading.Event()
        self.clock = clock
        self.log = logger or logging.getLogger(__name__)
        self.runs = 0

    def run_once(self) -> bool:
        """Run the task once; return False if it raised."""
        self.runs += 1
        try:
            self.task()
            return True
        except Exception:  # pylint: disable=broad-except
            self.log.exception("[scheduler] run %d failed", self.runs)
            return False

    def run_forever(self, *, run_immediately: bool = True, max_runs: Optional[int] = None) -> int:
        """Block until stopped (or ``max_runs`` reached); return the number of runs."""
        if not run_immediately and self.stop_event.wait(self.interval):
            return self.runs
        while not self.stop_event.is_set():
            started = self.clock()
            self.run_once()
            if max_runs is not None and self.runs >= max_runs:
                break
            remaining = self.interval - (self.clock() - started)
            if self.stop_event.wait(max(0.0, remaining)):
                break
        return self.runs

    def stop(self) -> None:
        self.stop_event.set()
