"""
DirSync periodic scheduler.

Runs the sync engine at a fixed interval. The time spent in a run is
subtracted from the following sleep; a run that takes longer than the
interval is reported as an overrun and the next run starts immediately.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from rich.console import Console

from dirsync.core.logging import SyncLogger, get_logger
from dirsync.sync.engine import SyncEngine

logger = get_logger(__name__)


def format_shortfall(seconds: float) -> str:
    """Render a duration as ``hh:mm:ss.fff``."""
    millis = int(round(abs(seconds) * 1000))
    hours, rest = divmod(millis, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"


class SyncScheduler:
    """Repeatedly invokes the sync engine until stopped."""

    def __init__(
        self,
        engine: SyncEngine,
        interval_seconds: int | None,
        sync_logger: SyncLogger,
        countdown_seconds: int = 5,
        clock: Callable[[], float] = time.monotonic,
        console: Console | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.engine = engine
        self.interval_seconds = interval_seconds
        self.sync_logger = sync_logger
        self.countdown_seconds = countdown_seconds
        self.clock = clock
        self.console = console or Console()
        self.runs = 0
        self.failed_runs = 0
        self._stop = stop_event or threading.Event()

    def stop(self) -> None:
        """Ask the loop to finish; interrupts a pending sleep."""
        self._stop.set()

    def start(self) -> bool:
        """
        Run the sync loop until ``stop()`` is called.

        Returns False without running anything when no positive interval
        is configured.
        """
        if self.interval_seconds is None or self.interval_seconds <= 0:
            self.sync_logger.error("Interval is not set.")
            return False

        self._countdown()
        interval = float(self.interval_seconds)

        while not self._stop.is_set():
            started = self.clock()
            self._run_once()
            elapsed = self.clock() - started

            remaining = interval - elapsed
            if remaining > 0:
                self._stop.wait(remaining)
            else:
                self.sync_logger.error(
                    "Synchronization took longer than the specified interval. "
                    f"Starting the next session with a delay of {format_shortfall(remaining)}. "
                    "Adjust the settings or system environment for correct operation."
                )

        logger.info("Scheduler stopped", runs=self.runs, failed_runs=self.failed_runs)
        return True

    def _run_once(self) -> None:
        self.runs += 1
        try:
            success = self.engine.run().success
        except Exception as e:
            self.sync_logger.error(f"Synchronization run aborted unexpectedly: {e!r}")
            logger.exception("Unexpected error during sync run", run=self.runs)
            success = False

        if not success:
            self.failed_runs += 1
            self.sync_logger.message(
                "Errors during synchronization of directories, check error log for details"
            )

    def _countdown(self) -> None:
        for remaining in range(self.countdown_seconds, 0, -1):
            if self._stop.is_set():
                return
            self.console.print(f"Sync session beginning in {remaining}...", end="\r")
            self._stop.wait(1)
        if self.countdown_seconds:
            self.console.print()
