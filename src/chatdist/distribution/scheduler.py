"""
Fixed-interval refresh trigger.

Runs one refresh cycle as soon as it starts, then one every
REFRESH_INTERVAL_MINUTES, on a daemon thread.
"""

import threading
from typing import Callable, Optional

from chatdist.constants import DEFAULT_REFRESH_INTERVAL_MINUTES, SCHEDULER_JOIN_TIMEOUT
from chatdist.log_utils import logger


class RefreshScheduler:
    """
    Background timer around a refresh callable.

    The first cycle runs immediately on the worker thread so that start()
    returns without waiting for providers. Exceptions raised by a cycle are
    logged and the loop keeps going.
    """

    def __init__(
        self,
        refresh: Callable[[], object],
        interval_minutes: float = DEFAULT_REFRESH_INTERVAL_MINUTES,
        run_on_start: bool = True,
    ):
        self.refresh = refresh
        self.interval_seconds = float(interval_minutes) * 60.0
        self.run_on_start = run_on_start
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            logger.debug("Refresh scheduler already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="chatdist-refresh", daemon=True
        )
        self._thread.start()
        logger.info(
            f"Refresh scheduler started (every {self.interval_seconds / 60:g} minutes)"
        )

    def stop(self, timeout: float = SCHEDULER_JOIN_TIMEOUT) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning(f"Refresh scheduler did not stop within {timeout:.1f} seconds")
        self._thread = None
        logger.info("Refresh scheduler stopped")

    def _run_once(self) -> None:
        try:
            self.refresh()
        except Exception as e:
            logger.error(f"Error in scheduled refresh: {e}", exc_info=True)

    def _run(self) -> None:
        if self.run_on_start and not self._stop_event.is_set():
            logger.info("Running startup distribution refresh...")
            self._run_once()

        while not self._stop_event.wait(self.interval_seconds):
            logger.info("Running scheduled distribution refresh...")
            self._run_once()
