"""Background timer that periodically refreshes every feed contact."""

import logging
import threading
import time
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_PERIOD = 300  # 5 minutes
DEFAULT_INITIAL_DELAY = 150


class SchedulerState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class RefreshScheduler:
    """Runs a task once after an initial delay, then at a fixed rate.

    Each start() gets its own stop event and thread, so a timer that was
    stopped never fires again even if a new one is started right after.
    A run in progress when stop() is called is allowed to finish.
    Periods missed while a run overruns are dropped rather than run back
    to back.
    """

    def __init__(
        self,
        task: Callable[[], None],
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        period: float = DEFAULT_REFRESH_PERIOD,
        name: str = "feed-refresh-timer",
    ):
        if period <= 0:
            raise ValueError("Refresh period must be positive")
        self.task = task
        self.initial_delay = initial_delay
        self.period = period
        self.name = name
        self._lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            if self._stop_event is None:
                return SchedulerState.STOPPED
            return SchedulerState.RUNNING

    def start(self) -> None:
        """Start the timer. Does nothing if it is already running."""
        with self._lock:
            if self._stop_event is not None:
                return

            logger.debug("Creating refresh timer (delay %ss, period %ss)",
                         self.initial_delay, self.period)
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                daemon=True,
                name=self.name,
            )
            self._stop_event = stop_event
            self._thread = thread
            thread.start()

    def stop(self) -> None:
        """Cancel the timer. Does nothing if it is not running."""
        with self._lock:
            if self._stop_event is None:
                return
            self._stop_event.set()
            self._stop_event = None
            self._thread = None
        logger.debug("Refresh timer stopped")

    def _run(self, stop_event: threading.Event) -> None:
        next_run = time.monotonic() + self.initial_delay
        while not stop_event.wait(max(0.0, next_run - time.monotonic())):
            try:
                self.task()
            except Exception:
                logger.exception("Scheduled refresh failed")
            # Periods missed while a sweep overran are skipped, not replayed
            next_run = max(next_run + self.period, time.monotonic())
