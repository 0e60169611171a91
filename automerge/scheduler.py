"""Timer-based scheduling for delayed mergeability probes."""

import logging
import threading
from threading import Lock
from typing import Callable, List, Optional


class DelayedProbeScheduler:
    """Runs callbacks once after a fixed delay on daemon timer threads."""

    def __init__(self):
        self._timers: List[threading.Timer] = []
        self._lock = Lock()

    def schedule(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        """Run ``callback`` once after ``delay`` seconds.

        Args:
            delay: Seconds to wait
            callback: Function taking no arguments

        Returns:
            The started timer
        """
        timer = threading.Timer(delay, self._run, args=(callback,))
        timer.daemon = True
        with self._lock:
            self._timers = [t for t in self._timers if t.is_alive()]
            self._timers.append(timer)
        timer.start()
        return timer

    def _run(self, callback: Callable[[], None]):
        try:
            callback()
        except Exception as e:
            logging.error(f"Delayed probe failed: {e}", exc_info=True)

    def pending(self) -> int:
        """Number of timers that have not finished yet."""
        with self._lock:
            return sum(1 for t in self._timers if t.is_alive())

    def join(self, timeout: Optional[float] = None):
        """Wait for every scheduled callback to finish."""
        with self._lock:
            timers = list(self._timers)
        for timer in timers:
            timer.join(timeout)

    def cancel_all(self):
        """Cancel timers that have not fired yet."""
        with self._lock:
            for timer in self._timers:
                timer.cancel()
            self._timers = []
