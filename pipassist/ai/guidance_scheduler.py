"""
Per-question debounce scheduling.
Only the most recently scheduled task for a key ever runs.
"""

import threading
from typing import Callable, Dict, Optional, Tuple

from pipassist.utils.logging_utils import LoggerMixin

TimerFactory = Callable[[float, Callable[[], None]], threading.Timer]


def _daemon_timer(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    return timer


class GuidanceScheduler(LoggerMixin):
    """Cancellable delayed tasks keyed by question id.

    Scheduling a key replaces any pending task for that key. Tasks for
    different keys never affect each other. A task that has already started
    running is not interrupted.
    """

    def __init__(self, delay: float = 1.0, timer_factory: Optional[TimerFactory] = None):
        self.delay = delay
        self._timer_factory = timer_factory or _daemon_timer
        self._lock = threading.Lock()
        self._pending: Dict[str, Tuple[int, threading.Timer]] = {}
        self._generation = 0

    def schedule(self, key: str, task: Callable[[], None]) -> None:
        with self._lock:
            self._cancel_locked(key)
            self._generation += 1
            generation = self._generation
            timer = self._timer_factory(self.delay, lambda: self._fire(key, generation, task))
            self._pending[key] = (generation, timer)
        timer.start()

    def cancel(self, key: str) -> bool:
        with self._lock:
            return self._cancel_locked(key)

    def cancel_all(self) -> None:
        with self._lock:
            for key in list(self._pending):
                self._cancel_locked(key)

    def pending(self, key: str) -> bool:
        with self._lock:
            return key in self._pending

    def _cancel_locked(self, key: str) -> bool:
        entry = self._pending.pop(key, None)
        if entry is None:
            return False
        entry[1].cancel()
        self.logger.debug(f"Cancelled pending guidance for '{key}'")
        return True

    def _fire(self, key: str, generation: int, task: Callable[[], None]) -> None:
        with self._lock:
            entry = self._pending.get(key)
            # A newer schedule superseded this timer after it had already fired
            if entry is None or entry[0] != generation:
                return
            del self._pending[key]
        task()
