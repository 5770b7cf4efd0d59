"""
Expiry Scheduler

One-shot timers that expire unclaimed transfers once their TTL elapses.
"""

import logging
import threading
from datetime import timedelta
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

ExpiryCallback = Callable[[str], object]
TimerFactory = Callable[[float, Callable[[], None]], object]


def _thread_timer(interval: float, function: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer


class ExpiryScheduler:
    """
    Schedules a single callback per identifier after its TTL.

    A timer that fires after its transfer was already consumed is harmless:
    the callback is the store's idempotent expire path. Cancelling on
    consumption only releases the timer early.

    The timer factory must return an object with start() and cancel();
    threading.Timer is used by default.
    """

    def __init__(self, timer_factory: Optional[TimerFactory] = None):
        self._timer_factory = timer_factory or _thread_timer
        self._timers: Dict[str, object] = {}
        self._lock = threading.Lock()
        self._closed = False

    def schedule(self, identifier: str, ttl: timedelta, callback: ExpiryCallback) -> None:
        """
        Arm a one-shot timer that calls callback(identifier) after ttl.

        Args:
            identifier: Transfer identifier
            ttl: Delay before the callback runs
            callback: Function invoked with the identifier
        """
        def fire() -> None:
            with self._lock:
                self._timers.pop(identifier, None)
            try:
                callback(identifier)
            except Exception as e:
                logger.error(
                    f"Expiry callback failed for transfer {identifier[:8]}: {e}",
                    exc_info=True,
                )

        timer = self._timer_factory(max(ttl.total_seconds(), 0.0), fire)
        with self._lock:
            if self._closed:
                logger.debug(f"Scheduler closed, not arming timer for {identifier[:8]}")
                return
            previous = self._timers.pop(identifier, None)
            self._timers[identifier] = timer
        if previous is not None:
            previous.cancel()
        timer.start()

    def cancel(self, identifier: str) -> bool:
        """Cancel a pending timer. Returns False if none was pending."""
        with self._lock:
            timer = self._timers.pop(identifier, None)
        if timer is None:
            return False
        timer.cancel()
        return True

    def pending(self) -> int:
        with self._lock:
            return len(self._timers)

    def shutdown(self) -> None:
        """Cancel every pending timer and refuse new ones."""
        with self._lock:
            self._closed = True
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        logger.debug(f"Expiry scheduler stopped, cancelled {len(timers)} timer(s)")
