"""
Alarm clock abstraction used by the refresh scheduler.

An alarm is identified by a key; setting an alarm for a key that already has
one pending replaces it, so a key never has more than one pending alarm.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Hashable

logger = logging.getLogger(__name__)


class AlarmClock(ABC):
    """Base class for one-shot alarm services."""

    @abstractmethod
    def set(self, key: Hashable, delay: float, callback: Callable[..., Any], *args: Any) -> None:
        """
        Schedule callback(*args) after delay seconds, replacing any alarm for key.

        Args:
            key: Alarm identity
            delay: Seconds from now
            callback: Called when the alarm goes off
        """
        pass

    @abstractmethod
    def cancel(self, key: Hashable) -> bool:
        """
        Cancel the pending alarm for key.

        Returns:
            True if an alarm was pending
        """
        pass

    @abstractmethod
    def is_pending(self, key: Hashable) -> bool:
        """Check whether key has a pending alarm."""
        pass

    @abstractmethod
    def cancel_all(self) -> None:
        """Cancel every pending alarm."""
        pass


class ThreadingAlarmClock(AlarmClock):
    """
    Alarm clock backed by one daemon threading.Timer per key.

    Callbacks run on the timer thread and should only hand work off
    (e.g. post a trigger), not do it.
    """

    def __init__(self):
        self._timers: Dict[Hashable, threading.Timer] = {}
        self._lock = threading.Lock()

    def set(self, key: Hashable, delay: float, callback: Callable[..., Any], *args: Any) -> None:
        timer = threading.Timer(delay, self._fire, args=(key, callback) + args)
        timer.daemon = True
        timer.name = f"Alarm-{key}"

        with self._lock:
            previous = self._timers.pop(key, None)
            if previous:
                previous.cancel()
            self._timers[key] = timer
            timer.start()

        logger.debug(f"Alarm {key} set for {delay:.0f}s")

    def _fire(self, key: Hashable, callback: Callable[..., Any], *args: Any) -> None:
        with self._lock:
            current = self._timers.get(key)
            # Only forget the entry if it is still this timer
            if current is not None and current is threading.current_thread():
                del self._timers[key]

        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Error in alarm {key} callback: {e}", exc_info=True)

    def cancel(self, key: Hashable) -> bool:
        with self._lock:
            timer = self._timers.pop(key, None)
        if timer is None:
            return False
        timer.cancel()
        logger.debug(f"Alarm {key} cancelled")
        return True

    def is_pending(self, key: Hashable) -> bool:
        with self._lock:
            timer = self._timers.get(key)
        return timer is not None and timer.is_alive()

    def cancel_all(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
