"""
Update triggers delivered to the controller's main loop.

Manual refresh requests, timer fires and screen wakes all arrive here, so
timer and monitor threads only enqueue and never do the work themselves.
"""

import logging
import queue
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

REFRESH = "refresh"
TIMER_FIRE = "timer_fire"
WAKE = "wake"


class Trigger:
    """
    One update request.

    Attributes:
        kind: REFRESH, TIMER_FIRE or WAKE
        surface_type: Surface type for TIMER_FIRE
        instance_id: Triggering instance for TIMER_FIRE (may be None)
    """

    def __init__(self, kind: str, surface_type: Optional[str] = None, instance_id: Optional[str] = None):
        self.kind = kind
        self.surface_type = surface_type
        self.instance_id = instance_id

    def __repr__(self) -> str:
        if self.kind == TIMER_FIRE:
            return f"<Trigger({self.kind}, {self.surface_type}, {self.instance_id})>"
        return f"<Trigger({self.kind})>"


class TriggerQueue:
    """Thread-safe queue of pending triggers."""

    def __init__(self):
        self._queue: "queue.Queue[Trigger]" = queue.Queue()

    def post_refresh(self) -> None:
        """Request an immediate manual refresh."""
        self._queue.put(Trigger(REFRESH))

    def post_timer_fire(self, surface_type: str, instance_id: Optional[str] = None) -> None:
        """Deliver a timer fire for a surface type."""
        self._queue.put(Trigger(TIMER_FIRE, surface_type, instance_id))

    def post_wake(self) -> None:
        """Report that the screen was unlocked."""
        self._queue.put(Trigger(WAKE))

    def process(self, handler: Callable[[Trigger], Any], timeout: Optional[float] = None) -> bool:
        """
        Hand the next trigger to handler.

        Args:
            handler: Called with the trigger
            timeout: Seconds to wait for one (None blocks)

        Returns:
            True if a trigger was processed
        """
        try:
            trigger = self._queue.get(timeout=timeout)
        except queue.Empty:
            return False

        try:
            handler(trigger)
        except Exception as e:
            logger.error(f"Error handling {trigger}: {e}", exc_info=True)
        finally:
            self._queue.task_done()
        return True

    def pending(self) -> int:
        return self._queue.qsize()
