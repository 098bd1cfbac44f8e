"""
Refresh scheduling for display surfaces.

Each surface type runs one logical timer owned by one of its active
instances. When the timer fires the type refreshes once, however many
instances it has, and the owner re-arms the next timer. Removing the owner
hands the timer to a remaining sibling straight away.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from .alarm import AlarmClock

logger = logging.getLogger(__name__)


class ScheduleHandle:
    """
    A pending refresh for one surface type.

    Attributes:
        surface_type: Surface type the refresh belongs to
        instance_id: Instance that owns (armed) the timer
        next_fire_time: Epoch seconds the timer is due
    """

    def __init__(self, surface_type: str, instance_id: str, next_fire_time: float):
        self.surface_type = surface_type
        self.instance_id = instance_id
        self.next_fire_time = next_fire_time

    @property
    def alarm_key(self) -> tuple:
        return (self.surface_type, self.instance_id)

    def __repr__(self) -> str:
        return (
            f"<ScheduleHandle(type={self.surface_type}, owner={self.instance_id}, "
            f"due={self.next_fire_time:.0f})>"
        )


class RefreshScheduler:
    """
    Keeps a steady refresh cadence per surface type.

    Responsibilities:
    - Track active instances per surface type, in activation order
    - Arm exactly one timer per type, owned by one instance
    - Fire the refresh callback once per timer, then re-arm
    - Re-elect an owner when the current owner is removed
    """

    DEFAULT_INTERVAL = 300.0

    def __init__(
        self,
        alarm_clock: AlarmClock,
        on_fire: Callable[[str], Any],
        deliver: Optional[Callable[[str, str], Any]] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the scheduler.

        Args:
            alarm_clock: Alarm service the timers are armed on
            on_fire: Called with the surface type when its refresh is due
            deliver: Receives (surface_type, instance_id) when an alarm goes off;
                defaults to calling handle_fire() directly
            clock: Time source returning epoch seconds
        """
        self.alarm_clock = alarm_clock
        self.on_fire = on_fire
        self._deliver = deliver or self.handle_fire
        self._clock = clock
        self._instances: Dict[str, List[str]] = {}
        self._intervals: Dict[str, float] = {}
        self._handles: Dict[str, ScheduleHandle] = {}
        self._lock = threading.RLock()

    def activate(
        self, surface_type: str, instance_id: str, interval: Optional[float] = None
    ) -> Optional[ScheduleHandle]:
        """
        Register an active surface instance.

        Arms the type's timer if none is pending; otherwise the instance
        joins the existing cadence.

        Args:
            surface_type: Surface type of the instance
            instance_id: Unique instance identifier
            interval: Refresh interval in seconds for the type

        Returns:
            The type's pending ScheduleHandle
        """
        with self._lock:
            instances = self._instances.setdefault(surface_type, [])
            if instance_id not in instances:
                instances.append(instance_id)

            if surface_type not in self._intervals:
                self._intervals[surface_type] = interval or self.DEFAULT_INTERVAL
            elif interval and interval != self._intervals[surface_type]:
                logger.warning(
                    f"Ignoring interval {interval}s for {instance_id}; "
                    f"{surface_type} already refreshes every {self._intervals[surface_type]}s"
                )

            handle = self._handles.get(surface_type)
            if handle is None:
                return self.arm(surface_type, instance_id)

            logger.debug(f"{instance_id} joined {surface_type} cadence owned by {handle.instance_id}")
            return handle

    def arm(self, surface_type: str, instance_id: str) -> ScheduleHandle:
        """
        Arm (or re-arm) the type's timer with instance_id as owner.

        Idempotent: any pending timer of this instance, or of another owner
        of the same type, is cancelled first.

        Raises:
            KeyError: If the instance is not active
        """
        with self._lock:
            if instance_id not in self._instances.get(surface_type, []):
                raise KeyError(f"{instance_id} is not an active {surface_type} instance")

            previous = self._handles.pop(surface_type, None)
            if previous is not None:
                self.alarm_clock.cancel(previous.alarm_key)

            interval = self._intervals.get(surface_type, self.DEFAULT_INTERVAL)
            handle = ScheduleHandle(surface_type, instance_id, self._clock() + interval)
            self.alarm_clock.set(handle.alarm_key, interval, self._deliver, surface_type, instance_id)
            self._handles[surface_type] = handle

        logger.debug(f"Next {surface_type} refresh in {interval:.0f}s, owned by {instance_id}")
        return handle

    def handle_fire(self, surface_type: str, instance_id: Optional[str] = None) -> Optional[ScheduleHandle]:
        """
        Run one refresh for a surface type and re-arm its timer.

        Args:
            surface_type: Type whose timer went off
            instance_id: Triggering instance, or None when unknown

        Returns:
            The newly armed handle, or None if the type is idle
        """
        with self._lock:
            instances = list(self._instances.get(surface_type, []))
            if not instances:
                logger.debug(f"Timer fired for {surface_type} with no active instances")
                self._handles.pop(surface_type, None)
                return None

            handle = self._handles.get(surface_type)
            if (
                handle is not None
                and instance_id is not None
                and handle.instance_id != instance_id
                and self.alarm_clock.is_pending(handle.alarm_key)
            ):
                # The timer was handed to another owner after this alarm went off
                logger.debug(f"Ignoring stale {surface_type} timer from {instance_id}")
                return handle

            if handle is not None and handle.instance_id == instance_id:
                self._handles.pop(surface_type, None)

        logger.info(f"Refresh due for {surface_type} ({len(instances)} active)")
        try:
            self.on_fire(surface_type)
        except Exception as e:
            logger.error(f"Error refreshing {surface_type}: {e}", exc_info=True)

        with self._lock:
            instances = self._instances.get(surface_type, [])
            if instance_id is not None and instance_id in instances:
                owner = instance_id
            elif instances:
                owner = instances[0]
                logger.debug(f"Elected {owner} to schedule the next {surface_type} refresh")
            else:
                return None
            return self.arm(surface_type, owner)

    def remove(self, surface_type: str, instance_id: str) -> Optional[ScheduleHandle]:
        """
        Deregister a surface instance and cancel its timer.

        If the instance owned the type's timer and siblings remain, the
        first remaining sibling takes over immediately.

        Returns:
            The type's pending handle after removal, or None if idle
        """
        with self._lock:
            instances = self._instances.get(surface_type, [])
            if instance_id in instances:
                instances.remove(instance_id)

            self.alarm_clock.cancel((surface_type, instance_id))

            handle = self._handles.get(surface_type)
            if handle is not None and handle.instance_id == instance_id:
                del self._handles[surface_type]
                handle = None
                if instances:
                    logger.info(f"{instance_id} removed, handing {surface_type} timer to {instances[0]}")
                    handle = self.arm(surface_type, instances[0])

            if not instances:
                self._instances.pop(surface_type, None)
                self._intervals.pop(surface_type, None)
                logger.debug(f"No {surface_type} instances left, timer idle")

            return handle

    def owner_of(self, surface_type: str) -> Optional[str]:
        """Instance currently owning the type's timer."""
        handle = self._handles.get(surface_type)
        return handle.instance_id if handle else None

    def handle_for(self, instance_id: str) -> Optional[ScheduleHandle]:
        """Pending handle owned by an instance, if any."""
        for handle in list(self._handles.values()):
            if handle.instance_id == instance_id:
                return handle
        return None

    def handles(self) -> List[ScheduleHandle]:
        """All pending handles, one per scheduled surface type."""
        return list(self._handles.values())

    def active_instances(self, surface_type: str) -> List[str]:
        """Active instances of a type in activation order."""
        return list(self._instances.get(surface_type, []))

    def shutdown(self) -> None:
        """Cancel every timer and forget all instances."""
        with self._lock:
            for handle in self._handles.values():
                self.alarm_clock.cancel(handle.alarm_key)
            self._handles.clear()
            self._instances.clear()
            self._intervals.clear()
        logger.debug("Refresh scheduler stopped")
