"""
Screen wake monitoring.

Surfaces are most likely to be looked at right after the screen is
unlocked, so an unlock triggers an immediate (throttled) sync.
"""

import logging
import threading
import time
from typing import Callable, Optional

from ..platforms.base import Platform
from ..utils.errors import error_boundary

logger = logging.getLogger(__name__)


class WakeMonitor:
    """
    Watches the platform's screen lock state in a background thread.

    Calls on_wake() on every locked -> unlocked transition.
    """

    POLL_INTERVAL = 1.0  # Seconds between lock checks

    def __init__(
        self,
        platform: Optional[Platform],
        on_wake: Callable[[], None],
        poll_interval: float = POLL_INTERVAL,
    ):
        """
        Args:
            platform: Platform used for lock detection (None disables monitoring)
            on_wake: Callback for screen unlocks
            poll_interval: Seconds between checks
        """
        self.platform = platform
        self.on_wake = on_wake
        self.poll_interval = poll_interval
        self.is_locked = False
        self.running = False
        self._monitor_thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the monitoring thread."""
        if not self.platform:
            logger.info("No platform detected, screen wake sync disabled")
            return

        if self._monitor_thread and self._monitor_thread.is_alive():
            logger.warning("Wake monitoring already running")
            return

        self.running = True
        self._monitor_thread = threading.Thread(target=self._monitor_loop, daemon=True, name="WakeMonitor")
        self._monitor_thread.start()
        logger.debug("Wake monitoring started")

    def stop(self) -> None:
        """Stop the monitoring thread."""
        self.running = False

        if self._monitor_thread:
            self._monitor_thread.join(timeout=3)
            self._monitor_thread = None

        logger.debug("Wake monitoring stopped")

    def _monitor_loop(self) -> None:
        while self.running:
            self._poll()
            time.sleep(self.poll_interval)

    @error_boundary(default_return=False)
    def _poll(self) -> bool:
        return self.check()

    def check(self) -> bool:
        """
        Check the lock state once.

        Returns:
            True if a wake (unlock) was detected
        """
        if not self.platform:
            return False

        locked = self.platform.is_screen_locked()
        if locked == self.is_locked:
            return False

        self.is_locked = locked
        if locked:
            logger.debug("Screen locked")
            return False

        logger.info("Screen unlocked - requesting sync")
        self.on_wake()
        return True
