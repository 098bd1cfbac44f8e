"""
Desktop session queries used for screen wake detection
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import List, Optional

logger = logging.getLogger(__name__)

QUERY_TIMEOUT = 1  # seconds; lock checks run every poll tick


class Platform(ABC):
    """A desktop session that can tell whether its screen is locked"""

    name: str = "base"
    desktop_environment: Optional[str] = None

    @abstractmethod
    def detect(self) -> bool:
        """Whether the current session is this platform"""
        pass

    @abstractmethod
    def is_screen_locked(self) -> bool:
        """Current lock state; unknown reads as unlocked"""
        pass

    def _query(self, cmd: List[str]) -> Optional[str]:
        """
        Run a short session query.

        Returns:
            Its stdout, or None if the tool is missing, fails or hangs
        """
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=QUERY_TIMEOUT)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"{cmd[0]} query failed: {e}")
            return None

        if result.returncode != 0:
            return None
        return result.stdout

    def _logind_locked(self) -> bool:
        """LockedHint of the current logind session."""
        output = self._query(["loginctl", "show-session", "-p", "LockedHint"])
        return bool(output) and "LockedHint=yes" in output
