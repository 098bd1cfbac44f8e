"""
KDE Plasma and plain logind session support
"""

import logging
import os

from .base import Platform

logger = logging.getLogger(__name__)


class KDEPlatform(Platform):
    """KDE Plasma: asks the screensaver over D-Bus, then logind"""

    name = "kde"
    desktop_environment = "plasma"

    # Screensaver queries, newest KDE first
    LOCK_QUERIES = [
        ["qdbus6", "org.freedesktop.ScreenSaver", "/ScreenSaver", "GetActive"],
        ["qdbus", "org.freedesktop.ScreenSaver", "/ScreenSaver", "GetActive"],
        ["qdbus", "org.kde.screensaver", "/ScreenSaver", "GetActive"],
    ]

    def detect(self) -> bool:
        for variable in ("XDG_CURRENT_DESKTOP", "XDG_SESSION_DESKTOP"):
            desktop = os.environ.get(variable, "").lower()
            if "kde" in desktop or "plasma" in desktop:
                return True

        # Session variables are missing under some launchers; look for the shell
        return self._query(["pgrep", "-x", "plasmashell"]) is not None

    def is_screen_locked(self) -> bool:
        for cmd in self.LOCK_QUERIES:
            answer = self._query(cmd)
            if answer is not None:
                return answer.strip().lower() == "true"

        return self._logind_locked()


class LogindPlatform(Platform):
    """Any systemd-logind session, lock state from LockedHint"""

    name = "logind"

    def detect(self) -> bool:
        if not os.environ.get("XDG_SESSION_ID"):
            return False
        return self._query(["loginctl", "show-session", "-p", "Id"]) is not None

    def is_screen_locked(self) -> bool:
        return self._logind_locked()
