"""
Platform abstraction for screen lock detection
"""

import logging
from typing import Optional

from .base import Platform
from .kde import KDEPlatform, LogindPlatform

logger = logging.getLogger(__name__)


def detect_platform() -> Optional[Platform]:
    """Pick the most specific platform for this session, if any"""
    for platform in (KDEPlatform(), LogindPlatform()):
        if platform.detect():
            logger.debug(f"Session platform: {platform.name}")
            return platform

    # Without a platform screen wake sync stays off
    return None


__all__ = [
    "Platform",
    "KDEPlatform",
    "LogindPlatform",
    "detect_platform",
]
