"""
Frame rendering and the hosts frames are presented on.
"""

from .host import DirectoryHost, MemoryHost, SurfaceHost
from .renderer import FrameRenderer

__all__ = ["FrameRenderer", "SurfaceHost", "MemoryHost", "DirectoryHost"]
