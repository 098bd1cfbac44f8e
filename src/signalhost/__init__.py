"""
signalhost - Keeps signal/noise surfaces in sync with a remote ratio service
"""

__version__ = "0.2.0"

from .controller import HostController

__all__ = ["HostController"]
