"""
Configuration loading for signalhost
"""

from .loader import ConfigLoader

__all__ = ["ConfigLoader"]
