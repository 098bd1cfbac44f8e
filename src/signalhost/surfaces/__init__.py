"""
Display surfaces rendering the shared signal/noise metrics.

Every surface type is a renderer strategy over the same snapshot; fetching,
scheduling and fallback handling live in the managers, not in the skins.

This module provides the base surface class; concrete types are found by
SurfaceRegistry.auto_discover().
"""

from .base import BaseSurface

__all__ = ["BaseSurface"]
