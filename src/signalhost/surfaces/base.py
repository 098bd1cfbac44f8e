"""
Base classes for all display surface types.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from PIL import Image

from ..state.snapshot import MetricSnapshot

logger = logging.getLogger(__name__)


class BaseSurface(ABC):
    """
    Base class for all display surfaces.

    A surface reads the shared MetricSnapshot and turns it into text and an
    optional icon. Surfaces never fetch data themselves; the scheduler and
    dispatcher decide when they render.

    Class Attributes:
        surface_type: Unique identifier for this surface type (e.g., "ratio")
        refresh_interval: Seconds between scheduled refreshes of this type
        fallback_text: Glyph shown when rendering fails

    Example:
        >>> class StreakSurface(BaseSurface):
        ...     surface_type = "streak"
        ...     refresh_interval = 600.0
        ...
        ...     def render_text(self, snapshot):
        ...         return f"Streak\\n{snapshot.streak}"
    """

    # Surface type identifier (must be unique)
    surface_type: str = None

    # Refresh cadence in seconds
    refresh_interval: float = 300.0

    # Shown instead of partially drawn output when rendering fails
    fallback_text: str = "--"

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize surface with configuration.

        Args:
            config: Surface configuration from YAML

        Raises:
            ValueError: If surface_type is not defined
        """
        if not self.surface_type:
            raise ValueError(f"{self.__class__.__name__} must define surface_type")

        self.config = config
        if "interval" in config:
            self.refresh_interval = float(config["interval"])

    @abstractmethod
    def render_text(self, snapshot: MetricSnapshot) -> str:
        """
        Convert the snapshot to display text.

        Args:
            snapshot: Current metrics from the state store

        Returns:
            Formatted text string (supports multiline with \\n)
        """
        pass

    def render_icon(self, snapshot: MetricSnapshot, size: Tuple[int, int]) -> Optional[Image.Image]:
        """
        Optionally render a dynamic icon (gauges, bars).

        Args:
            snapshot: Current metrics from the state store
            size: Frame size as (width, height)

        Returns:
            PIL Image or None to use text only
        """
        return None

    def validate_config(self) -> bool:
        """
        Validate surface configuration.

        Returns:
            True if configuration is valid, False otherwise
        """
        return True

    def get_fallback_text(self) -> str:
        """Glyph to display when rendering fails."""
        return self.config.get("fallback", self.fallback_text)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<{self.__class__.__name__}(type={self.surface_type}, interval={self.refresh_interval})>"
