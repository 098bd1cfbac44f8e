"""
Gauge surface drawing the ratio as an arc.
"""

import logging
from typing import Optional, Tuple

from PIL import Image, ImageDraw

from ..state.snapshot import MetricSnapshot
from ..utils.errors import RenderFailure
from .base import BaseSurface

logger = logging.getLogger(__name__)


class GaugeSurface(BaseSurface):
    """
    Ratio arc colored by status band, with the percentage as text.

    Configuration:
        width: Arc thickness in pixels (default: 6)
        colors: Mapping of SIGNAL/BALANCED/NOISE to colors

    Example:
        surfaces:
          - id: gauge
            type: gauge
            width: 8
    """

    surface_type = "gauge"
    refresh_interval = 300.0

    COLORS = {
        "SIGNAL": "#00FF88",
        "BALANCED": "#FFAA00",
        "NOISE": "#FF4444",
    }
    TRACK_COLOR = "#333333"

    def validate_config(self) -> bool:
        width = self.config.get("width", 6)
        if isinstance(width, bool) or not isinstance(width, int) or width <= 0:
            logger.error(f"Gauge surface 'width' must be a positive integer, got {width!r}")
            return False
        return True

    def render_text(self, snapshot: MetricSnapshot) -> str:
        if not snapshot.has_ratio:
            return "---%"
        return f"{snapshot.ratio}%"

    def render_icon(self, snapshot: MetricSnapshot, size: Tuple[int, int]) -> Optional[Image.Image]:
        """Draw the track and the filled portion of the arc."""
        width = self.config.get("width", 6)
        margin = width + 2
        if min(size) <= margin * 2:
            raise RenderFailure(f"Frame {size[0]}x{size[1]} too small for a {width}px gauge")

        box = [(margin, margin), (size[0] - margin, size[1] - margin)]

        image = Image.new("RGBA", size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(image)
        draw.arc(box, 0, 360, fill=self.TRACK_COLOR, width=width)

        if snapshot.has_ratio and snapshot.ratio > 0:
            colors = dict(self.COLORS, **self.config.get("colors", {}))
            color = colors.get(snapshot.status, self.COLORS["NOISE"])
            # Start at 12 o'clock, clockwise
            draw.arc(box, -90, -90 + int(snapshot.ratio * 3.6), fill=color, width=width)

        return image
