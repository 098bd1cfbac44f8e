"""
Ratio surfaces: the headline signal/noise percentage.
"""

import logging

from ..state.snapshot import MetricSnapshot
from .base import BaseSurface

logger = logging.getLogger(__name__)

LOADING_GLYPH = "⟳"


class RatioSurface(BaseSurface):
    """
    Large ratio with the data source underneath.

    Configuration:
        label: Text shown before the data source (default: "S/N")
        show_source: Show REDIS/ERROR/UNKNOWN under the ratio (default: True)

    Example:
        surfaces:
          - id: home-ratio
            type: ratio
            label: "S/N"
    """

    surface_type = "ratio"
    refresh_interval = 300.0  # Every 5 minutes (battery safe)
    fallback_text = "ERR"

    def render_text(self, snapshot: MetricSnapshot) -> str:
        """Format ratio and source."""
        ratio_text = f"{snapshot.ratio}%" if snapshot.has_ratio else LOADING_GLYPH

        if not self.config.get("show_source", True):
            return ratio_text

        label = self.config.get("label", "S/N")
        return f"{ratio_text}\n{label} • {snapshot.data_source.value}"


class CompactSurface(BaseSurface):
    """
    Ratio only, for the smallest slots. Refreshes faster than the others.

    Example:
        surfaces:
          - id: tiny
            type: compact
    """

    surface_type = "compact"
    refresh_interval = 120.0  # Every 2 minutes
    fallback_text = "-"

    def render_text(self, snapshot: MetricSnapshot) -> str:
        if not snapshot.has_ratio:
            return LOADING_GLYPH
        return f"{snapshot.ratio}%"
