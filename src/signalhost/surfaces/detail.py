"""
Detail and debug surfaces showing the full snapshot.
"""

import logging
from datetime import datetime

from ..state.snapshot import MetricSnapshot
from .base import BaseSurface

logger = logging.getLogger(__name__)


class DetailSurface(BaseSurface):
    """
    Ratio, status band, signal/noise counts and streak.

    Configuration:
        show_streak: Append the streak to the title (default: True)

    Example:
        surfaces:
          - id: detail
            type: detail
            interval: 600
    """

    surface_type = "detail"
    refresh_interval = 600.0  # Every 10 minutes

    def render_text(self, snapshot: MetricSnapshot) -> str:
        """Format the whole snapshot over four lines."""
        title = "S/N"
        if self.config.get("show_streak", True) and snapshot.streak > 0:
            title = f"S/N 🔥{snapshot.streak}"

        if snapshot.has_ratio:
            ratio_text = f"{snapshot.ratio}%"
            status = snapshot.status
        else:
            ratio_text = "---%"
            status = "NO DATA"

        counts = f"S: {snapshot.signal_count}  N: {snapshot.noise_count}"
        return f"{title}\n{ratio_text}\n{status}\n{counts}"


class DebugSurface(BaseSurface):
    """
    Troubleshooting view: raw ratio, data source and last update time.

    Configuration:
        time_format: strftime format for the last update (default: "%H:%M:%S")
    """

    surface_type = "debug"
    refresh_interval = 600.0

    def render_text(self, snapshot: MetricSnapshot) -> str:
        if snapshot.last_update > 0:
            time_format = self.config.get("time_format", "%H:%M:%S")
            time_str = datetime.fromtimestamp(snapshot.last_update).strftime(time_format)
        else:
            time_str = "Never"

        ratio = snapshot.ratio if snapshot.has_ratio else "---"
        return f"R:{ratio}\n{snapshot.data_source.value}\nT:{time_str}"
