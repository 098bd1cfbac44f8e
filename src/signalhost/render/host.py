"""
Surface hosts: where rendered frames end up.

The real widget host (layout inflation, click wiring) is outside this
package; a host only has to accept a frame for an instance.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class SurfaceHost(ABC):
    """Receives rendered frames for surface instances."""

    @abstractmethod
    def present(self, instance_id: str, frame: bytes, text: str) -> None:
        """
        Show a frame on an instance.

        Args:
            instance_id: Surface instance identifier
            frame: PNG-encoded frame
            text: Text drawn on the frame
        """
        pass

    def remove(self, instance_id: str) -> None:
        """Forget an instance that was torn down."""
        pass


class MemoryHost(SurfaceHost):
    """Keeps the last frame and text per instance."""

    def __init__(self):
        self.frames: Dict[str, bytes] = {}
        self.texts: Dict[str, str] = {}

    def present(self, instance_id: str, frame: bytes, text: str) -> None:
        self.frames[instance_id] = frame
        self.texts[instance_id] = text

    def remove(self, instance_id: str) -> None:
        self.frames.pop(instance_id, None)
        self.texts.pop(instance_id, None)

    def text_for(self, instance_id: str) -> Optional[str]:
        return self.texts.get(instance_id)


class DirectoryHost(SurfaceHost):
    """
    Writes <instance_id>.png and <instance_id>.txt into a directory.

    Useful for desktop widgets (conky, waybar, ...) that poll files.
    """

    def __init__(self, directory: str):
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(parents=True, exist_ok=True)

    def present(self, instance_id: str, frame: bytes, text: str) -> None:
        (self.directory / f"{instance_id}.png").write_bytes(frame)
        (self.directory / f"{instance_id}.txt").write_text(text + "\n", encoding="utf-8")
        logger.debug(f"Wrote frame for {instance_id} to {self.directory}")

    def remove(self, instance_id: str) -> None:
        for suffix in (".png", ".txt"):
            path = self.directory / f"{instance_id}{suffix}"
            if path.exists():
                path.unlink()
