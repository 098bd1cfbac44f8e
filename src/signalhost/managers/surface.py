"""
Surface management for display instances.

This module manages the lifecycle of surface instances: activation,
removal, and rendering from the shared state store with per-instance
fallback on failure.
"""

import logging
import threading
import time
from typing import Any, Dict, List, Optional, Tuple

from ..render.host import SurfaceHost
from ..render.renderer import DEFAULT_SIZE, FrameRenderer
from ..state.snapshot import read_snapshot
from ..state.store import StateStore

logger = logging.getLogger(__name__)


class SurfaceManager:
    """
    Manages active display surface instances.

    Responsibilities:
    - Surface instance lifecycle (activate / remove)
    - Rendering an instance from the current snapshot
    - Substituting a fallback frame when a surface fails to render
    - Keeping the last rendered text per instance
    """

    def __init__(
        self,
        store: StateStore,
        renderer: FrameRenderer,
        host: SurfaceHost,
        styles: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the surface manager.

        Args:
            store: Shared state store surfaces read from
            renderer: FrameRenderer used to draw frames
            host: SurfaceHost frames are presented on
            styles: Style configuration keyed by style name
        """
        self.store = store
        self.renderer = renderer
        self.host = host
        self.styles = styles or {}
        self.surface_registry = SurfaceRegistry()
        self.active_surfaces: Dict[str, Dict[str, Any]] = {}  # {instance_id: surface_data}
        self._surface_lock = threading.Lock()

    def activate(self, instance_id: str, surface_config: Dict[str, Any]) -> bool:
        """
        Set up a surface instance.

        Args:
            instance_id: Unique instance identifier
            surface_config: Surface config with at least 'type'

        Returns:
            True if the instance was activated, False otherwise
        """
        surface_type = surface_config.get("type")
        if not surface_type:
            logger.error(f"Surface {instance_id} missing 'type'")
            return False

        surface_class = self.surface_registry.get_surface_class(surface_type)
        if not surface_class:
            logger.error(f"Unknown surface type: {surface_type}")
            return False

        try:
            surface = surface_class(surface_config)

            if not surface.validate_config():
                logger.error(f"Invalid config for {surface_type} surface {instance_id}")
                return False

            with self._surface_lock:
                self.active_surfaces[instance_id] = {
                    "surface": surface,
                    "surface_config": surface_config,
                    "last_render": 0.0,
                    "cached_text": None,
                    "failed": False,
                }

            logger.info(f"Activated {surface_type} surface {instance_id}")
            return True

        except Exception as e:
            logger.error(f"Failed to initialize surface {instance_id}: {e}", exc_info=True)
            return False

    def remove(self, instance_id: str) -> Optional[str]:
        """
        Tear down a surface instance.

        Returns:
            The removed instance's surface type, or None if it was not active
        """
        with self._surface_lock:
            surface_data = self.active_surfaces.pop(instance_id, None)

        if surface_data is None:
            return None

        try:
            self.host.remove(instance_id)
        except Exception as e:
            logger.warning(f"Host failed to remove {instance_id}: {e}")

        logger.info(f"Removed surface {instance_id}")
        return surface_data["surface"].surface_type

    def render_instance(self, instance_id: str) -> Optional[bytes]:
        """
        Render one instance from the state store and present it.

        Any failure while drawing is contained here: the instance shows its
        fallback glyph instead of stale or half-drawn output.

        Args:
            instance_id: Instance to render

        Returns:
            The presented frame, or None if nothing could be presented
        """
        surface_data = self.active_surfaces.get(instance_id)
        if surface_data is None:
            return None

        surface = surface_data["surface"]
        style = self._style_for(surface_data["surface_config"])
        size = self._size_for(surface_data["surface_config"])

        try:
            snapshot = read_snapshot(self.store)
            text = surface.render_text(snapshot)
            icon = surface.render_icon(snapshot, size)
            frame = self.renderer.render(text, style, size, icon)
            surface_data["failed"] = False

        except Exception as e:
            logger.error(f"Error rendering surface {instance_id}: {e}", exc_info=True)
            text = surface.get_fallback_text()
            surface_data["failed"] = True
            try:
                frame = self.renderer.render_fallback(text, style, size)
            except Exception as fallback_error:
                logger.error(f"Fallback render failed for {instance_id}: {fallback_error}")
                return None

        # Workers render too; an instance torn down meanwhile must stay gone
        with self._surface_lock:
            if self.active_surfaces.get(instance_id) is not surface_data:
                logger.debug(f"Dropping frame for removed surface {instance_id}")
                return None

            try:
                self.host.present(instance_id, frame, text)
            except Exception as e:
                logger.error(f"Host failed to present {instance_id}: {e}", exc_info=True)
                return None

            surface_data["cached_text"] = text
            surface_data["last_render"] = time.time()
        return frame

    def instance_ids(self, surface_type: str) -> List[str]:
        """Active instance ids of one surface type."""
        return [
            instance_id
            for instance_id, surface_data in list(self.active_surfaces.items())
            if surface_data["surface"].surface_type == surface_type
        ]

    def surface_types(self) -> List[str]:
        """All registered surface types, active or not."""
        return self.surface_registry.list_surfaces()

    def get_instance_type(self, instance_id: str) -> Optional[str]:
        surface_data = self.active_surfaces.get(instance_id)
        return surface_data["surface"].surface_type if surface_data else None

    def get_refresh_interval(self, instance_id: str) -> Optional[float]:
        surface_data = self.active_surfaces.get(instance_id)
        return surface_data["surface"].refresh_interval if surface_data else None

    def get_surface_text(self, instance_id: str) -> Optional[str]:
        """
        Get the last presented text for an instance without re-rendering.

        Args:
            instance_id: Instance identifier

        Returns:
            Cached text or None
        """
        if instance_id not in self.active_surfaces:
            return None
        return self.active_surfaces[instance_id].get("cached_text")

    def is_failed(self, instance_id: str) -> bool:
        """Whether the instance's last render fell back."""
        surface_data = self.active_surfaces.get(instance_id)
        return bool(surface_data and surface_data["failed"])

    def clear(self) -> None:
        """Drop all instances."""
        with self._surface_lock:
            self.active_surfaces.clear()
            logger.debug("Cleared all surfaces")

    def has_surfaces(self) -> bool:
        """Check if any surfaces are active."""
        return len(self.active_surfaces) > 0

    def get_surface_count(self) -> int:
        """Get the count of active surfaces."""
        return len(self.active_surfaces)

    def _style_for(self, surface_config: Dict[str, Any]) -> Dict[str, Any]:
        style_name = surface_config.get("style", "default")
        return self.styles.get(style_name, self.styles.get("default", {}))

    def _size_for(self, surface_config: Dict[str, Any]) -> Tuple[int, int]:
        size = surface_config.get("size")
        if size and len(size) == 2:
            return (int(size[0]), int(size[1]))
        return DEFAULT_SIZE


class SurfaceRegistry:
    """
    Registry for auto-discovering surface types.
    """

    def __init__(self):
        """Initialize empty registry."""
        self._surfaces: Dict[str, type] = {}

    def register(self, surface_class: type) -> None:
        """
        Register a surface class.

        Args:
            surface_class: Surface class to register

        Raises:
            TypeError: If surface_class doesn't inherit from BaseSurface
            ValueError: If surface_type is not defined
        """
        from signalhost.surfaces.base import BaseSurface

        if not isinstance(surface_class, type) or not issubclass(surface_class, BaseSurface):
            raise TypeError(f"{surface_class} must inherit from BaseSurface")

        surface_type = surface_class.surface_type

        if not surface_type:
            raise ValueError(f"{surface_class.__name__} must define surface_type class attribute")

        if surface_type in self._surfaces:
            logger.warning(f"Overwriting existing surface type: {surface_type}")

        self._surfaces[surface_type] = surface_class
        logger.debug(f"Registered surface type: {surface_type}")

    def get_surface_class(self, surface_type: str):
        """
        Get surface class by type.

        Returns:
            Surface class or None if not found
        """
        return self._surfaces.get(surface_type)

    def list_surfaces(self) -> list:
        """List all registered surface types."""
        return list(self._surfaces.keys())

    def auto_discover(self) -> None:
        """Auto-discover and register all surface modules."""
        import importlib
        import pkgutil

        from signalhost.surfaces.base import BaseSurface

        try:
            import signalhost.surfaces as surfaces_pkg
        except ImportError:
            logger.warning("Surfaces package not found, skipping auto-discovery")
            return

        for _importer, modname, _ispkg in pkgutil.iter_modules(surfaces_pkg.__path__):
            if modname in ["base", "__init__"]:
                continue

            try:
                module = importlib.import_module(f"signalhost.surfaces.{modname}")

                for attr_name in dir(module):
                    attr = getattr(module, attr_name)
                    if (
                        isinstance(attr, type)
                        and issubclass(attr, BaseSurface)
                        and attr is not BaseSurface
                        and attr.surface_type
                        and attr.__module__ == module.__name__
                    ):
                        self.register(attr)
                        logger.info(f"Auto-registered surface: {attr.surface_type}")

            except Exception as e:
                logger.error(f"Failed to load surface module {modname}: {e}")
