"""
Fan-out of "data changed" notifications to every surface type.
"""

import logging

from .surface import SurfaceManager

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Broadcasts re-render requests to all registered surface types.

    Delivery is best-effort and fire-and-forget: each instance renders from
    the state store on its own, and a failing request is logged and skipped
    so the rest of the fan-out still happens.
    """

    def __init__(self, surface_manager: SurfaceManager):
        """
        Args:
            surface_manager: Source of surface types and their active instances
        """
        self.surface_manager = surface_manager

    def dispatch(self) -> int:
        """
        Notify every registered surface type.

        Returns:
            Number of render requests issued
        """
        requested = 0
        for surface_type in self.surface_manager.surface_types():
            requested += self.dispatch_type(surface_type)

        logger.debug(f"Dispatched {requested} render requests")
        return requested

    def dispatch_type(self, surface_type: str) -> int:
        """
        Notify the active instances of one surface type.

        A type with no active instances is a no-op.

        Returns:
            Number of render requests issued
        """
        requested = 0
        for instance_id in self.surface_manager.instance_ids(surface_type):
            requested += 1
            try:
                self.surface_manager.render_instance(instance_id)
            except Exception as e:
                logger.error(f"Error notifying {surface_type} surface {instance_id}: {e}", exc_info=True)

        if requested:
            logger.debug(f"Updated {requested} {surface_type} surfaces")
        return requested
