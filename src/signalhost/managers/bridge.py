"""
Push bridge for data sent by the hosted web page.

This is the push-based twin of the RemoteFetcher: it writes the same state
keys and triggers the same fan-out, so surfaces cannot tell the two apart.
"""

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from ..state.snapshot import (
    KEY_LAST_UPDATE,
    KEY_PATTERN,
    KEY_PREMIUM,
    KEY_RATIO,
    KEY_STATUS,
    KEY_STREAK,
    validate_ratio,
)
from ..state.store import StateStore
from ..utils.errors import BridgeError, safe_execute

logger = logging.getLogger(__name__)


class PushBridge:
    """
    Accepts {ratio, status, streak, premium, pattern} payloads.

    Example:
        >>> bridge.update_widget_data('{"ratio": 82, "status": "Signal", "streak": 4}')
        True
    """

    def __init__(
        self,
        store: StateStore,
        dispatcher: Optional[Any] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self._clock = clock

    def update_widget_data(self, json_data: str) -> bool:
        """
        Store a pushed payload and notify all surfaces.

        Args:
            json_data: JSON text sent by the web page

        Returns:
            True if the payload was stored, False if it was rejected
        """
        try:
            data = self.parse(json_data)
        except BridgeError as e:
            logger.error(f"Rejected pushed widget data: {e}")
            return False

        self.store.set(KEY_RATIO, data["ratio"])
        self.store.set(KEY_STATUS, data["status"])
        self.store.set(KEY_STREAK, data["streak"])
        self.store.set(KEY_PREMIUM, data["premium"])
        self.store.set(KEY_PATTERN, data["pattern"])
        self.store.set(KEY_LAST_UPDATE, self._clock())

        logger.info(f"Widget data pushed - ratio: {data['ratio']}%, status: {data['status']}")

        if self.dispatcher is not None:
            safe_execute(self.dispatcher.dispatch, default=0)

        return True

    def parse(self, json_data: str) -> Dict[str, Any]:
        """
        Validate a pushed payload.

        Raises:
            BridgeError: If the payload is not usable
        """
        try:
            payload = json.loads(json_data)
        except (TypeError, json.JSONDecodeError) as e:
            raise BridgeError(f"invalid JSON: {e}")

        if not isinstance(payload, dict):
            raise BridgeError("payload must be a JSON object")

        if "ratio" not in payload:
            raise BridgeError("payload has no 'ratio'")
        try:
            ratio = validate_ratio(payload["ratio"])
        except ValueError as e:
            raise BridgeError(str(e))

        streak = payload.get("streak", 0)
        if isinstance(streak, bool) or not isinstance(streak, int) or streak < 0:
            raise BridgeError(f"'streak' must be a non-negative integer, got {streak!r}")

        return {
            "ratio": ratio,
            "status": str(payload.get("status", "Unknown")),
            "streak": streak,
            "premium": bool(payload.get("premium", False)),
            "pattern": str(payload.get("pattern", "")),
        }
