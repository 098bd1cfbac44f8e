"""
Tests for the PushBridge.
"""

import json
from unittest.mock import Mock

import pytest

from signalhost.managers.bridge import PushBridge
from signalhost.state.snapshot import (
    KEY_DATA_SOURCE,
    KEY_LAST_UPDATE,
    KEY_PATTERN,
    KEY_PREMIUM,
    KEY_RATIO,
    KEY_STATUS,
    KEY_STREAK,
    read_snapshot,
)
from signalhost.utils.errors import BridgeError


@pytest.fixture
def dispatcher():
    return Mock()


@pytest.fixture
def bridge(store, dispatcher, clock):
    return PushBridge(store, dispatcher, clock=clock)


class TestPushBridge:
    """Test pushed payload handling"""

    def test_full_payload_stored(self, bridge, store, clock, dispatcher):
        payload = {"ratio": 76, "status": "Balanced", "streak": 3, "premium": True, "pattern": "Mornings win"}

        assert bridge.update_widget_data(json.dumps(payload)) is True

        assert store.get(KEY_RATIO) == 76
        assert store.get(KEY_STATUS) == "Balanced"
        assert store.get(KEY_STREAK) == 3
        assert store.get(KEY_PREMIUM) is True
        assert store.get(KEY_PATTERN) == "Mornings win"
        assert store.get(KEY_LAST_UPDATE) == clock.now
        dispatcher.dispatch.assert_called_once()

    def test_pushed_data_visible_to_surfaces(self, bridge, store):
        bridge.update_widget_data('{"ratio": 91, "streak": 6}')
        snapshot = read_snapshot(store)
        assert snapshot.ratio == 91
        assert snapshot.streak == 6

    def test_data_source_untouched(self, bridge, store):
        store.set(KEY_DATA_SOURCE, "ERROR")
        bridge.update_widget_data('{"ratio": 50}')
        assert store.get(KEY_DATA_SOURCE) == "ERROR"

    def test_defaults_for_optional_fields(self, bridge, store):
        bridge.update_widget_data('{"ratio": 0}')
        assert store.get(KEY_RATIO) == 0
        assert store.get(KEY_STATUS) == "Unknown"
        assert store.get(KEY_STREAK) == 0
        assert store.get(KEY_PREMIUM) is False
        assert store.get(KEY_PATTERN) == ""

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            "[82]",
            '{"status": "Signal"}',
            '{"ratio": 101}',
            '{"ratio": "82"}',
            '{"ratio": 82, "streak": -1}',
        ],
    )
    def test_rejected_payload_changes_nothing(self, bridge, store, dispatcher, payload):
        assert bridge.update_widget_data(payload) is False
        assert store.as_dict() == {}
        dispatcher.dispatch.assert_not_called()

    def test_parse_raises_bridge_error(self, bridge):
        with pytest.raises(BridgeError, match="ratio"):
            bridge.parse("{}")

    def test_dispatch_failure_still_reports_success(self, bridge, dispatcher):
        dispatcher.dispatch.side_effect = RuntimeError("host gone")
        assert bridge.update_widget_data('{"ratio": 40}') is True

    def test_without_dispatcher(self, store, clock):
        assert PushBridge(store, clock=clock).update_widget_data('{"ratio": 40}') is True
