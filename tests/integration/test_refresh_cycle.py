"""
Integration tests for the full refresh cycle.

These tests drive HostController with an injected store, alarm clock and
surface host, covering:
- Fetch into the store and fan-out to every surface
- Circuit breaking between overlapping refreshes
- Last-known-good data on fetch failure
- Per-surface render fallback
- Timer fires, owner hand-over and screen wake sync
"""

import socket

import pytest

from signalhost.controller import HostController
from signalhost.managers.fetch import FetchOutcome
from signalhost.managers.triggers import WAKE, Trigger
from signalhost.state.snapshot import (
    KEY_DATA_SOURCE,
    KEY_LAST_WAKE_SYNC,
    KEY_RATIO,
    DataSource,
    MetricSnapshot,
    write_snapshot,
)
from signalhost.surfaces.base import BaseSurface


class ExplodingSurface(BaseSurface):
    """Surface whose rendering always throws."""

    surface_type = "exploding"
    fallback_text = "ERR"

    def render_text(self, snapshot):
        raise RuntimeError("cannot inflate layout")


@pytest.fixture
def scenario_payload():
    return {"ratio": 87, "signalCount": 5, "noiseCount": 1, "streak": 3}


@pytest.fixture
def controller(config_file, store, alarm_clock, host, mock_platform, spawn_inline, clock):
    controller = HostController(
        str(config_file),
        store=store,
        alarm_clock=alarm_clock,
        host=host,
        platform=mock_platform,
        spawn=spawn_inline,
        clock=clock,
    )
    assert controller.load_config()
    yield controller
    controller.stop()


class TestScenarios:
    """End-to-end behaviour of fetch, store and surfaces"""

    def test_fetch_reaches_every_surface(self, controller, store, host, mock_urlopen, make_response, scenario_payload):
        mock_urlopen.return_value = make_response(scenario_payload)

        assert controller.activate_all() == 4

        assert store.get(KEY_RATIO) == 87
        assert store.get(KEY_DATA_SOURCE) == "REDIS"
        assert host.text_for("home-ratio") == "87%\nS/N • REDIS"
        assert host.text_for("desk-ratio") == "87%\nS/N • REDIS"
        assert host.text_for("tiny") == "87%"
        assert host.text_for("detail") == "S/N 🔥3\n87%\nSIGNAL\nS: 5  N: 1"
        # Four activations, one gate
        assert mock_urlopen.call_count == 1

    def test_second_fetch_within_interval_is_skipped(self, controller, store, clock, mock_urlopen):
        assert controller.refresh_now() == FetchOutcome.FETCHED
        before = store.as_dict()

        clock.advance(5)
        assert controller.refresh_now() == FetchOutcome.RATE_LIMITED

        assert mock_urlopen.call_count == 1
        assert store.as_dict() == before

    def test_timeout_keeps_last_known_ratio(self, controller, store, host, clock, mock_urlopen):
        write_snapshot(store, MetricSnapshot(ratio=72, data_source=DataSource.REDIS, last_update=clock.now - 600))
        controller.activate_all(fetch=False)
        mock_urlopen.side_effect = socket.timeout("timed out")

        assert controller.refresh_now() == FetchOutcome.FAILED

        assert store.get(KEY_DATA_SOURCE) == "ERROR"
        assert store.get(KEY_RATIO) == 72
        assert host.text_for("home-ratio") == "72%\nS/N • ERROR"

    def test_failing_surface_falls_back_alone(self, controller, store, host, mock_urlopen):
        controller.surface_manager.surface_registry.register(ExplodingSurface)
        assert controller.activate_surface({"id": "bad", "type": "exploding"}, fetch=False)
        assert controller.activate_surface({"id": "tiny", "type": "compact"}, fetch=False)

        controller.refresh_now()

        assert host.text_for("bad") == "ERR"
        assert controller.surface_manager.is_failed("bad")
        assert host.text_for("tiny") == "82%"
        assert not controller.surface_manager.is_failed("tiny")


class TestScheduling:
    """Timer fires flowing through the trigger queue"""

    def test_timer_fire_fetches_once_per_type(self, controller, alarm_clock, clock, host, mock_urlopen, make_response):
        controller.activate_all()
        assert mock_urlopen.call_count == 1

        clock.advance(300)
        mock_urlopen.return_value = make_response({"ratio": 55})
        alarm_clock.fire(("ratio", "home-ratio"))
        assert controller.process_pending() == 1

        assert mock_urlopen.call_count == 2
        assert host.text_for("home-ratio").startswith("55%")
        assert host.text_for("desk-ratio").startswith("55%")
        # Re-armed by the same owner
        assert alarm_clock.pending_for("ratio") == [("ratio", "home-ratio")]

    def test_one_timer_per_type(self, controller, alarm_clock, mock_urlopen):
        controller.activate_all()
        assert sorted(alarm_clock.alarms) == [
            ("compact", "tiny"),
            ("detail", "detail"),
            ("ratio", "home-ratio"),
        ]
        assert alarm_clock.alarms[("compact", "tiny")][0] == 120
        assert alarm_clock.alarms[("ratio", "home-ratio")][0] == 300

    def test_owner_removal_hands_timer_to_sibling(self, controller, alarm_clock, host, mock_urlopen):
        controller.activate_all()

        assert controller.remove_surface("home-ratio")

        assert alarm_clock.pending_for("ratio") == [("ratio", "desk-ratio")]
        assert host.text_for("home-ratio") is None
        assert not controller.remove_surface("home-ratio")

    def test_last_instance_removal_stops_timer(self, controller, alarm_clock, mock_urlopen):
        controller.activate_all()
        controller.remove_surface("tiny")
        assert alarm_clock.pending_for("compact") == []

    def test_stop_cancels_timers(self, controller, alarm_clock, mock_urlopen):
        controller.activate_all()
        controller.stop()
        assert alarm_clock.alarms == {}


class TestTriggers:
    """Manual refresh and screen wake"""

    def test_manual_refresh(self, controller, host, mock_urlopen):
        controller.activate_all(fetch=False)
        controller.request_refresh()

        controller.process_pending()

        assert mock_urlopen.call_count == 1
        assert host.text_for("tiny") == "82%"

    def test_wake_sync_is_throttled(self, controller, store, clock, mock_urlopen):
        controller.handle_trigger(Trigger(WAKE))
        assert store.get(KEY_LAST_WAKE_SYNC, 0.0) == clock.now
        assert mock_urlopen.call_count == 1

        first_sync = clock.now
        clock.advance(5)
        controller.handle_trigger(Trigger(WAKE))
        assert store.get(KEY_LAST_WAKE_SYNC, 0.0) == first_sync

        clock.advance(60)
        controller.handle_trigger(Trigger(WAKE))
        assert store.get(KEY_LAST_WAKE_SYNC, 0.0) == clock.now
        assert mock_urlopen.call_count == 2

    def test_wake_monitor_posts_wake(self, controller, mock_platform, store, clock, mock_urlopen):
        mock_platform.is_screen_locked.return_value = True
        controller.wake_monitor.check()
        mock_platform.is_screen_locked.return_value = False
        controller.wake_monitor.check()

        assert controller.process_pending() == 1
        assert store.get(KEY_LAST_WAKE_SYNC, 0.0) == clock.now

    def test_push_and_fetch_share_keys(self, controller, host, clock, mock_urlopen):
        controller.activate_all(fetch=False)

        assert controller.push('{"ratio": 64, "status": "Balanced", "streak": 9}')
        assert host.text_for("detail") == "S/N 🔥9\n64%\nBALANCED\nS: 0  N: 0"

        clock.advance(60)
        controller.refresh_now()
        assert host.text_for("detail") == "S/N 🔥4\n82%\nSIGNAL\nS: 9  N: 2"
