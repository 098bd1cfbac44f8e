"""
Pytest configuration and fixtures
"""

import json

import pytest
import yaml
from unittest.mock import MagicMock, Mock, patch

from signalhost.managers.alarm import AlarmClock
from signalhost.render.host import MemoryHost
from signalhost.state.store import MemoryStore


class FakeClock:
    """Controllable epoch clock"""

    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeAlarmClock(AlarmClock):
    """Alarm clock that only fires when told to"""

    def __init__(self):
        self.alarms = {}
        self.set_calls = []

    def set(self, key, delay, callback, *args):
        self.alarms[key] = (delay, callback, args)
        self.set_calls.append((key, delay))

    def cancel(self, key):
        return self.alarms.pop(key, None) is not None

    def is_pending(self, key):
        return key in self.alarms

    def cancel_all(self):
        self.alarms.clear()

    def fire(self, key):
        delay, callback, args = self.alarms.pop(key)
        return callback(*args)

    def pending_for(self, surface_type):
        return [key for key in self.alarms if key[0] == surface_type]


def run_inline(target, *args):
    """Spawn replacement that runs the fetch on the caller's thread"""
    target(*args)


def http_response(payload, status=200):
    """Build a urlopen() context manager returning payload"""
    if isinstance(payload, bytes):
        body = payload
    elif isinstance(payload, str):
        body = payload.encode("utf-8")
    else:
        body = json.dumps(payload).encode("utf-8")

    response = MagicMock()
    response.status = status
    response.read.return_value = body

    context = MagicMock()
    context.__enter__.return_value = response
    context.__exit__.return_value = False
    return context


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def alarm_clock():
    return FakeAlarmClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def host():
    return MemoryHost()


@pytest.fixture
def sample_payload():
    """Widget-data response body"""
    return {
        "ratio": 82,
        "signalCount": 9,
        "noiseCount": 2,
        "streak": 4,
        "lastUpdate": "2024-05-01T09:30:00Z",
    }


@pytest.fixture
def mock_urlopen(sample_payload):
    """Patch the HTTP client; returns sample_payload unless reconfigured"""
    with patch("urllib.request.urlopen") as urlopen:
        urlopen.return_value = http_response(sample_payload)
        yield urlopen


@pytest.fixture
def sample_config(tmp_path):
    """Sample configuration for testing"""
    return {
        "source": {
            "base_url": "https://metrics.test/api/widget-data",
            "identity": "tester@example.com",
            "min_interval": 30,
            "timeout": 5,
        },
        "state": {"path": str(tmp_path / "state.json")},
        "wake_sync": {"enabled": True, "throttle": 10},
        "output": {"directory": str(tmp_path / "frames")},
        "styles": {
            "default": {
                "font": "DejaVu Sans",
                "font_size": 14,
                "text_color": "#FFFFFF",
                "background_color": "#000000",
                "text_align": "center",
                "text_offset": 0,
            }
        },
        "surfaces": [
            {"id": "home-ratio", "type": "ratio"},
            {"id": "desk-ratio", "type": "ratio"},
            {"id": "tiny", "type": "compact"},
            {"id": "detail", "type": "detail"},
        ],
    }


@pytest.fixture
def config_file(tmp_path, sample_config):
    """Create a temporary config file"""
    config_path = tmp_path / "test_config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path


@pytest.fixture
def mock_platform():
    """Mock platform implementation"""
    platform = Mock()
    platform.name = "test"
    platform.detect.return_value = True
    platform.is_screen_locked.return_value = False
    return platform


@pytest.fixture(autouse=True)
def no_subprocess_calls(monkeypatch):
    """Prevent actual subprocess calls during testing"""
    monkeypatch.setattr("subprocess.run", Mock(return_value=Mock(returncode=1, stdout="")))


@pytest.fixture
def make_response():
    """Factory for urlopen() results"""
    return http_response


@pytest.fixture
def spawn_inline():
    return run_inline
