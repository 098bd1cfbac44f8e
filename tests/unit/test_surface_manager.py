"""
Tests for SurfaceManager and SurfaceRegistry.
"""

import threading
import unittest
from unittest.mock import MagicMock, Mock

from signalhost.managers.surface import SurfaceManager, SurfaceRegistry
from signalhost.render.host import MemoryHost
from signalhost.render.renderer import FrameRenderer
from signalhost.state.snapshot import KEY_DATA_SOURCE, KEY_RATIO
from signalhost.state.store import MemoryStore
from signalhost.surfaces.base import BaseSurface


class MockSurface(BaseSurface):
    """Mock surface for testing."""

    surface_type = "mock"
    refresh_interval = 1.0
    fallback_text = "!"

    def render_text(self, snapshot):
        return f"Mock: {snapshot.ratio}"


class BrokenSurface(BaseSurface):
    """Surface whose renderer always fails."""

    surface_type = "broken"
    fallback_text = "ERR"

    def render_text(self, snapshot):
        raise RuntimeError("layout inflation failed")


class PickySurface(BaseSurface):
    surface_type = "picky"

    def validate_config(self):
        return "needed" in self.config

    def render_text(self, snapshot):
        return "ok"


class InvalidSurface:
    """Invalid surface that doesn't inherit from BaseSurface."""

    surface_type = "invalid"


class TestSurfaceRegistry(unittest.TestCase):
    """Test SurfaceRegistry functionality."""

    def setUp(self):
        self.registry = SurfaceRegistry()

    def test_register_valid_surface(self):
        self.registry.register(MockSurface)
        self.assertIn("mock", self.registry.list_surfaces())
        self.assertEqual(self.registry.get_surface_class("mock"), MockSurface)

    def test_register_invalid_surface(self):
        with self.assertRaises(TypeError):
            self.registry.register(InvalidSurface)

    def test_register_surface_without_type(self):
        class Untyped(BaseSurface):
            def render_text(self, snapshot):
                return ""

        with self.assertRaises(ValueError):
            self.registry.register(Untyped)

    def test_register_duplicate_surface(self):
        self.registry.register(MockSurface)
        # Should log warning but succeed
        self.registry.register(MockSurface)
        self.assertEqual(self.registry.get_surface_class("mock"), MockSurface)

    def test_get_nonexistent_surface(self):
        self.assertIsNone(self.registry.get_surface_class("nonexistent"))

    def test_list_surfaces_empty(self):
        self.assertEqual(self.registry.list_surfaces(), [])

    def test_auto_discover(self):
        self.registry.auto_discover()
        for surface_type in ("ratio", "compact", "detail", "debug", "gauge"):
            self.assertIn(surface_type, self.registry.list_surfaces())


class TestSurfaceManager(unittest.TestCase):
    """Test SurfaceManager functionality."""

    def setUp(self):
        self.store = MemoryStore()
        self.host = MemoryHost()
        self.renderer = FrameRenderer()
        self.manager = SurfaceManager(
            self.store, self.renderer, self.host, {"default": {"font_size": 12}}
        )
        for surface_class in (MockSurface, BrokenSurface, PickySurface):
            self.manager.surface_registry.register(surface_class)

    def test_activate(self):
        self.assertTrue(self.manager.activate("m1", {"type": "mock"}))
        self.assertTrue(self.manager.has_surfaces())
        self.assertEqual(self.manager.get_instance_type("m1"), "mock")
        self.assertEqual(self.manager.get_refresh_interval("m1"), 1.0)

    def test_activate_without_type(self):
        self.assertFalse(self.manager.activate("m1", {}))
        self.assertEqual(self.manager.get_surface_count(), 0)

    def test_activate_unknown_type(self):
        self.assertFalse(self.manager.activate("m1", {"type": "nonexistent"}))

    def test_activate_invalid_config(self):
        self.assertFalse(self.manager.activate("p1", {"type": "picky"}))
        self.assertTrue(self.manager.activate("p2", {"type": "picky", "needed": 1}))

    def test_render_presents_frame(self):
        self.store.set(KEY_RATIO, 82)
        self.manager.activate("m1", {"type": "mock"})

        frame = self.manager.render_instance("m1")

        self.assertTrue(frame.startswith(b"\x89PNG"))
        self.assertEqual(self.host.text_for("m1"), "Mock: 82")
        self.assertEqual(self.manager.get_surface_text("m1"), "Mock: 82")
        self.assertFalse(self.manager.is_failed("m1"))

    def test_render_unknown_instance(self):
        self.assertIsNone(self.manager.render_instance("ghost"))
        self.assertEqual(self.host.frames, {})

    def test_removal_during_worker_render_stays_removed(self):
        """A frame drawn on a worker for a since-removed instance is dropped"""
        self.manager.activate("m1", {"type": "mock"})
        drawing = threading.Event()
        release = threading.Event()
        real_render = self.renderer.render

        def slow_render(*args, **kwargs):
            drawing.set()
            release.wait(timeout=3)
            return real_render(*args, **kwargs)

        self.renderer.render = slow_render
        results = []
        worker = threading.Thread(target=lambda: results.append(self.manager.render_instance("m1")))
        worker.start()

        self.assertTrue(drawing.wait(timeout=3))
        self.assertEqual(self.manager.remove("m1"), "mock")
        release.set()
        worker.join(timeout=3)

        self.assertEqual(results, [None])
        self.assertIsNone(self.host.text_for("m1"))
        self.assertEqual(self.host.frames, {})

    def test_failed_render_shows_fallback(self):
        """A failing surface shows its glyph while siblings render normally"""
        self.store.set(KEY_RATIO, 70)
        self.store.set(KEY_DATA_SOURCE, "REDIS")
        self.manager.activate("bad", {"type": "broken"})
        self.manager.activate("good", {"type": "mock"})

        self.assertIsNotNone(self.manager.render_instance("bad"))
        self.manager.render_instance("good")

        self.assertEqual(self.host.text_for("bad"), "ERR")
        self.assertTrue(self.manager.is_failed("bad"))
        self.assertEqual(self.host.text_for("good"), "Mock: 70")
        self.assertFalse(self.manager.is_failed("good"))

    def test_failure_flag_clears_on_success(self):
        surface_mock = MagicMock(spec=MockSurface)
        surface_mock.surface_type = "mock"
        surface_mock.render_text.side_effect = [RuntimeError("once"), "Recovered"]
        surface_mock.render_icon.return_value = None
        surface_mock.get_fallback_text.return_value = "!"

        self.manager.active_surfaces["m1"] = {
            "surface": surface_mock,
            "surface_config": {"type": "mock"},
            "last_render": 0.0,
            "cached_text": None,
            "failed": False,
        }

        self.manager.render_instance("m1")
        self.assertTrue(self.manager.is_failed("m1"))

        self.manager.render_instance("m1")
        self.assertFalse(self.manager.is_failed("m1"))
        self.assertEqual(self.host.text_for("m1"), "Recovered")

    def test_host_failure_is_contained(self):
        self.manager.host = Mock()
        self.manager.host.present.side_effect = OSError("disk full")
        self.manager.activate("m1", {"type": "mock"})

        self.assertIsNone(self.manager.render_instance("m1"))
        self.assertIsNone(self.manager.get_surface_text("m1"))

    def test_remove(self):
        self.manager.activate("m1", {"type": "mock"})
        self.manager.render_instance("m1")

        self.assertEqual(self.manager.remove("m1"), "mock")
        self.assertFalse(self.manager.has_surfaces())
        self.assertIsNone(self.host.text_for("m1"))
        self.assertIsNone(self.manager.remove("m1"))

    def test_instance_ids_by_type(self):
        self.manager.activate("a", {"type": "mock"})
        self.manager.activate("b", {"type": "broken"})
        self.manager.activate("c", {"type": "mock"})

        self.assertEqual(self.manager.instance_ids("mock"), ["a", "c"])
        self.assertEqual(self.manager.instance_ids("broken"), ["b"])
        self.assertEqual(self.manager.instance_ids("picky"), [])

    def test_style_and_size_selection(self):
        self.assertEqual(self.manager._style_for({"style": "missing"}), {"font_size": 12})
        self.assertEqual(self.manager._size_for({"size": [72, 72]}), (72, 72))
        self.assertEqual(self.manager._size_for({}), (144, 72))

    def test_clear(self):
        self.manager.activate("m1", {"type": "mock"})
        self.manager.clear()
        self.assertEqual(self.manager.get_surface_count(), 0)
