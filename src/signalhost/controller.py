"""
Main controller for signalhost.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

from .config.loader import ConfigLoader
from .managers import (
    Dispatcher,
    FetchOutcome,
    PushBridge,
    RefreshScheduler,
    RemoteFetcher,
    SurfaceManager,
    ThreadingAlarmClock,
    TriggerQueue,
    WakeMonitor,
)
from .managers.alarm import AlarmClock
from .managers.triggers import REFRESH, TIMER_FIRE, WAKE, Trigger
from .platforms import detect_platform
from .platforms.base import Platform
from .render.host import DirectoryHost, SurfaceHost
from .render.renderer import FrameRenderer
from .state.snapshot import KEY_LAST_WAKE_SYNC
from .state.store import JsonFileStore, StateStore

logger = logging.getLogger(__name__)

_DETECT = object()


class HostController:
    """
    Main controller orchestrating the synchronization engine.

    This controller wires the shared pieces together and delegates:
    - SurfaceManager: surface instances and their rendering
    - RefreshScheduler: per-type refresh timers
    - RemoteFetcher: rate-limited pulls into the state store
    - Dispatcher: fan-out after data changes
    - PushBridge: data pushed from the web page
    - WakeMonitor: sync on screen unlock
    """

    def __init__(
        self,
        config_path: str,
        store: Optional[StateStore] = None,
        alarm_clock: Optional[AlarmClock] = None,
        host: Optional[SurfaceHost] = None,
        platform: Any = _DETECT,
        spawn: Optional[Callable[..., None]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the controller.

        Args:
            config_path: Path to YAML configuration file
            store: State store (default: JSON file from the config)
            alarm_clock: Alarm service (default: threading timers)
            host: Surface host (default: output directory from the config)
            platform: Platform for wake detection (default: auto-detect, None disables)
            spawn: Runs fetches off-thread (default: daemon threads)
            clock: Time source for rate limiting and wake throttling
        """
        self.config_path: str = config_path
        self.config: Optional[Dict[str, Any]] = None
        self.running: bool = False

        self.platform: Optional[Platform] = detect_platform() if platform is _DETECT else platform
        logger.info(f"Detected platform: {self.platform.name if self.platform else 'generic'}")

        self.config_loader: ConfigLoader = ConfigLoader()
        self.renderer: FrameRenderer = FrameRenderer()
        self.triggers: TriggerQueue = TriggerQueue()
        self.alarm_clock: AlarmClock = alarm_clock or ThreadingAlarmClock()

        self._store = store
        self._host = host
        self._spawn = spawn
        self._clock = clock

        # Built once the configuration is loaded
        self.store: Optional[StateStore] = None
        self.host: Optional[SurfaceHost] = None
        self.surface_manager: Optional[SurfaceManager] = None
        self.dispatcher: Optional[Dispatcher] = None
        self.fetcher: Optional[RemoteFetcher] = None
        self.scheduler: Optional[RefreshScheduler] = None
        self.bridge: Optional[PushBridge] = None
        self.wake_monitor: Optional[WakeMonitor] = None

    def load_config(self) -> bool:
        """
        Load configuration from file and build the engine.

        Returns:
            True if successful, False otherwise
        """
        try:
            self.config = self.config_loader.load(self.config_path)
        except Exception as e:
            logger.error(f"Failed to load config: {e}")
            return False

        self._build()
        return True

    def _build(self) -> None:
        source = self.config["source"]
        state = self.config["state"]

        self.store = self._store or JsonFileStore(state["path"])
        self.host = self._host or DirectoryHost(self.config["output"]["directory"])

        self.surface_manager = SurfaceManager(
            self.store, self.renderer, self.host, self.config.get("styles", {})
        )
        self.surface_manager.surface_registry.auto_discover()
        logger.info(f"Registered surfaces: {self.surface_manager.surface_registry.list_surfaces()}")

        self.dispatcher = Dispatcher(self.surface_manager)
        self.fetcher = RemoteFetcher(
            self.store,
            source["base_url"],
            dispatcher=self.dispatcher,
            min_interval=source["min_interval"],
            timeout=source["timeout"],
            identity=source.get("identity"),
            spawn=self._spawn,
            clock=self._clock,
            reject_stale_writes=state["reject_stale_writes"],
        )
        self.scheduler = RefreshScheduler(
            self.alarm_clock,
            on_fire=self._refresh_type,
            deliver=self.triggers.post_timer_fire,
            clock=self._clock,
        )
        self.bridge = PushBridge(self.store, self.dispatcher, clock=self._clock)

        if self.config["wake_sync"]["enabled"]:
            self.wake_monitor = WakeMonitor(self.platform, self.triggers.post_wake)

    def activate_surface(self, surface_config: Dict[str, Any], fetch: bool = True) -> bool:
        """
        Bring a surface instance online: render it, schedule it, pull data.

        Args:
            surface_config: Surface entry with 'id' and 'type'
            fetch: Request a background fetch after the first render

        Returns:
            True if the instance was activated
        """
        instance_id = surface_config.get("id")
        if not instance_id or not self.surface_manager.activate(instance_id, surface_config):
            return False

        surface_type = self.surface_manager.get_instance_type(instance_id)
        self.scheduler.activate(
            surface_type, instance_id, self.surface_manager.get_refresh_interval(instance_id)
        )
        self.surface_manager.render_instance(instance_id)
        if fetch:
            self.fetcher.request_refresh()
        return True

    def remove_surface(self, instance_id: str) -> bool:
        """
        Tear down a surface instance and its timer.

        Returns:
            True if the instance was active
        """
        surface_type = self.surface_manager.remove(instance_id)
        if surface_type is None:
            logger.debug(f"No active surface {instance_id}")
            return False

        self.scheduler.remove(surface_type, instance_id)
        return True

    def activate_all(self, fetch: bool = True) -> int:
        """Activate every surface in the configuration."""
        activated = 0
        for surface_config in self.config.get("surfaces", []):
            if self.activate_surface(surface_config, fetch):
                activated += 1
            else:
                logger.warning(f"Surface {surface_config.get('id')} could not be activated")
        return activated

    def request_refresh(self) -> None:
        """Queue a manual refresh."""
        self.triggers.post_refresh()

    def refresh_now(self) -> FetchOutcome:
        """
        Fetch synchronously and update every surface.

        Returns:
            Outcome of the fetch
        """
        outcome = self.fetcher.fetch()
        if outcome != FetchOutcome.FETCHED:
            # The fetcher only fans out on success; show ERROR/stale state too
            self.dispatcher.dispatch()
        return outcome

    def push(self, json_data: str) -> bool:
        """Entry point for data pushed by the web page."""
        return self.bridge.update_widget_data(json_data)

    def handle_trigger(self, trigger: Trigger) -> None:
        """Act on one update trigger."""
        if trigger.kind == REFRESH:
            logger.info("Manual refresh requested")
            self.fetcher.request_refresh()
            self.dispatcher.dispatch()
        elif trigger.kind == TIMER_FIRE:
            self.scheduler.handle_fire(trigger.surface_type, trigger.instance_id)
        elif trigger.kind == WAKE:
            self._wake_sync()
        else:
            logger.warning(f"Unknown trigger: {trigger}")

    def process_pending(self) -> int:
        """Handle every queued trigger without waiting."""
        handled = 0
        while self.triggers.process(self.handle_trigger, timeout=0):
            handled += 1
        return handled

    def _refresh_type(self, surface_type: str) -> None:
        """Timer callback: one fetch request, then redraw the type."""
        self.fetcher.request_refresh()
        self.dispatcher.dispatch_type(surface_type)

    def _wake_sync(self) -> None:
        throttle = self.config["wake_sync"]["throttle"]
        now = self._clock()
        last_sync = self.store.get(KEY_LAST_WAKE_SYNC, 0.0)

        if now - last_sync <= throttle:
            logger.debug(f"Screen wake - throttled (last sync {now - last_sync:.1f}s ago)")
            return

        self.store.set(KEY_LAST_WAKE_SYNC, now)
        logger.info("Screen wake - triggering sync")
        self.fetcher.request_refresh()

    def run(self) -> None:
        """
        Main application run loop.

        Handles:
        - Loading configuration and activating configured surfaces
        - Processing refresh, timer and wake triggers
        - Graceful shutdown
        """
        if not self.load_config():
            logger.error("Cannot start without valid configuration")
            return

        activated = self.activate_all()
        if not activated:
            logger.warning("No surfaces active - timers stay idle until one is added")

        self.running = True
        if self.wake_monitor:
            self.wake_monitor.start()
        logger.info(f"signalhost is running with {activated} surfaces. Press Ctrl+C to exit.")

        try:
            while self.running:
                self.triggers.process(self.handle_trigger, timeout=0.5)

        except KeyboardInterrupt:
            logger.info("Received shutdown signal")
        except Exception as e:
            logger.error(f"Unexpected error in main loop: {e}", exc_info=True)
        finally:
            logger.info("Shutting down signalhost...")
            self.stop()

    def stop(self) -> None:
        """Stop monitoring and cancel all timers."""
        self.running = False

        if self.wake_monitor:
            self.wake_monitor.stop()

        if self.scheduler:
            self.scheduler.shutdown()
