"""
Rate-limited remote fetcher for signal/noise metrics.

A FetchGate (the circuit breaker) is stamped before the network call goes
out, so overlapping callers see it immediately. The gate is the only thing
serializing fetches; the network round trip itself is never locked.
"""

import json
import logging
import threading
import time
import urllib.error
import urllib.parse
import urllib.request
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..state.snapshot import (
    KEY_LAST_FETCH,
    KEY_LAST_UPDATE,
    KEY_REMOTE_LAST_UPDATE,
    UNKNOWN_RATIO,
    DataSource,
    MetricSnapshot,
    mark_error,
    resolve_identity,
    validate_ratio,
    write_snapshot,
)
from ..state.store import StateStore
from ..utils.errors import FetchError, NetworkFailure, ParseFailure, safe_execute

logger = logging.getLogger(__name__)


class FetchOutcome(str, Enum):
    """Result of a fetch request."""

    FETCHED = "fetched"
    SCHEDULED = "scheduled"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"
    DISCARDED = "discarded"


def _spawn_thread(target: Callable[..., Any], *args: Any) -> None:
    """Run a fetch on a short-lived daemon thread."""
    thread = threading.Thread(target=target, args=args, daemon=True, name="RemoteFetch")
    thread.start()


def _count_field(payload: Dict[str, Any], name: str) -> int:
    value = payload.get(name, 0)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ParseFailure(f"'{name}' must be a non-negative integer, got {value!r}")
    return value


def parse_payload(body: str) -> Dict[str, Any]:
    """
    Parse the widget-data JSON document.

    Args:
        body: Raw response body

    Returns:
        Dict with ratio, signal_count, noise_count, streak, last_update

    Raises:
        ParseFailure: If the body is not a valid metrics document
    """
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise ParseFailure(f"Invalid JSON response: {e}")

    if not isinstance(payload, dict):
        raise ParseFailure("Response body is not a JSON object")

    ratio = payload.get("ratio", UNKNOWN_RATIO)
    if ratio != UNKNOWN_RATIO:
        try:
            validate_ratio(ratio)
        except ValueError as e:
            raise ParseFailure(str(e))

    last_update = payload.get("lastUpdate", "")
    if not isinstance(last_update, str):
        last_update = str(last_update)

    return {
        "ratio": ratio,
        "signal_count": _count_field(payload, "signalCount"),
        "noise_count": _count_field(payload, "noiseCount"),
        "streak": _count_field(payload, "streak"),
        "last_update": last_update,
    }


class RemoteFetcher:
    """
    Fetches metrics for one identity and writes them into the state store.

    Responsibilities:
    - Circuit breaking via the FetchGate (minimum interval between fetches)
    - One HTTP GET per allowed fetch, with a short timeout
    - Last-known-good preservation on failure
    - Fan-out notification after a successful write
    """

    DEFAULT_MIN_INTERVAL = 30.0
    DEFAULT_TIMEOUT = 5.0

    def __init__(
        self,
        store: StateStore,
        base_url: str,
        dispatcher: Optional[Any] = None,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        identity: Optional[str] = None,
        spawn: Optional[Callable[..., None]] = None,
        clock: Callable[[], float] = time.time,
        reject_stale_writes: bool = False,
    ):
        """
        Initialize the fetcher.

        Args:
            store: Shared state store
            base_url: Widget-data endpoint
            dispatcher: Dispatcher notified after a successful fetch (optional)
            min_interval: Minimum seconds between two fetches
            timeout: Connect/read timeout in seconds
            identity: Configured identity, used when the store has none
            spawn: Runs a callable off the caller's thread (default: daemon thread)
            clock: Time source returning epoch seconds
            reject_stale_writes: Drop results of fetches that started before
                the currently stored data was written
        """
        self.store = store
        self.base_url = base_url
        self.dispatcher = dispatcher
        self.min_interval = min_interval
        self.timeout = timeout
        self.identity = identity
        self.reject_stale_writes = reject_stale_writes
        self._spawn = spawn or _spawn_thread
        self._clock = clock
        self._gate_lock = threading.Lock()
        self.network_calls = 0

    def try_acquire_gate(self) -> Optional[float]:
        """
        Check and stamp the FetchGate.

        Returns:
            The stamp time if the fetch may proceed, None if rate limited
        """
        with self._gate_lock:
            now = self._clock()
            last_fetch = self.store.get(KEY_LAST_FETCH, 0.0)
            if now - last_fetch < self.min_interval:
                logger.debug(
                    f"Circuit breaker: skipping fetch ({now - last_fetch:.1f}s since last, "
                    f"minimum {self.min_interval:.0f}s)"
                )
                return None

            # Stamped before the call; a failed fetch still spends the cooldown
            self.store.set(KEY_LAST_FETCH, now)
            return now

    def fetch(self, identity: Optional[str] = None) -> FetchOutcome:
        """
        Fetch synchronously.

        Args:
            identity: Identity to fetch for (default: resolved from the store)

        Returns:
            RATE_LIMITED, FETCHED, FAILED or DISCARDED
        """
        started_at = self.try_acquire_gate()
        if started_at is None:
            return FetchOutcome.RATE_LIMITED
        return self._fetch_and_store(identity or resolve_identity(self.store, self.identity), started_at)

    def request_refresh(self, identity: Optional[str] = None) -> FetchOutcome:
        """
        Fetch off the caller's thread.

        The gate is checked here so overlapping callers are turned away
        before any worker starts.

        Returns:
            RATE_LIMITED or SCHEDULED
        """
        started_at = self.try_acquire_gate()
        if started_at is None:
            return FetchOutcome.RATE_LIMITED

        resolved = identity or resolve_identity(self.store, self.identity)
        self._spawn(self._fetch_and_store, resolved, started_at)
        return FetchOutcome.SCHEDULED

    def _fetch_and_store(self, identity: str, started_at: float) -> FetchOutcome:
        """Perform the round trip and record the result. Never raises."""
        try:
            data = self._request(identity)
        except FetchError as e:
            logger.error(f"Failed to fetch metrics for {identity}: {e}")
            mark_error(self.store)
            return FetchOutcome.FAILED
        except Exception as e:
            logger.error(f"Unexpected error fetching metrics: {e}", exc_info=True)
            mark_error(self.store)
            return FetchOutcome.FAILED

        if self.reject_stale_writes and started_at < self.store.get(KEY_LAST_UPDATE, 0.0):
            logger.info("Discarding fetch result older than the stored data")
            return FetchOutcome.DISCARDED

        snapshot = MetricSnapshot(
            ratio=data["ratio"],
            signal_count=data["signal_count"],
            noise_count=data["noise_count"],
            streak=data["streak"],
            data_source=DataSource.REDIS,
            last_update=self._clock(),
        )
        write_snapshot(self.store, snapshot)
        self.store.set(KEY_REMOTE_LAST_UPDATE, data["last_update"])
        logger.info(f"Updated from remote - ratio: {snapshot.ratio}%")

        if self.dispatcher is not None:
            safe_execute(self.dispatcher.dispatch, default=0)

        return FetchOutcome.FETCHED

    def _request(self, identity: str) -> Dict[str, Any]:
        """Issue the GET and parse the body."""
        url = f"{self.base_url}?{urllib.parse.urlencode({'email': identity})}"
        self.network_calls += 1
        logger.debug(f"Fetching metrics from {self.base_url}")

        try:
            with urllib.request.urlopen(url, timeout=self.timeout) as response:
                status = getattr(response, "status", 200)
                if status != 200:
                    raise NetworkFailure(f"Unexpected response code {status}")
                body = response.read().decode("utf-8")

        except urllib.error.HTTPError as e:
            raise NetworkFailure(f"HTTP error {e.code} - {e.reason}")
        except urllib.error.URLError as e:
            raise NetworkFailure(f"Connection error: {e.reason}")
        except (TimeoutError, OSError) as e:
            raise NetworkFailure(f"Request failed: {e}")
        except UnicodeDecodeError as e:
            raise ParseFailure(f"Response is not UTF-8: {e}")

        return parse_payload(body)
