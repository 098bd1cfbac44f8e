"""
Metric snapshot model and the state keys it is stored under.
"""

import logging
from enum import Enum
from typing import Any, Optional

from .store import StateStore

logger = logging.getLogger(__name__)

# State keys shared by the fetcher, the push bridge and every surface
KEY_RATIO = "current_ratio"
KEY_SIGNAL_COUNT = "signal_count"
KEY_NOISE_COUNT = "noise_count"
KEY_STREAK = "streak"
KEY_LAST_UPDATE = "last_update"
KEY_DATA_SOURCE = "data_source"
KEY_LAST_FETCH = "last_fetch_time"
KEY_IDENTITY = "user_email"
KEY_REMOTE_LAST_UPDATE = "remote_last_update"
KEY_STATUS = "current_status"
KEY_PREMIUM = "is_premium"
KEY_PATTERN = "pattern_insight"
KEY_LAST_WAKE_SYNC = "last_wake_sync_time"

# Sentinel for "no ratio known yet"; 0 is a real ratio
UNKNOWN_RATIO = -1

DEFAULT_IDENTITY = "demo@signal-noise.app"


class DataSource(str, Enum):
    """Where the currently stored metrics came from."""

    REDIS = "REDIS"
    ERROR = "ERROR"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> "DataSource":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


def validate_ratio(value: Any) -> int:
    """
    Check a ratio value.

    Args:
        value: Candidate ratio

    Returns:
        The ratio as an int in [0, 100]

    Raises:
        ValueError: If the value is not an integer percentage
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"ratio must be an integer, got {value!r}")
    if not 0 <= value <= 100:
        raise ValueError(f"ratio must be within 0-100, got {value}")
    return value


class MetricSnapshot:
    """
    The latest known signal/noise metrics.

    Attributes:
        ratio: Percentage of signal tasks (0-100) or UNKNOWN_RATIO
        signal_count: Signal tasks today
        noise_count: Noise tasks today
        streak: Consecutive days on target
        data_source: Origin of the values
        last_update: Epoch seconds of the last successful write (0 = never)
    """

    def __init__(
        self,
        ratio: int = UNKNOWN_RATIO,
        signal_count: int = 0,
        noise_count: int = 0,
        streak: int = 0,
        data_source: DataSource = DataSource.UNKNOWN,
        last_update: float = 0.0,
    ):
        if ratio != UNKNOWN_RATIO:
            validate_ratio(ratio)
        self.ratio = ratio
        self.signal_count = signal_count
        self.noise_count = noise_count
        self.streak = streak
        self.data_source = data_source
        self.last_update = last_update

    @property
    def has_ratio(self) -> bool:
        return self.ratio != UNKNOWN_RATIO

    @property
    def status(self) -> Optional[str]:
        """SIGNAL / BALANCED / NOISE band for the ratio, None when unknown."""
        if not self.has_ratio:
            return None
        if self.ratio >= 80:
            return "SIGNAL"
        if self.ratio >= 60:
            return "BALANCED"
        return "NOISE"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetricSnapshot):
            return NotImplemented
        return (
            self.ratio == other.ratio
            and self.signal_count == other.signal_count
            and self.noise_count == other.noise_count
            and self.streak == other.streak
            and self.data_source == other.data_source
            and self.last_update == other.last_update
        )

    def __repr__(self) -> str:
        return (
            f"<MetricSnapshot(ratio={self.ratio}, signal={self.signal_count}, "
            f"noise={self.noise_count}, streak={self.streak}, source={self.data_source.value})>"
        )


def read_snapshot(store: StateStore) -> MetricSnapshot:
    """Build a snapshot from the store, defaulting anything missing or invalid."""
    ratio = store.get(KEY_RATIO, UNKNOWN_RATIO)
    if ratio != UNKNOWN_RATIO:
        try:
            validate_ratio(ratio)
        except ValueError as e:
            logger.warning(f"Ignoring stored ratio: {e}")
            ratio = UNKNOWN_RATIO

    return MetricSnapshot(
        ratio=ratio,
        signal_count=max(store.get(KEY_SIGNAL_COUNT, 0), 0),
        noise_count=max(store.get(KEY_NOISE_COUNT, 0), 0),
        streak=max(store.get(KEY_STREAK, 0), 0),
        data_source=DataSource.parse(store.get(KEY_DATA_SOURCE, DataSource.UNKNOWN.value)),
        last_update=store.get(KEY_LAST_UPDATE, 0.0),
    )


def write_snapshot(store: StateStore, snapshot: MetricSnapshot) -> None:
    """Write every snapshot field, one key at a time."""
    store.set(KEY_RATIO, snapshot.ratio)
    store.set(KEY_SIGNAL_COUNT, snapshot.signal_count)
    store.set(KEY_NOISE_COUNT, snapshot.noise_count)
    store.set(KEY_STREAK, snapshot.streak)
    store.set(KEY_LAST_UPDATE, snapshot.last_update)
    store.set(KEY_DATA_SOURCE, snapshot.data_source.value)


def mark_error(store: StateStore) -> None:
    """Flag the stored data as coming from a failed fetch, keeping the values."""
    store.set(KEY_DATA_SOURCE, DataSource.ERROR.value)


def resolve_identity(store: StateStore, fallback: Optional[str] = None) -> str:
    """Identity to fetch for: stored user, then configured, then the built-in default."""
    identity = store.get(KEY_IDENTITY, "")
    if identity:
        return identity
    return fallback or DEFAULT_IDENTITY
