"""
Shared state: the key/value store and the metric snapshot stored in it.
"""

from .snapshot import DataSource, MetricSnapshot, UNKNOWN_RATIO, read_snapshot, write_snapshot
from .store import JsonFileStore, MemoryStore, StateStore

__all__ = [
    "StateStore",
    "MemoryStore",
    "JsonFileStore",
    "DataSource",
    "MetricSnapshot",
    "UNKNOWN_RATIO",
    "read_snapshot",
    "write_snapshot",
]
