"""
Persistent key/value state shared by the fetcher, scheduler and surfaces.

The store is the single source of truth for the latest metrics. It offers
last-write-wins per key and nothing more: a reader may see a snapshot whose
fields come from two different writers if one of them is interrupted between
keys. Callers must not rely on cross-key atomicity.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def _matches_default(value: Any, default: Any) -> bool:
    """Check that a stored value has the same shape as the caller's default."""
    if default is None:
        return True

    # bool is a subclass of int; never let one stand in for the other
    if isinstance(default, bool) or isinstance(value, bool):
        return isinstance(value, bool) and isinstance(default, bool)

    if isinstance(default, float):
        return isinstance(value, (int, float))

    return isinstance(value, type(default))


class StateStore(ABC):
    """
    Base class for key/value state stores.

    Contract:
    - get() never raises; absent or malformed values yield the default
    - set() never raises; persistence failures are logged and dropped
    """

    @abstractmethod
    def _read(self, key: str) -> Any:
        """Return the raw stored value or raise KeyError."""
        pass

    @abstractmethod
    def _write(self, key: str, value: Any) -> None:
        """Store a value, raising on failure."""
        pass

    @abstractmethod
    def as_dict(self) -> Dict[str, Any]:
        """Return a shallow copy of every stored key."""
        pass

    def get(self, key: str, default: Any = None) -> Any:
        """
        Read a value.

        Args:
            key: State key
            default: Returned when the key is absent or its value has
                a different type than the default

        Returns:
            Stored value or default
        """
        try:
            value = self._read(key)
        except KeyError:
            return default
        except Exception as e:
            logger.warning(f"Failed to read state key '{key}': {e}")
            return default

        if not _matches_default(value, default):
            logger.debug(f"Malformed value for state key '{key}': {value!r}")
            return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Write a value (fire-and-forget)."""
        try:
            self._write(key, value)
        except Exception as e:
            logger.error(f"Failed to persist state key '{key}': {e}")

    def keys(self) -> List[str]:
        """List stored keys."""
        return list(self.as_dict().keys())


class MemoryStore(StateStore):
    """In-process store, used for tests and one-shot runs."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    def _read(self, key: str) -> Any:
        return self._data[key]

    def _write(self, key: str, value: Any) -> None:
        self._data[key] = value

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._data)


class JsonFileStore(StateStore):
    """
    Durable store backed by a single JSON file, shared between processes.

    The daemon and one-shot CLI commands open the same file, so the file is
    the authority: reads reload it whenever its stat signature changes, and
    every set() re-reads it, merges the one key and replaces it through a
    temp file and os.replace(). A crash leaves either the old or the new
    file on disk, never a torn one.

    Attributes:
        path: Location of the JSON file
    """

    def __init__(self, path: str):
        """
        Args:
            path: Path to the JSON state file (created on first write)
        """
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = {}
        self._signature: Optional[Tuple[int, int, int]] = None
        with self._lock:
            self._sync()

    def _current_signature(self) -> Optional[Tuple[int, int, int]]:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        # os.replace() gives every write a new inode
        return (stat.st_ino, stat.st_mtime_ns, stat.st_size)

    def _sync(self, force: bool = False) -> None:
        """Reload from disk if another writer replaced the file. Caller holds the lock."""
        signature = self._current_signature()
        if not force and signature == self._signature:
            return
        if signature is None and self._signature is None:
            # Never written; keep values whose flush failed
            return
        self._data = self._load()
        self._signature = signature

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            logger.debug(f"No state file at {self.path}, starting empty")
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable state file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring state file {self.path}: top level is not an object")
            return {}

        logger.debug(f"Loaded {len(data)} state keys from {self.path}")
        return data

    def _read(self, key: str) -> Any:
        with self._lock:
            self._sync()
            return self._data[key]

    def _write(self, key: str, value: Any) -> None:
        with self._lock:
            self._sync(force=True)
            self._data[key] = value
            self._flush()
            self._signature = self._current_signature()

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".state-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, sort_keys=True)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def as_dict(self) -> Dict[str, Any]:
        with self._lock:
            self._sync()
            return dict(self._data)

    def __repr__(self) -> str:
        return f"<JsonFileStore(path={self.path})>"
