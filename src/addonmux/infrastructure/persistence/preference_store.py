"""Durable key-value preference stores."""

from __future__ import annotations

import threading
from pathlib import Path

import structlog
from diskcache import Cache as DiskCache

log = structlog.get_logger(__name__)


class DiskcachePreferenceStore:
    """Preference store backed by ``diskcache.Cache`` (SQLite, no daemon).

    Values never expire. The directory is created on first open, not on
    construction.

    Args:
        directory: SQLite directory for the store.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self._cache: DiskCache | None = None

    def _open(self) -> DiskCache:
        if self._cache is None:
            self._cache = DiskCache(str(self.directory))
            log.debug("preference_store_opened", directory=str(self.directory))
        return self._cache

    def __enter__(self) -> DiskcachePreferenceStore:
        self._open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()
            self._cache = None
            log.debug("preference_store_closed", directory=str(self.directory))

    def get(self, key: str) -> str | None:
        value = self._open().get(key, default=None)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        self._open().set(key, value)

    def delete(self, key: str) -> None:
        self._open().delete(key)


class InMemoryPreferenceStore:
    """Dict-backed store for tests and one-shot runs."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
