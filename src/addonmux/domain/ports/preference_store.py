"""Port for the durable key-value preference store."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PreferenceStorePort(Protocol):
    """Synchronous string key-value store that survives restarts.

    Holds the serialized addon lists and the torrent helper base URL.
    """

    def get(self, key: str) -> str | None:
        """Return the stored value or None when the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove *key* if present."""
        ...
