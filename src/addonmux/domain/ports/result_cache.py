"""Port for the in-memory stream result cache."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from addonmux.domain.entities.stream import CachedStreamResult, StreamResult


@runtime_checkable
class StreamResultCachePort(Protocol):
    """Memoizes fan-out outcomes with a content-aware TTL.

    ``get`` returns None for absent *and* expired entries. ``generation``
    changes on every ``clear``; a ``put`` carrying an older generation is
    discarded.
    """

    @property
    def generation(self) -> int: ...

    def get(self, key: str) -> CachedStreamResult | None: ...

    def put(
        self,
        key: str,
        result: StreamResult,
        *,
        generation: int | None = None,
    ) -> CachedStreamResult | None: ...

    def clear(self) -> None: ...
