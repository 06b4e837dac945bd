"""In-memory cache of fan-out results with content-aware freshness."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

import structlog

from addonmux.domain.entities.stream import CachedStreamResult, StreamResult
from addonmux.infrastructure.persistence.cache_policy import CacheTtlPolicy

log = structlog.get_logger(__name__)

Clock = Callable[[], float]


def stream_cache_key(
    profile_id: str,
    content_type: str,
    imdb_id: str,
    season: int | None = None,
    episode: int | None = None,
) -> str:
    """``profile|type|id|season|episode`` with missing numbers as 0."""
    return f"{profile_id}|{content_type}|{imdb_id}|{season or 0}|{episode or 0}"


class StreamResultCache:
    """Process-local result map guarded by a single lock.

    Entries are never persisted. Freshness is evaluated on read using the
    injected clock and the TTL policy; ``get`` evicts expired entries and
    reports them as misses.

    ``generation`` is bumped by every ``clear``. A writer that captured an
    older generation before doing its work has its ``put`` discarded.
    """

    def __init__(
        self,
        policy: CacheTtlPolicy | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._policy = policy or CacheTtlPolicy()
        self._clock = clock
        self._entries: dict[str, CachedStreamResult] = {}
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def policy(self) -> CacheTtlPolicy:
        return self._policy

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def _is_fresh(self, cached: CachedStreamResult) -> bool:
        age = self._clock() - cached.created_at
        return age < self._policy.ttl_for(cached.result)

    def get(self, key: str) -> CachedStreamResult | None:
        with self._lock:
            cached = self._entries.get(key)
            if cached is None:
                return None
            if not self._is_fresh(cached):
                del self._entries[key]
                return None
            return cached

    def put(
        self,
        key: str,
        result: StreamResult,
        *,
        generation: int | None = None,
    ) -> CachedStreamResult | None:
        """Store *result*. Returns None without storing when *generation* is stale."""
        with self._lock:
            if generation is not None and generation != self._generation:
                cached = None
            else:
                cached = CachedStreamResult(result=result, created_at=self._clock())
                self._entries[key] = cached
        if cached is None:
            log.debug("stream_cache_put_discarded", key=key, generation=generation)
            return None
        log.debug(
            "stream_cache_put",
            key=key,
            streams=len(result.streams),
            ttl=self._policy.ttl_for(result),
        )
        return cached

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._generation += 1
        log.debug("stream_cache_cleared", entries=count)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
