"""VOD fallback lookup outside the addon fan-out.

The lookup service itself is injected (``VodLookupPort``); this wrapper
only bounds how long a caller waits for it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Protocol

import structlog

from addonmux.domain.entities.stream import StreamSource
from addonmux.domain.ports.vod_lookup import VodLookupPort

log = structlog.get_logger(__name__)

_MIN_TIMEOUT = 0.5
_MAX_TIMEOUT = 90.0


class _VodConfig(Protocol):
    vod_lookup_timeout_seconds: float
    vod_append_timeout_seconds: float


def clamp_vod_timeout(timeout: float) -> float:
    return min(max(timeout, _MIN_TIMEOUT), _MAX_TIMEOUT)


class VodFallback:
    """Bounded wrapper around a ``VodLookupPort``.

    Without an explicit timeout the deadline depends on whether addon
    streams already exist: the cold deadline recovers playback when the
    fan-out found nothing, the shorter append deadline only enriches an
    existing list. Errors and timeouts yield None.
    """

    def __init__(self, *, lookup: VodLookupPort, config: _VodConfig) -> None:
        self._lookup = lookup
        self._cold_timeout = config.vod_lookup_timeout_seconds
        self._append_timeout = config.vod_append_timeout_seconds

    def _timeout_for(self, has_addon_streams: bool, timeout: float | None) -> float:
        if timeout is not None:
            return clamp_vod_timeout(timeout)
        return self._append_timeout if has_addon_streams else self._cold_timeout

    async def movie(
        self,
        *,
        title: str,
        year: int | None = None,
        imdb_id: str | None = None,
        tmdb_id: int | None = None,
        has_addon_streams: bool = False,
        timeout: float | None = None,
    ) -> StreamSource | None:
        return await self._bounded(
            self._lookup.find_movie_vod_source(
                title=title, year=year, imdb_id=imdb_id, tmdb_id=tmdb_id
            ),
            self._timeout_for(has_addon_streams, timeout),
            kind="movie",
            title=title,
        )

    async def episode(
        self,
        *,
        title: str,
        season: int,
        episode: int,
        imdb_id: str | None = None,
        tmdb_id: int | None = None,
        has_addon_streams: bool = False,
        timeout: float | None = None,
    ) -> StreamSource | None:
        return await self._bounded(
            self._lookup.find_episode_vod_source(
                title=title,
                season=season,
                episode=episode,
                imdb_id=imdb_id,
                tmdb_id=tmdb_id,
            ),
            self._timeout_for(has_addon_streams, timeout),
            kind="episode",
            title=title,
        )

    async def _bounded(
        self,
        lookup: Awaitable[StreamSource | None],
        timeout: float,
        *,
        kind: str,
        title: str,
    ) -> StreamSource | None:
        try:
            return await asyncio.wait_for(lookup, timeout=timeout)
        except TimeoutError:
            log.debug("vod_lookup_timeout", kind=kind, title=title, timeout=timeout)
            return None
        except Exception:
            log.warning("vod_lookup_error", kind=kind, title=title, exc_info=True)
            return None
