"""Port for the VOD fallback lookup service."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from addonmux.domain.entities.stream import StreamSource


@runtime_checkable
class VodLookupPort(Protocol):
    """Finds a single VOD source for a title outside the addon fan-out."""

    async def find_movie_vod_source(
        self,
        *,
        title: str,
        year: int | None = None,
        imdb_id: str | None = None,
        tmdb_id: int | None = None,
    ) -> StreamSource | None: ...

    async def find_episode_vod_source(
        self,
        *,
        title: str,
        season: int,
        episode: int,
        imdb_id: str | None = None,
        tmdb_id: int | None = None,
    ) -> StreamSource | None: ...
