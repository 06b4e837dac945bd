"""Port for anime episode identifier mapping."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class AnimeMapperPort(Protocol):
    """Resolves an alternate (Kitsu-style) id for an anime episode."""

    def is_anime_content(
        self,
        tmdb_id: int | None,
        genre_ids: tuple[int, ...] = (),
        original_language: str | None = None,
    ) -> bool:
        """Return True when the title should be queried as anime."""
        ...

    async def resolve_anime_episode_query(
        self,
        *,
        tmdb_id: int | None,
        tvdb_id: int | None,
        title: str,
        imdb_id: str,
        season: int,
        episode: int,
    ) -> str | None:
        """Return e.g. ``kitsu:12345:7`` or None when nothing maps."""
        ...
