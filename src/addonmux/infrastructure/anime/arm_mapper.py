"""TMDB -> Kitsu episode mapping through the ARM API (arm.haglund.dev)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

log = structlog.get_logger(__name__)

_ARM_URL = "https://arm.haglund.dev/api/v2/themoviedb"
_KITSU_ANIME_URL = "https://kitsu.io/api/edge/anime"

_ANIMATION_GENRE_ID = 16
# Typical anime cour length, assumed when Kitsu has no episode count.
_ASSUMED_COUR_EPISODES = 12
_MAX_CACHE_SIZE = 500


def _evict_if_needed(cache: dict[Any, Any]) -> None:
    """Drop the oldest fifth of *cache* once it reaches the size cap."""
    if len(cache) >= _MAX_CACHE_SIZE:
        for key in list(cache)[: len(cache) // 5]:
            del cache[key]


class ArmAnimeMapper:
    """Async anime id mapper using httpx and in-memory caches.

    Implements ``AnimeMapperPort`` from domain.ports.anime_mapper.
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client
        self._kitsu_ids: dict[int, list[int]] = {}
        self._episode_counts: dict[int, int] = {}

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get(self, url: str, **params: Any) -> Any:
        """GET request with error handling. Returns parsed JSON or None."""
        try:
            resp = await self._http.get(url, params=params or None)
            if resp.status_code == 404:
                log.debug("anime_mapping_not_found", url=url)
                return None
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError:
            log.warning("anime_mapping_http_error", url=url, exc_info=True)
            return None
        except httpx.HTTPError:
            log.warning("anime_mapping_network_error", url=url, exc_info=True)
            return None
        except ValueError:
            log.warning("anime_mapping_invalid_json", url=url)
            return None

    async def _kitsu_ids_for(self, tmdb_id: int) -> list[int]:
        cached = self._kitsu_ids.get(tmdb_id)
        if cached is not None:
            return cached

        data = await self._get(_ARM_URL, id=tmdb_id)
        if not isinstance(data, list):
            return []
        kitsu_ids = [
            entry["kitsu"]
            for entry in data
            if isinstance(entry, dict) and isinstance(entry.get("kitsu"), int)
        ]
        if kitsu_ids:
            _evict_if_needed(self._kitsu_ids)
            self._kitsu_ids[tmdb_id] = kitsu_ids
        return kitsu_ids

    async def _episode_count(self, kitsu_id: int) -> int | None:
        cached = self._episode_counts.get(kitsu_id)
        if cached is not None:
            return cached

        data = await self._get(f"{_KITSU_ANIME_URL}/{kitsu_id}")
        if not isinstance(data, dict):
            return None
        attributes = (data.get("data") or {}).get("attributes") or {}
        count = attributes.get("episodeCount")
        if not isinstance(count, int):
            return None
        _evict_if_needed(self._episode_counts)
        self._episode_counts[kitsu_id] = count
        return count

    async def _walk_entries(self, kitsu_ids: list[int], episode: int) -> str:
        """Spread a merged TMDB season across consecutive Kitsu entries."""
        remaining = episode
        for index, kitsu_id in enumerate(kitsu_ids):
            count = await self._episode_count(kitsu_id)
            if count is None:
                if index == len(kitsu_ids) - 1:
                    return f"kitsu:{kitsu_id}:{remaining}"
                count = _ASSUMED_COUR_EPISODES
            if remaining <= count:
                return f"kitsu:{kitsu_id}:{remaining}"
            remaining -= count
        return f"kitsu:{kitsu_ids[-1]}:{remaining}"

    async def _resolve_arm(self, tmdb_id: int, season: int, episode: int) -> str | None:
        kitsu_ids = await self._kitsu_ids_for(tmdb_id)
        if not kitsu_ids:
            return None

        if season == 1 and len(kitsu_ids) > 1:
            return await self._walk_entries(kitsu_ids, episode)

        season_index = min(max(season - 1, 0), len(kitsu_ids) - 1)
        kitsu_id = kitsu_ids[season_index]
        count = await self._episode_count(kitsu_id)
        if count is not None and episode > count and season_index < len(kitsu_ids) - 1:
            # Cour split inside one TMDB season.
            return await self._walk_entries(kitsu_ids[season_index:], episode)
        return f"kitsu:{kitsu_id}:{episode}"

    # ------------------------------------------------------------------
    # Public API (AnimeMapperPort)
    # ------------------------------------------------------------------

    def is_anime_content(
        self,
        tmdb_id: int | None,
        genre_ids: tuple[int, ...] = (),
        original_language: str | None = None,
    ) -> bool:
        """Japanese animation is treated as anime."""
        return (
            _ANIMATION_GENRE_ID in genre_ids
            and (original_language or "").lower() == "ja"
        )

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
        """``kitsu:<id>:<episode>`` when ARM knows the title, else ``imdb:s:e``."""
        if tmdb_id is not None:
            query = await self._resolve_arm(tmdb_id, season, episode)
            if query is not None:
                log.debug(
                    "anime_mapping_resolved",
                    tmdb_id=tmdb_id,
                    season=season,
                    episode=episode,
                    query=query,
                )
                return query
        return f"{imdb_id}:{season}:{episode}"
