"""Stream fan-out use case.

Cache check -> eligible addons -> (anime id lookup) -> one bounded task
per addon -> normalize -> flatten -> cache.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog

from addonmux.application.use_cases.request_router import (
    eligible_for_streams,
    supports_alt_id_scheme,
)
from addonmux.domain.entities.addon import Addon
from addonmux.domain.entities.stream import (
    AnimeHints,
    ContentType,
    StreamResult,
    StreamSource,
)
from addonmux.domain.ports.anime_mapper import AnimeMapperPort
from addonmux.domain.ports.result_cache import StreamResultCachePort
from addonmux.infrastructure.persistence.stream_result_cache import stream_cache_key
from addonmux.infrastructure.stremio.addon_url import (
    addon_base_and_query,
    resource_url,
)
from addonmux.infrastructure.stremio.payloads import StreamPayload
from addonmux.infrastructure.stremio.stream_normalizer import (
    WEB_PAGE_DENYLIST,
    normalize_streams,
)

_FanOutRun = Callable[[], Awaitable[StreamResult]]

log = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------


class _FanOutConfig(Protocol):
    addon_timeout_seconds: float
    anime_lookup_timeout_seconds: float
    max_concurrent_addons: int
    single_flight: bool


class _AddonSource(Protocol):
    @property
    def profile_id(self) -> str: ...

    def list(self) -> list[Addon]: ...


class _StreamFetcher(Protocol):
    async def fetch_streams(
        self, url: str, *, timeout: float | None = None
    ) -> list[StreamPayload]: ...


class FanOutResolver:
    """Best-effort concurrent stream lookup across installed addons.

    A slow or failing addon contributes an empty list; it never aborts
    or delays the others beyond its own deadline.
    """

    def __init__(
        self,
        *,
        addons: _AddonSource,
        fetcher: _StreamFetcher,
        cache: StreamResultCachePort,
        config: _FanOutConfig,
        anime_mapper: AnimeMapperPort | None = None,
        denylist: tuple[str, ...] = WEB_PAGE_DENYLIST,
    ) -> None:
        self._addons = addons
        self._fetcher = fetcher
        self._cache = cache
        self._anime_mapper = anime_mapper
        self._denylist = denylist
        self._addon_timeout = config.addon_timeout_seconds
        self._anime_timeout = config.anime_lookup_timeout_seconds
        self._max_concurrent = config.max_concurrent_addons
        self._single_flight = config.single_flight
        # key -> (cache generation at start, task)
        self._inflight: dict[str, tuple[int, asyncio.Task[StreamResult]]] = {}

    async def resolve_movie(
        self,
        imdb_id: str,
        force_refresh: bool = False,
    ) -> StreamResult:
        key = stream_cache_key(self._addons.profile_id, "movie", imdb_id)
        return await self._resolve(
            key,
            force_refresh,
            lambda: self._fan_out("movie", imdb_id, imdb_id, None),
        )

    async def resolve_episode(
        self,
        imdb_id: str,
        season: int,
        episode: int,
        anime_hints: AnimeHints | None = None,
        force_refresh: bool = False,
    ) -> StreamResult:
        key = stream_cache_key(
            self._addons.profile_id, "series", imdb_id, season, episode
        )
        series_id = f"{imdb_id}:{season}:{episode}"

        async def _run() -> StreamResult:
            alt_id = await self._resolve_alt_id(imdb_id, season, episode, anime_hints)
            return await self._fan_out("series", imdb_id, series_id, alt_id)

        return await self._resolve(key, force_refresh, _run)

    # --- cache + single-flight ---

    async def _resolve(
        self,
        key: str,
        force_refresh: bool,
        run: _FanOutRun,
    ) -> StreamResult:
        generation = self._cache.generation
        if not force_refresh:
            cached = self._cache.get(key)
            if cached is not None:
                log.debug("stream_cache_hit", key=key)
                return cached.result

            if self._single_flight:
                pending = self._inflight.get(key)
                if pending is not None and pending[0] == generation:
                    log.debug("stream_fanout_joined", key=key)
                    return await asyncio.shield(pending[1])

        task = asyncio.ensure_future(self._run_and_store(key, run, generation))
        if self._single_flight:
            self._inflight[key] = (generation, task)
            task.add_done_callback(lambda t: self._forget(key, t))
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task[StreamResult]) -> None:
        pending = self._inflight.get(key)
        if pending is not None and pending[1] is task:
            del self._inflight[key]

    async def _run_and_store(
        self, key: str, run: _FanOutRun, generation: int
    ) -> StreamResult:
        result = await run()
        # Discarded by the cache when the addon list changed mid-flight.
        self._cache.put(key, result, generation=generation)
        return result

    # --- anime ---

    async def _resolve_alt_id(
        self,
        imdb_id: str,
        season: int,
        episode: int,
        hints: AnimeHints | None,
    ) -> str | None:
        mapper = self._anime_mapper
        if mapper is None or hints is None:
            return None
        if not mapper.is_anime_content(
            hints.tmdb_id, hints.genre_ids, hints.original_language
        ):
            return None
        try:
            return await asyncio.wait_for(
                mapper.resolve_anime_episode_query(
                    tmdb_id=hints.tmdb_id,
                    tvdb_id=hints.tvdb_id,
                    title=hints.title,
                    imdb_id=imdb_id,
                    season=season,
                    episode=episode,
                ),
                timeout=self._anime_timeout,
            )
        except TimeoutError:
            log.debug("anime_lookup_timeout", imdb_id=imdb_id, timeout=self._anime_timeout)
            return None
        except Exception:
            log.warning("anime_lookup_error", imdb_id=imdb_id, exc_info=True)
            return None

    # --- fan-out ---

    async def _fan_out(
        self,
        content_type: ContentType,
        imdb_id: str,
        content_id: str,
        alt_id: str | None,
    ) -> StreamResult:
        t0 = time.perf_counter()
        eligible = eligible_for_streams(self._addons.list(), content_type, imdb_id)
        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def _query_one(addon: Addon) -> list[StreamSource]:
            async with semaphore:
                try:
                    return await asyncio.wait_for(
                        self._query_addon(addon, content_type, content_id, alt_id),
                        timeout=self._addon_timeout,
                    )
                except TimeoutError:
                    log.warning(
                        "addon_stream_timeout",
                        addon_id=addon.id,
                        timeout=self._addon_timeout,
                    )
                    return []

        per_addon = await asyncio.gather(*(_query_one(a) for a in eligible))

        streams: list[StreamSource] = []
        for addon_streams in per_addon:
            streams.extend(addon_streams)

        log.info(
            "fanout_complete",
            content_type=content_type,
            content_id=content_id,
            addon_count=len(eligible),
            stream_count=len(streams),
            elapsed_ms=round((time.perf_counter() - t0) * 1000),
        )
        # Subtitles are fetched separately once a stream is selected.
        return StreamResult(streams=tuple(streams), subtitles=())

    async def _query_addon(
        self,
        addon: Addon,
        content_type: ContentType,
        content_id: str,
        alt_id: str | None,
    ) -> list[StreamSource]:
        """Query one addon, absorbing every error into an empty list."""
        base_url, query = addon_base_and_query(addon.url or "")
        use_alt = alt_id is not None and supports_alt_id_scheme(addon)
        request_id = alt_id if use_alt and alt_id else content_id

        try:
            streams = await self._fetch(addon, base_url, query, content_type, request_id)
        except Exception:
            log.warning(
                "addon_stream_error",
                addon_id=addon.id,
                content_id=request_id,
                exc_info=True,
            )
            return []

        if not streams and request_id != content_id:
            # Addon may only know the canonical scheme for this title.
            try:
                streams = await self._fetch(
                    addon, base_url, query, content_type, content_id
                )
            except Exception:
                log.debug(
                    "addon_stream_fallback_error",
                    addon_id=addon.id,
                    content_id=content_id,
                    exc_info=True,
                )
                return []

        log.debug(
            "addon_stream_done",
            addon_id=addon.id,
            content_id=request_id,
            stream_count=len(streams),
        )
        return streams

    async def _fetch(
        self,
        addon: Addon,
        base_url: str,
        query: str | None,
        content_type: ContentType,
        content_id: str,
    ) -> list[StreamSource]:
        url = resource_url(base_url, "stream", content_type, content_id, query)
        payloads = await self._fetcher.fetch_streams(url)
        return normalize_streams(payloads, addon, self._denylist)
