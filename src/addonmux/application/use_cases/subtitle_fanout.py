"""Subtitle fan-out for the stream a user selected.

Runs after stream selection so subtitles are never fetched for sources
that are not played.
"""

from __future__ import annotations

import asyncio
from typing import Protocol
from urllib.parse import quote

import structlog

from addonmux.domain.entities.addon import Addon, AddonType
from addonmux.domain.entities.stream import StreamSource, Subtitle
from addonmux.infrastructure.stremio.addon_url import addon_base_and_query
from addonmux.infrastructure.stremio.payloads import SubtitlePayload
from addonmux.infrastructure.stremio.subtitle_labels import build_subtitle_label

log = structlog.get_logger(__name__)


class _SubtitleConfig(Protocol):
    subtitle_timeout_seconds: float
    max_concurrent_addons: int


class _AddonSource(Protocol):
    def list(self) -> list[Addon]: ...


class _SubtitleFetcher(Protocol):
    async def fetch_subtitles(
        self, url: str, *, timeout: float | None = None
    ) -> list[SubtitlePayload]: ...


def build_subtitles_url(
    base_url: str,
    content_type: str,
    content_id: str,
    addon_query: str | None = None,
    video_hash: str | None = None,
    video_size: int | None = None,
) -> str:
    """``{base}/subtitles/{type}/{id}.json`` plus addon query and file hints."""
    base = base_url.rstrip("/")
    if not base.lower().endswith("/subtitles"):
        base = f"{base}/subtitles"

    query_parts: list[str] = []
    if addon_query:
        query_parts.append(addon_query)
    if video_hash:
        query_parts.append(f"videoHash={quote(video_hash, safe='')}")
    if video_size is not None and video_size > 0:
        query_parts.append(f"videoSize={video_size}")

    url = f"{base}/{content_type}/{content_id}.json"
    return f"{url}?{'&'.join(query_parts)}" if query_parts else url


def subtitle_addons(addons: list[Addon]) -> list[Addon]:
    return [
        a
        for a in addons
        if a.is_installed and a.is_enabled and a.type == AddonType.SUBTITLE
    ]


class SubtitleFanOut:
    """Concurrent subtitle lookup; each addon has its own deadline."""

    def __init__(
        self,
        *,
        addons: _AddonSource,
        fetcher: _SubtitleFetcher,
        config: _SubtitleConfig,
    ) -> None:
        self._addons = addons
        self._fetcher = fetcher
        self._timeout = config.subtitle_timeout_seconds
        self._max_concurrent = config.max_concurrent_addons

    async def fetch_for(
        self,
        media_type: str,
        imdb_id: str,
        season: int | None = None,
        episode: int | None = None,
        selected_stream: StreamSource | None = None,
    ) -> list[Subtitle]:
        if media_type == "movie":
            content_id = imdb_id
        elif media_type == "series":
            if season is None or episode is None:
                return []
            content_id = f"{imdb_id}:{season}:{episode}"
        else:
            return []

        hints = selected_stream.behavior_hints if selected_stream is not None else None
        video_hash = (hints.video_hash or "").strip() if hints is not None else ""
        video_size = hints.video_size if hints is not None else None

        addons = subtitle_addons(self._addons.list())
        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def _fetch_one(addon: Addon) -> list[Subtitle]:
            async with semaphore:
                try:
                    return await asyncio.wait_for(
                        self._fetch_addon(
                            addon,
                            media_type,
                            content_id,
                            video_hash or None,
                            video_size,
                        ),
                        timeout=self._timeout,
                    )
                except TimeoutError:
                    log.warning(
                        "addon_subtitle_timeout",
                        addon_id=addon.id,
                        timeout=self._timeout,
                    )
                    return []

        per_addon = await asyncio.gather(*(_fetch_one(a) for a in addons))
        subtitles = [sub for subs in per_addon for sub in subs]
        log.info(
            "subtitle_fanout_complete",
            content_id=content_id,
            addon_count=len(addons),
            subtitle_count=len(subtitles),
        )
        return subtitles

    async def _fetch_addon(
        self,
        addon: Addon,
        media_type: str,
        content_id: str,
        video_hash: str | None,
        video_size: int | None,
    ) -> list[Subtitle]:
        if not addon.url:
            return []
        base_url, query = addon_base_and_query(addon.url)
        url = build_subtitles_url(
            base_url, media_type, content_id, query, video_hash, video_size
        )
        try:
            payloads = await self._fetcher.fetch_subtitles(url)
        except Exception:
            log.warning("addon_subtitle_error", addon_id=addon.id, exc_info=True)
            return []

        return [
            Subtitle(
                id=sub.id or f"{addon.id}_sub_hint_{index}",
                url=sub.url or "",
                lang=sub.lang or "en",
                label=build_subtitle_label(sub.lang, sub.label, addon.name),
            )
            for index, sub in enumerate(payloads)
        ]
