"""Composition root: wires the addon engine from an ``AppConfig``."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx
import structlog

from addonmux.application.use_cases.addon_registry import AddonRegistry
from addonmux.application.use_cases.catalog_browser import AddonCatalogBrowser
from addonmux.application.use_cases.playback_resolver import PlaybackResolver
from addonmux.application.use_cases.stream_fanout import FanOutResolver
from addonmux.application.use_cases.subtitle_fanout import SubtitleFanOut
from addonmux.application.use_cases.vod_fallback import VodFallback
from addonmux.domain.ports.preference_store import PreferenceStorePort
from addonmux.domain.ports.vod_lookup import VodLookupPort
from addonmux.infrastructure.anime.arm_mapper import ArmAnimeMapper
from addonmux.infrastructure.config.schema import AppConfig
from addonmux.infrastructure.persistence.cache_policy import CacheTtlPolicy
from addonmux.infrastructure.persistence.preference_store import (
    DiskcachePreferenceStore,
)
from addonmux.infrastructure.persistence.stream_result_cache import StreamResultCache
from addonmux.infrastructure.stremio.addon_client import StremioAddonClient
from addonmux.infrastructure.torrent.helper_bridge import TorrentHelperBridge

log = structlog.get_logger(__name__)


@dataclass
class Engine:
    """All engine components, sharing one HTTP client and one cache."""

    config: AppConfig
    http_client: httpx.AsyncClient
    store: PreferenceStorePort
    cache: StreamResultCache
    registry: AddonRegistry
    streams: FanOutResolver
    playback: PlaybackResolver
    subtitles: SubtitleFanOut
    catalogs: AddonCatalogBrowser
    vod: VodFallback | None = None


def cache_policy_from(config: AppConfig) -> CacheTtlPolicy:
    engine = config.engine
    return CacheTtlPolicy(
        empty_seconds=engine.ttl_empty_seconds,
        p2p_seconds=engine.ttl_p2p_seconds,
        http_seconds=engine.ttl_http_seconds,
        http_ephemeral_seconds=engine.ttl_http_ephemeral_seconds,
    )


def build_http_client(config: AppConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )


def build_engine(
    config: AppConfig,
    *,
    http_client: httpx.AsyncClient,
    store: PreferenceStorePort,
    vod_lookup: VodLookupPort | None = None,
) -> Engine:
    """Wire every component.

    Order matters:
        1. Result cache (cleared by the registry on mutation)
        2. Addon client + registry
        3. Fan-out, subtitles, catalogs (read the registry)
        4. Torrent bridge + playback resolver
        5. VOD fallback, only when a lookup service is supplied
    """
    engine_cfg = config.engine

    cache = StreamResultCache(policy=cache_policy_from(config))
    addon_client = StremioAddonClient(http_client)
    registry = AddonRegistry(
        store=store,
        manifest_fetcher=addon_client,
        cache=cache,
        profile_id=config.default_profile_id,
        manifest_timeout=config.http_timeout_seconds,
    )

    streams = FanOutResolver(
        addons=registry,
        fetcher=addon_client,
        cache=cache,
        config=engine_cfg,
        anime_mapper=ArmAnimeMapper(http_client),
    )
    subtitles = SubtitleFanOut(addons=registry, fetcher=addon_client, config=engine_cfg)
    catalogs = AddonCatalogBrowser(addons=registry, fetcher=addon_client)

    bridge = TorrentHelperBridge(
        http_client,
        base_url_provider=registry.torrent_helper_base_url,
        ports=engine_cfg.torrent_helper_ports,
    )
    playback = PlaybackResolver(
        http_client=http_client,
        config=engine_cfg,
        torrent_bridge=bridge,
    )
    vod = (
        VodFallback(lookup=vod_lookup, config=engine_cfg)
        if vod_lookup is not None
        else None
    )

    log.info(
        "engine_initialized",
        profile_id=registry.profile_id,
        max_concurrent_addons=engine_cfg.max_concurrent_addons,
        single_flight=engine_cfg.single_flight,
        vod_fallback=vod is not None,
    )
    return Engine(
        config=config,
        http_client=http_client,
        store=store,
        cache=cache,
        registry=registry,
        streams=streams,
        playback=playback,
        subtitles=subtitles,
        catalogs=catalogs,
        vod=vod,
    )


@asynccontextmanager
async def open_engine(
    config: AppConfig,
    vod_lookup: VodLookupPort | None = None,
) -> AsyncIterator[Engine]:
    """Engine with an owned HTTP client and disk store, closed on exit."""
    http_client = build_http_client(config)
    store = DiskcachePreferenceStore(config.store_dir)
    try:
        yield build_engine(
            config, http_client=http_client, store=store, vod_lookup=vod_lookup
        )
    finally:
        await http_client.aclose()
        log.debug("http_client_closed")
        store.close()
