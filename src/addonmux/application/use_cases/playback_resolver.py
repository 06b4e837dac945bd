"""Playback resolution for a single chosen stream.

resolve: normalize URL -> split pipe-encoded headers -> merge headers.
is_reachable: ranged GET probe with browser-like defaults.
bridge_torrent: opt-in torrent -> HTTP through a local helper daemon.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Protocol

import httpx
import structlog

from addonmux.domain.entities.stream import (
    ProxyHeaders,
    StreamBehaviorHints,
    StreamSource,
)
from addonmux.infrastructure.stremio.headers import (
    derive_origin,
    find_header,
    merge_headers,
    split_url_and_headers,
)

log = structlog.get_logger(__name__)

DEFAULT_PROBE_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

_MIN_PROBE_TIMEOUT = 0.5
_MAX_PROBE_TIMEOUT = 15.0


class _PlaybackConfig(Protocol):
    playback_timeout_seconds: float
    reachability_timeout_seconds: float


class _TorrentBridge(Protocol):
    async def resolve(self, stream: StreamSource) -> StreamSource | None: ...


def _is_http(url: str) -> bool:
    lower = url.lower()
    return lower.startswith("http://") or lower.startswith("https://")


def normalize_playback_url(url: str) -> str:
    """Coerce scheme-less URLs (``//host/x``, ``host.tld/x``) to https."""
    if _is_http(url):
        return url
    if url.startswith("//"):
        return f"https:{url}"
    if "://" not in url and "." in url:
        return f"https://{url}"
    return url


def prepare_for_playback(stream: StreamSource) -> StreamSource | None:
    """Pure part of playback resolution.

    Returns None for blank, ``magnet:`` and non-http(s) URLs. Headers
    embedded after a ``|`` in the URL are merged into the stream's
    request headers; headers already on the stream take precedence.
    """
    url = (stream.url or "").strip()
    if not url:
        return None
    if url.lower().startswith("magnet:"):
        log.debug("playback_resolve_rejected_magnet", addon_id=stream.addon_id)
        return None

    normalized = normalize_playback_url(url)
    if not _is_http(normalized):
        log.debug("playback_resolve_unsupported_scheme", addon_id=stream.addon_id)
        return None

    resolved_url, url_headers = split_url_and_headers(normalized)
    current = stream.behavior_hints
    stream_headers = current.request_headers if current is not None else {}
    merged = merge_headers(url_headers, stream_headers)

    hints = current
    if merged:
        response = (
            current.proxy_headers.response
            if current is not None and current.proxy_headers is not None
            else None
        )
        proxy_headers = ProxyHeaders(request=merged, response=response)
        hints = (
            replace(current, proxy_headers=proxy_headers)
            if current is not None
            else StreamBehaviorHints(proxy_headers=proxy_headers)
        )

    return replace(stream, url=resolved_url, behavior_hints=hints)


def clamp_probe_timeout(timeout: float) -> float:
    return min(max(timeout, _MIN_PROBE_TIMEOUT), _MAX_PROBE_TIMEOUT)


def build_probe_headers(stream: StreamSource) -> dict[str, str]:
    """Request headers for the reachability probe, with browser-like defaults."""
    hints = stream.behavior_hints
    headers = dict(hints.request_headers) if hints is not None else {}
    if find_header(headers, "User-Agent") is None:
        headers["User-Agent"] = DEFAULT_PROBE_USER_AGENT
    if find_header(headers, "Accept") is None:
        headers["Accept"] = "*/*"
    if find_header(headers, "Range") is None:
        headers["Range"] = "bytes=0-1"
    referer = find_header(headers, "Referer")
    if referer and find_header(headers, "Origin") is None:
        origin = derive_origin(referer)
        if origin is not None:
            headers["Origin"] = origin
    return headers


class PlaybackResolver:
    """Turns a chosen ``StreamSource`` into a directly fetchable one.

    Failures are never raised: resolution yields None and probing yields
    False.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        config: _PlaybackConfig,
        torrent_bridge: _TorrentBridge | None = None,
    ) -> None:
        self._http = http_client
        self._timeout = config.playback_timeout_seconds
        self._probe_timeout = config.reachability_timeout_seconds
        self._torrent_bridge = torrent_bridge

    async def resolve(self, stream: StreamSource) -> StreamSource | None:
        try:
            return await asyncio.wait_for(
                self._resolve(stream), timeout=self._timeout
            )
        except TimeoutError:
            log.warning("playback_resolve_timeout", addon_id=stream.addon_id)
            return None
        except Exception:
            log.warning("playback_resolve_error", addon_id=stream.addon_id, exc_info=True)
            return None

    async def _resolve(self, stream: StreamSource) -> StreamSource | None:
        return prepare_for_playback(stream)

    async def is_reachable(
        self,
        stream: StreamSource,
        timeout: float | None = None,
    ) -> bool:
        """Ranged GET probe. 2xx and 416 are reachable; HTML bodies are not."""
        resolved = prepare_for_playback(stream)
        if resolved is None or not resolved.url:
            return False

        deadline = clamp_probe_timeout(
            timeout if timeout is not None else self._probe_timeout
        )
        headers = build_probe_headers(resolved)
        try:
            return await asyncio.wait_for(
                self._probe(resolved.url, headers, deadline), timeout=deadline
            )
        except TimeoutError:
            log.debug("reachability_probe_failed", reason="timeout", timeout=deadline)
            return False
        except httpx.HTTPError as exc:
            log.debug("reachability_probe_failed", reason=type(exc).__name__)
            return False
        except Exception:
            log.warning("reachability_probe_failed", reason="error", exc_info=True)
            return False

    async def _probe(self, url: str, headers: dict[str, str], timeout: float) -> bool:
        # Body is never read: a 200 may carry the whole file.
        async with self._http.stream(
            "GET",
            url,
            headers=headers,
            timeout=timeout,
            follow_redirects=True,
        ) as resp:
            if resp.status_code == 416:
                return True
            if not resp.is_success:
                log.debug("reachability_probe_failed", status=resp.status_code)
                return False
            content_type = resp.headers.get("Content-Type", "").lower()
            if "text/html" in content_type:
                log.debug("reachability_probe_failed", reason="html_body")
                return False
            return True

    async def bridge_torrent(self, stream: StreamSource) -> StreamSource | None:
        """Opt-in: serve a torrent stream through the local helper daemon."""
        if self._torrent_bridge is None:
            return None
        try:
            return await self._torrent_bridge.resolve(stream)
        except httpx.HTTPError:
            log.warning("torrent_helper_unavailable", addon_id=stream.addon_id, exc_info=True)
            return None
