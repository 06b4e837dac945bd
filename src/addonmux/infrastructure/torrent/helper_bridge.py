"""Bridge torrent streams to HTTP through a local helper daemon.

The daemon (TorrServer-compatible) turns a magnet link into an HTTP
stream. Only endpoint discovery lives here; the BitTorrent transport
belongs to the daemon.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import replace
from urllib.parse import quote

import httpx
import structlog

from addonmux.domain.entities.stream import StreamSource

log = structlog.get_logger(__name__)

# Same-device daemon: fail fast.
_HELPER_TIMEOUT = httpx.Timeout(1.5, connect=1.0)

_PLAYLIST_ENDPOINTS: tuple[str, ...] = (
    "/stream?m3u&link={link}",
    "/torrent/play?m3u=true&link={link}",
)
_DIRECT_ENDPOINT = "/stream?link={link}&play"

_TRACKER_SCHEMES: tuple[str, ...] = ("http://", "https://", "udp://")


def build_magnet(stream: StreamSource) -> str | None:
    """Magnet URI from ``info_hash``, display name and tracker sources."""
    info_hash = (stream.info_hash or "").strip().lower()
    clean_hash = info_hash.removeprefix("urn:btih:").removeprefix("btih:")
    if not clean_hash:
        return None

    hints = stream.behavior_hints
    filename = (hints.filename or "").strip() if hints is not None else ""
    display_name = filename or stream.source.strip() or "video"

    trackers: list[str] = []
    for raw in stream.tracker_sources:
        tracker = raw.strip().removeprefix("tracker:").strip()
        if not tracker.lower().startswith(_TRACKER_SCHEMES):
            continue
        if tracker not in trackers:
            trackers.append(tracker)

    parts = [f"magnet:?xt=urn:btih:{clean_hash}", f"dn={quote(display_name, safe='')}"]
    parts.extend(f"tr={quote(tr, safe='')}" for tr in trackers)
    return "&".join(parts)


def pick_m3u_entry(base_url: str, body: str, file_idx: int | None) -> str | None:
    """Choose the playlist entry for *file_idx*, else the first entry."""
    entries: list[str] = []
    for line in body.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        lower = line.lower()
        if lower.startswith("http://") or lower.startswith("https://"):
            entries.append(line)
        elif line.startswith("/"):
            entries.append(f"{base_url}{line}")
        else:
            entries.append(f"{base_url}/{line}")

    if not entries:
        return None
    if file_idx is not None:
        wanted = re.compile(rf"\b(?:index|file)={file_idx}(?!\d)")
        for entry in entries:
            if wanted.search(entry):
                return entry
    return entries[0]


class TorrentHelperBridge:
    """Resolve a torrent ``StreamSource`` to a daemon-served HTTP URL.

    Candidates are tried in order: the configured base URL, then
    ``http://127.0.0.1:<port>`` and ``http://localhost:<port>`` for each
    configured port.

    Args:
        http_client: Shared async client.
        base_url_provider: Returns the configured (normalized) base URL,
            or ``""`` for auto-detect.
        ports: Loopback ports probed after the configured URL.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url_provider: Callable[[], str],
        ports: list[int] | tuple[int, ...] = (8090,),
    ) -> None:
        self._http = http_client
        self._base_url_provider = base_url_provider
        self._ports = tuple(ports)

    def candidate_base_urls(self) -> list[str]:
        candidates: list[str] = []
        configured = self._base_url_provider()
        if configured:
            candidates.append(configured)
        for port in self._ports:
            candidates.append(f"http://127.0.0.1:{port}")
            candidates.append(f"http://localhost:{port}")
        return list(dict.fromkeys(candidates))

    async def resolve(self, stream: StreamSource) -> StreamSource | None:
        magnet = build_magnet(stream)
        if magnet is None:
            return None
        link = quote(magnet, safe="")
        direct_path = _DIRECT_ENDPOINT.format(link=link)
        if stream.file_idx is not None:
            direct_path += f"&index={stream.file_idx}"

        candidates = self.candidate_base_urls()
        for base_url in candidates:
            resolved: str | None = None
            for template in _PLAYLIST_ENDPOINTS:
                url = base_url + template.format(link=link)
                resolved = await self._try_playlist(base_url, url, stream.file_idx)
                if resolved is not None:
                    break
            if resolved is None:
                resolved = await self._try_direct(base_url + direct_path)
            if resolved is not None:
                log.info("torrent_helper_resolved", base_url=base_url)
                return replace(stream, url=resolved)

        log.info("torrent_helper_unavailable", candidates=len(candidates))
        return None

    async def _try_playlist(
        self, base_url: str, url: str, file_idx: int | None
    ) -> str | None:
        try:
            resp = await self._http.get(url, timeout=_HELPER_TIMEOUT)
        except httpx.HTTPError:
            log.debug("torrent_helper_request_failed", url=base_url, exc_info=True)
            return None
        if not resp.is_success or not resp.text.strip():
            return None
        return pick_m3u_entry(base_url, resp.text, file_idx)

    async def _try_direct(self, url: str) -> str | None:
        # Do not read the body: it is the video itself.
        try:
            async with self._http.stream(
                "GET",
                url,
                headers={"Range": "bytes=0-1"},
                timeout=_HELPER_TIMEOUT,
            ) as resp:
                return url if resp.is_success else None
        except httpx.HTTPError:
            log.debug("torrent_helper_request_failed", exc_info=True)
            return None
