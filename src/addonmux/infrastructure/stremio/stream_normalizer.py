"""Normalize provider stream payloads into ``StreamSource`` records.

Pure transformation logic without I/O.
"""

from __future__ import annotations

import re

from addonmux.domain.entities.addon import Addon
from addonmux.domain.entities.stream import (
    ProxyHeaders,
    StreamBehaviorHints,
    StreamSource,
    Subtitle,
)
from addonmux.infrastructure.stremio.headers import extract_request_headers
from addonmux.infrastructure.stremio.payloads import StreamPayload
from addonmux.infrastructure.stremio.subtitle_labels import build_subtitle_label

# Informational web pages some providers report as streams. Seed list,
# matched as substrings of the lowercased http(s) URL.
WEB_PAGE_DENYLIST: tuple[str, ...] = (
    "github.com/",
    "raw.githubusercontent.com/",
    "youtube.com/watch",
    "youtu.be/",
)

# Indicator emoji used by torrent addons in stats lines (seeders, size...).
_STATS_EMOJI: tuple[str, ...] = (
    "\U0001f464",
    "\U0001f4be",
    "\u2699\ufe0f",
    "\U0001f517",
)

_SIZE_EMOJI_RE = re.compile(r"\U0001f4be\s*([\d.]+\s*[GMKT]B)", re.IGNORECASE)
_SIZE_PLAIN_RE = re.compile(r"(\d+\.?\d*)\s*(GB|MB|TB|KB)", re.IGNORECASE)
_SIZE_BYTES_RE = re.compile(r"([\d.]+)\s*(GB|MB|KB|TB)", re.IGNORECASE)
_BRACKET_TAG_RE = re.compile(r".*\[.*\].*")

_BINARY_MULTIPLIERS: dict[str, int] = {
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}


def is_supported_playback_candidate(
    stream: StreamPayload,
    denylist: tuple[str, ...] = WEB_PAGE_DENYLIST,
) -> bool:
    """False for http(s) URLs pointing at known non-video web pages."""
    url = (stream.stream_url() or "").strip().lower()
    if not url:
        return True
    if not (url.startswith("http://") or url.startswith("https://")):
        return True
    return not any(target in url for target in denylist)


def _title_lines(stream: StreamPayload) -> list[str]:
    return (stream.title or stream.name or "").split("\n")


def parse_quality(stream: StreamPayload) -> str:
    """Pick 4K/1080p/720p/480p from the text fields, else the second title line."""
    combined = " ".join(
        text for text in (stream.name, stream.title, stream.description) if text
    ).lower()
    if "2160p" in combined or "4k" in combined:
        return "4K"
    for label in ("1080p", "720p", "480p"):
        if label in combined:
            return label
    lines = _title_lines(stream)
    if len(lines) > 1 and lines[1].strip():
        return lines[1].strip()
    return "Unknown"


def source_name(stream: StreamPayload) -> str:
    """First line of the title (provider/indexer name in most addons)."""
    first = _title_lines(stream)[0].strip()
    return first or "Unknown"


def _looks_like_filename(line: str) -> bool:
    lower = line.lower()
    return (
        ".mkv" in lower
        or ".mp4" in lower
        or ".avi" in lower
        or bool(_BRACKET_TAG_RE.fullmatch(line))
    )


def torrent_name(stream: StreamPayload) -> str:
    """Best human-readable release name for display."""
    hints = stream.behavior_hints
    if hints is not None and hints.filename and hints.filename.strip():
        return hints.filename

    if stream.description:
        first = stream.description.split("\n")[0].strip()
        if first and _looks_like_filename(first):
            return first

    full_title = stream.title or stream.name or ""
    lines = full_title.split("\n")

    for line in reversed(lines):
        part = line.strip()
        if part and "." in part and not any(e in part for e in _STATS_EMOJI):
            return part

    if len(lines) > 2 and lines[2].strip():
        return lines[2].strip()
    if len(lines) > 1 and lines[1].strip() and "\U0001f464" not in lines[1]:
        return lines[1].strip()
    return full_title.strip() or "Unknown"


def format_bytes(size: int) -> str:
    """Decimal-unit display string for a byte count."""
    if size >= 1_000_000_000_000:
        return f"{size / 1_000_000_000_000:.2f} TB"
    if size >= 1_000_000_000:
        return f"{size / 1_000_000_000:.2f} GB"
    if size >= 1_000_000:
        return f"{size / 1_000_000:.1f} MB"
    if size >= 1_000:
        return f"{size / 1_000:.0f} KB"
    return f"{size} B"


def parse_size(stream: StreamPayload) -> str:
    """Display size from ``videoSize`` or a size pattern in the text fields."""
    hints = stream.behavior_hints
    if hints is not None and hints.video_size is not None and hints.video_size > 0:
        return format_bytes(hints.video_size)

    for text in (stream.title, stream.name, stream.description):
        if not text:
            continue
        m = _SIZE_EMOJI_RE.search(text)
        if m:
            return m.group(1)
        m = _SIZE_PLAIN_RE.search(text)
        if m:
            return f"{m.group(1)} {m.group(2).upper()}"
    return ""


def parse_size_to_bytes(size_str: str) -> int | None:
    """Parse ``"2.5 GB"`` / ``"5,71 GB"`` into bytes (binary units).

    Returns None when no size can be read.
    """
    if not size_str or not size_str.strip():
        return None
    match = _SIZE_BYTES_RE.search(size_str.replace(",", "."))
    if not match:
        return None
    try:
        value = float(match.group(1))
    except ValueError:
        return None
    return int(value * _BINARY_MULTIPLIERS[match.group(2).upper()])


def _playback_url(stream: StreamPayload) -> str | None:
    raw = stream.stream_url()
    if raw:
        return raw
    if stream.yt_id:
        return f"https://www.youtube.com/watch?v={stream.yt_id}"
    return None


def _behavior_hints(stream: StreamPayload) -> StreamBehaviorHints | None:
    request_headers = extract_request_headers(stream)
    hints = stream.behavior_hints

    if hints is None:
        if not request_headers:
            return None
        return StreamBehaviorHints(proxy_headers=ProxyHeaders(request=request_headers))

    response_headers = None
    if hints.proxy_headers is not None and hints.proxy_headers.response is not None:
        response_headers = {
            str(k): str(v) for k, v in hints.proxy_headers.response.items()
        }

    proxy_headers = None
    if request_headers or response_headers is not None:
        proxy_headers = ProxyHeaders(
            request=request_headers or None,
            response=response_headers,
        )

    return StreamBehaviorHints(
        not_web_ready=bool(hints.not_web_ready),
        cached=hints.cached,
        binge_group=hints.binge_group,
        country_whitelist=tuple(hints.country_whitelist)
        if hints.country_whitelist is not None
        else None,
        proxy_headers=proxy_headers,
        video_hash=hints.video_hash,
        video_size=hints.video_size,
        filename=hints.filename,
    )


def _embedded_subtitles(stream: StreamPayload, addon: Addon) -> tuple[Subtitle, ...]:
    return tuple(
        Subtitle(
            id=sub.id or f"{addon.id}_stream_sub_{index}",
            url=sub.url or "",
            lang=sub.lang or "en",
            label=build_subtitle_label(sub.lang, sub.label, addon.name),
        )
        for index, sub in enumerate(stream.subtitles or [])
    )


def normalize_stream(stream: StreamPayload, addon: Addon) -> StreamSource:
    """Map one provider stream into a ``StreamSource``."""
    size = parse_size(stream)
    return StreamSource(
        source=torrent_name(stream),
        addon_name=f"{addon.name} - {source_name(stream)}",
        addon_id=addon.id,
        quality=parse_quality(stream),
        size=size,
        size_bytes=parse_size_to_bytes(size),
        url=_playback_url(stream),
        info_hash=stream.info_hash,
        file_idx=stream.file_idx,
        behavior_hints=_behavior_hints(stream),
        subtitles=_embedded_subtitles(stream, addon),
        tracker_sources=tuple(stream.sources or ()),
    )


def normalize_streams(
    streams: list[StreamPayload],
    addon: Addon,
    denylist: tuple[str, ...] = WEB_PAGE_DENYLIST,
) -> list[StreamSource]:
    """Drop unplayable or denylisted streams and normalize the rest."""
    return [
        normalize_stream(stream, addon)
        for stream in streams
        if stream.has_playable_link()
        and is_supported_playback_candidate(stream, denylist)
    ]
