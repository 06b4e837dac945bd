"""Domain entities for normalized stream and subtitle results.

Pure value objects without I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

ContentType = Literal["movie", "series"]


@dataclass(frozen=True)
class ProxyHeaders:
    """Headers a player must send (request) or may expect (response)."""

    request: dict[str, str] | None = None
    response: dict[str, str] | None = None


@dataclass(frozen=True)
class StreamBehaviorHints:
    """Playback hints supplied by the provider for a single stream."""

    not_web_ready: bool = False
    cached: bool | None = None
    binge_group: str | None = None
    country_whitelist: tuple[str, ...] | None = None
    proxy_headers: ProxyHeaders | None = None
    video_hash: str | None = None
    video_size: int | None = None
    filename: str | None = None

    @property
    def request_headers(self) -> dict[str, str]:
        if self.proxy_headers is None or not self.proxy_headers.request:
            return {}
        return dict(self.proxy_headers.request)


@dataclass(frozen=True)
class Subtitle:
    """A subtitle track, either external (addon) or embedded in the stream."""

    id: str
    url: str
    lang: str
    label: str
    is_embedded: bool = False
    group_index: int | None = None
    track_index: int | None = None


@dataclass(frozen=True)
class StreamSource:
    """A provider stream normalized into a single record shape.

    ``quality`` and ``size`` are free text as supplied by the provider;
    ``size_bytes`` is parsed from the display string for ranking.
    """

    source: str
    addon_name: str
    addon_id: str
    quality: str
    size: str
    size_bytes: int | None = None
    url: str | None = None
    info_hash: str | None = None
    file_idx: int | None = None
    behavior_hints: StreamBehaviorHints | None = None
    subtitles: tuple[Subtitle, ...] = ()
    tracker_sources: tuple[str, ...] = ()

    @property
    def is_http(self) -> bool:
        url = (self.url or "").strip().lower()
        return url.startswith(("http://", "https://"))


@dataclass(frozen=True)
class StreamResult:
    """Outcome of one fan-out. Empty ``streams`` means "no sources found"."""

    streams: tuple[StreamSource, ...] = ()
    subtitles: tuple[Subtitle, ...] = ()


@dataclass(frozen=True)
class CachedStreamResult:
    """A fan-out outcome stamped with the clock reading at creation."""

    result: StreamResult
    created_at: float


@dataclass(frozen=True)
class StreamRequest:
    """A content request routed to addons.

    ``content_id`` is ``tt123`` for movies and ``tt123:1:5`` for episodes.
    """

    content_type: ContentType
    imdb_id: str
    season: int | None = None
    episode: int | None = None

    @property
    def content_id(self) -> str:
        if self.content_type == "series" and self.season is not None:
            return f"{self.imdb_id}:{self.season}:{self.episode}"
        return self.imdb_id


@dataclass(frozen=True)
class AnimeHints:
    """Identifiers used to resolve an alternate (Kitsu) episode id."""

    tmdb_id: int | None = None
    tvdb_id: int | None = None
    title: str = ""
    genre_ids: tuple[int, ...] = field(default_factory=tuple)
    original_language: str | None = None
