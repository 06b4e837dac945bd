"""Pydantic models for Stremio addon wire payloads.

Provider responses are loosely typed, so every model ignores unknown
keys and coerces malformed optional scalars to ``None`` instead of
rejecting the whole object.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from addonmux.domain.entities.addon import (
    AddonBehaviorHints,
    AddonCatalog,
    AddonCatalogExtra,
    AddonManifest,
    AddonResource,
)

log = structlog.get_logger(__name__)


class _Payload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _lenient_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _lenient_mapping(value: Any) -> Optional[dict[str, Any]]:
    return dict(value) if isinstance(value, dict) else None


def _lenient_str_list(value: Any) -> Optional[list[str]]:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def _lenient_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return str(value)
    return None


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------


class ResourcePayload(_Payload):
    name: str
    types: Optional[list[str]] = None
    id_prefixes: Optional[list[str]] = None

    _lists = field_validator("types", "id_prefixes", mode="before")(
        lambda v: _lenient_str_list(v)
    )


class CatalogExtraPayload(_Payload):
    name: str
    is_required: Optional[bool] = None
    options: Optional[list[str]] = None

    _options = field_validator("options", mode="before")(lambda v: _lenient_str_list(v))


class CatalogPayload(_Payload):
    type: str
    id: str
    name: Optional[str] = None
    genres: Optional[list[str]] = None
    extra: Optional[list[CatalogExtraPayload]] = None

    _genres = field_validator("genres", mode="before")(lambda v: _lenient_str_list(v))


class AddonBehaviorHintsPayload(_Payload):
    adult: Optional[bool] = None
    p2p: Optional[bool] = None
    configurable: Optional[bool] = None
    configuration_required: Optional[bool] = None


class ManifestPayload(_Payload):
    id: str
    name: str
    version: str
    description: Optional[str] = None
    logo: Optional[str] = None
    background: Optional[str] = None
    types: Optional[list[str]] = None
    resources: Optional[list[Any]] = None  # str or ResourcePayload-shaped dict
    catalogs: Optional[list[CatalogPayload]] = None
    id_prefixes: Optional[list[str]] = None
    behavior_hints: Optional[AddonBehaviorHintsPayload] = None

    _lists = field_validator("types", "id_prefixes", mode="before")(
        lambda v: _lenient_str_list(v)
    )

    def to_manifest(self) -> AddonManifest:
        """Convert to the immutable domain manifest."""
        resources: list[AddonResource] = []
        for raw in self.resources or []:
            if isinstance(raw, str):
                resources.append(AddonResource(name=raw))
            elif isinstance(raw, dict):
                try:
                    parsed = ResourcePayload.model_validate(raw)
                except ValidationError:
                    continue
                resources.append(
                    AddonResource(
                        name=parsed.name,
                        types=tuple(parsed.types or ()),
                        id_prefixes=tuple(parsed.id_prefixes)
                        if parsed.id_prefixes is not None
                        else None,
                    )
                )

        catalogs = tuple(
            AddonCatalog(
                type=c.type,
                id=c.id,
                name=c.name or "",
                genres=tuple(c.genres) if c.genres is not None else None,
                extra=tuple(
                    AddonCatalogExtra(
                        name=e.name,
                        is_required=bool(e.is_required),
                        options=tuple(e.options) if e.options is not None else None,
                    )
                    for e in c.extra
                )
                if c.extra is not None
                else None,
            )
            for c in self.catalogs or []
        )

        hints = None
        if self.behavior_hints is not None:
            hints = AddonBehaviorHints(
                adult=bool(self.behavior_hints.adult),
                p2p=bool(self.behavior_hints.p2p),
                configurable=bool(self.behavior_hints.configurable),
                configuration_required=bool(
                    self.behavior_hints.configuration_required
                ),
            )

        return AddonManifest(
            id=self.id,
            name=self.name,
            version=self.version,
            description=self.description or "",
            logo=self.logo,
            background=self.background,
            types=tuple(self.types or ()),
            resources=tuple(resources),
            catalogs=catalogs,
            id_prefixes=tuple(self.id_prefixes) if self.id_prefixes is not None else None,
            behavior_hints=hints,
        )


# ---------------------------------------------------------------------------
# Streams
# ---------------------------------------------------------------------------


class ProxyHeadersPayload(_Payload):
    request: Optional[dict[str, Any]] = None
    response: Optional[dict[str, Any]] = None

    _maps = field_validator("request", "response", mode="before")(
        lambda v: _lenient_mapping(v)
    )


class StreamBehaviorHintsPayload(_Payload):
    not_web_ready: Optional[bool] = None
    cached: Optional[bool] = None
    binge_group: Optional[str] = None
    country_whitelist: Optional[list[str]] = None
    proxy_headers: Optional[ProxyHeadersPayload] = None
    headers: Optional[dict[str, Any]] = None
    video_hash: Optional[str] = None
    video_size: Optional[int] = None
    filename: Optional[str] = None

    _size = field_validator("video_size", mode="before")(lambda v: _lenient_int(v))
    _headers = field_validator("headers", mode="before")(lambda v: _lenient_mapping(v))
    _countries = field_validator("country_whitelist", mode="before")(
        lambda v: _lenient_str_list(v)
    )
    _strings = field_validator("binge_group", "video_hash", "filename", mode="before")(
        lambda v: _lenient_str(v)
    )

    @field_validator("proxy_headers", mode="before")
    @classmethod
    def _proxy_headers(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else None


class SubtitlePayload(_Payload):
    id: Optional[str] = None
    url: Optional[str] = None
    lang: Optional[str] = None
    label: Optional[str] = None

    _strings = field_validator("id", "url", "lang", "label", mode="before")(
        lambda v: _lenient_str(v)
    )


class StreamPayload(_Payload):
    name: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    info_hash: Optional[str] = None
    file_idx: Optional[int] = None
    yt_id: Optional[str] = None
    external_url: Optional[str] = None
    headers: Optional[dict[str, Any]] = None
    behavior_hints: Optional[StreamBehaviorHintsPayload] = None
    sources: Optional[list[str]] = None
    subtitles: Optional[list[SubtitlePayload]] = None

    _idx = field_validator("file_idx", mode="before")(lambda v: _lenient_int(v))
    _headers = field_validator("headers", mode="before")(lambda v: _lenient_mapping(v))
    _sources = field_validator("sources", mode="before")(lambda v: _lenient_str_list(v))
    _strings = field_validator(
        "name",
        "title",
        "description",
        "url",
        "info_hash",
        "yt_id",
        "external_url",
        mode="before",
    )(lambda v: _lenient_str(v))

    @field_validator("behavior_hints", mode="before")
    @classmethod
    def _hints(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else None

    @field_validator("subtitles", mode="before")
    @classmethod
    def _subtitles(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return None
        return [item for item in v if isinstance(item, dict)]

    def has_playable_link(self) -> bool:
        return any(
            value is not None
            for value in (self.url, self.info_hash, self.yt_id, self.external_url)
        )

    def stream_url(self) -> Optional[str]:
        return self.url if self.url is not None else self.external_url


def _parse_items(items: Any, model: type[_Payload], kind: str) -> list[Any]:
    """Validate each list entry on its own; malformed entries are dropped."""
    if not isinstance(items, list):
        return []
    parsed: list[Any] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        try:
            parsed.append(model.model_validate(item))
        except ValidationError:
            log.debug("addon_payload_item_invalid", kind=kind, index=index)
    return parsed


def parse_streams(body: Any) -> list[StreamPayload]:
    """Parse a ``/stream`` response body (``{"streams": [...]}``)."""
    if not isinstance(body, dict):
        return []
    return _parse_items(body.get("streams"), StreamPayload, "stream")


def parse_subtitles(body: Any) -> list[SubtitlePayload]:
    """Parse a ``/subtitles`` response body (``{"subtitles": [...]}``)."""
    if not isinstance(body, dict):
        return []
    return _parse_items(body.get("subtitles"), SubtitlePayload, "subtitle")
