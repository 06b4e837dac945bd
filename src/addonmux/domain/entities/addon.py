"""Domain entities for installed Stremio-protocol addons.

Pure value objects without I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# Reserved id of the built-in subtitle addon (always present, always enabled).
BUILTIN_SUBTITLE_ADDON_ID = "opensubtitles"
BUILTIN_SUBTITLE_ADDON_NAME = "OpenSubtitles v3"
BUILTIN_SUBTITLE_ADDON_URL = "https://opensubtitles-v3.strem.io/subtitles"


class AddonType(str, Enum):
    """Origin/role of an installed addon."""

    OFFICIAL = "official"
    COMMUNITY = "community"
    SUBTITLE = "subtitle"
    METADATA = "metadata"
    CUSTOM = "custom"


@dataclass(frozen=True)
class AddonResource:
    """A resource declared in a manifest (``stream``, ``meta``, ``subtitles``...)."""

    name: str
    types: tuple[str, ...] = ()
    id_prefixes: tuple[str, ...] | None = None


@dataclass(frozen=True)
class AddonCatalogExtra:
    name: str  # "search", "genre", "skip"
    is_required: bool = False
    options: tuple[str, ...] | None = None


@dataclass(frozen=True)
class AddonCatalog:
    type: str
    id: str
    name: str = ""
    genres: tuple[str, ...] | None = None
    extra: tuple[AddonCatalogExtra, ...] | None = None


@dataclass(frozen=True)
class AddonBehaviorHints:
    adult: bool = False
    p2p: bool = False
    configurable: bool = False
    configuration_required: bool = False


@dataclass(frozen=True)
class AddonManifest:
    """Capability descriptor fetched from ``manifest.json``.

    Used for eligibility filtering only; never mutated after fetch.
    """

    id: str
    name: str
    version: str
    description: str = ""
    logo: str | None = None
    background: str | None = None
    types: tuple[str, ...] = ()
    resources: tuple[AddonResource, ...] = ()
    catalogs: tuple[AddonCatalog, ...] = ()
    id_prefixes: tuple[str, ...] | None = None
    behavior_hints: AddonBehaviorHints | None = None


@dataclass(frozen=True)
class Addon:
    """An installed addon as persisted in the preference store."""

    id: str
    name: str
    version: str
    type: AddonType
    description: str = ""
    is_installed: bool = True
    is_enabled: bool = True
    url: str | None = None
    logo: str | None = None
    manifest: AddonManifest | None = None
    transport_url: str | None = None


@dataclass(frozen=True)
class CatalogPage:
    """One page of catalog items as returned by an addon."""

    metas: list[dict] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.metas
