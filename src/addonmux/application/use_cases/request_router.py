"""Capability routing: which addons receive a stream request.

Pure functions: no I/O and no mutation.
"""

from __future__ import annotations

from addonmux.domain.entities.addon import Addon, AddonResource, AddonType

# Providers known to accept both imdb and kitsu identifiers.
ALT_ID_PROVIDER_MARKERS: tuple[str, ...] = (
    "torrentio",
    "aiostreams",
    "mediafusion",
    "comet",
)

_GENERIC_TYPES: frozenset[str] = frozenset({"movie", "series"})


def _serves_type(resource: AddonResource, content_type: str) -> bool:
    types = resource.types
    return not types or content_type in types or any(t in _GENERIC_TYPES for t in types)


def _matches_prefix(prefixes: tuple[str, ...] | None, content_id: str) -> bool:
    return not prefixes or any(content_id.startswith(p) for p in prefixes)


def is_stream_capable(addon: Addon, content_type: str, content_id: str) -> bool:
    """Eligibility of a single addon for a stream request."""
    if not addon.is_installed or not addon.is_enabled:
        return False
    if addon.type == AddonType.SUBTITLE:
        return False
    if not (addon.url or "").strip():
        return False

    manifest = addon.manifest
    if manifest is None:
        # Unknown providers are assumed capable.
        return True

    if manifest.resources:
        return any(
            r.name == "stream"
            and _serves_type(r, content_type)
            and _matches_prefix(r.id_prefixes, content_id)
            for r in manifest.resources
        )

    if manifest.id_prefixes and addon.type != AddonType.CUSTOM:
        return _matches_prefix(manifest.id_prefixes, content_id)

    return True


def eligible_for_streams(
    addons: list[Addon],
    content_type: str,
    content_id: str,
) -> list[Addon]:
    """Filter *addons* down to those that should receive the request."""
    return [a for a in addons if is_stream_capable(a, content_type, content_id)]


def supports_alt_id_scheme(addon: Addon) -> bool:
    """True when the addon understands ``kitsu:<id>:<episode>`` ids."""
    manifest = addon.manifest
    if manifest is not None and manifest.id_prefixes and "kitsu" in manifest.id_prefixes:
        return True
    url = addon.url or ""
    return any(marker in url for marker in ALT_ID_PROVIDER_MARKERS)
