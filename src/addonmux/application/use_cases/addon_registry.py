"""Installed addon registry (per profile).

The registry is the only writer of the addon list. Every read passes
through ``enforce_builtin_subtitles`` so the reserved subtitle addon is
always present, canonical and enabled.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Protocol

import structlog

from addonmux.domain.entities.addon import (
    BUILTIN_SUBTITLE_ADDON_ID,
    BUILTIN_SUBTITLE_ADDON_NAME,
    BUILTIN_SUBTITLE_ADDON_URL,
    Addon,
    AddonManifest,
    AddonType,
)
from addonmux.domain.exceptions import (
    AddonNotFoundError,
    BuiltInAddonError,
    InvalidAddonUrlError,
)
from addonmux.domain.ports.preference_store import PreferenceStorePort
from addonmux.domain.ports.result_cache import StreamResultCachePort
from addonmux.infrastructure.persistence.addon_codec import (
    AddonCodecError,
    decode_addons,
    encode_addons,
)
from addonmux.infrastructure.stremio.addon_url import (
    addon_instance_id,
    manifest_url,
    normalize_addon_url,
    require_host,
    transport_url,
)

log = structlog.get_logger(__name__)

_BUILTIN_DESCRIPTION = "Subtitles from OpenSubtitles"


class _ManifestFetcher(Protocol):
    async def fetch_manifest(
        self, url: str, *, timeout: float | None = None
    ) -> AddonManifest: ...


def canonical_builtin_subtitles(existing: Addon | None = None) -> Addon:
    """Reserved subtitle addon; keeps version, logo and manifest of *existing*."""
    return Addon(
        id=BUILTIN_SUBTITLE_ADDON_ID,
        name=BUILTIN_SUBTITLE_ADDON_NAME,
        version=existing.version if existing is not None else "1.0.0",
        type=AddonType.SUBTITLE,
        description=_BUILTIN_DESCRIPTION,
        is_installed=True,
        is_enabled=True,
        url=BUILTIN_SUBTITLE_ADDON_URL,
        logo=existing.logo if existing is not None else None,
        manifest=existing.manifest if existing is not None else None,
        transport_url=BUILTIN_SUBTITLE_ADDON_URL,
    )


def enforce_builtin_subtitles(addons: list[Addon]) -> list[Addon]:
    """Self-healing normalization applied to every loaded addon list.

    - first occurrence of each id wins (order preserved)
    - the built-in subtitle addon is canonicalized and force-enabled
    - the built-in subtitle addon is appended when missing
    """
    merged: dict[str, Addon] = {}
    for addon in addons:
        if addon.id == BUILTIN_SUBTITLE_ADDON_ID:
            if addon.id not in merged:
                merged[addon.id] = canonical_builtin_subtitles(addon)
        elif addon.id not in merged:
            merged[addon.id] = addon
    if BUILTIN_SUBTITLE_ADDON_ID not in merged:
        merged[BUILTIN_SUBTITLE_ADDON_ID] = canonical_builtin_subtitles()
    return list(merged.values())


def default_addons() -> list[Addon]:
    return [canonical_builtin_subtitles()]


def normalize_helper_base_url(raw: str) -> str:
    """Normalize a torrent helper base URL; blank means auto-detect."""
    trimmed = raw.strip().removesuffix("/")
    if not trimmed:
        return ""
    lower = trimmed.lower()
    if lower.startswith("http://") or lower.startswith("https://"):
        return trimmed
    if trimmed.startswith("//"):
        return f"http:{trimmed}"
    return f"http://{trimmed}"


class AddonRegistry:
    """Owns the installed addon list of each profile.

    Args:
        store: Durable preference store.
        manifest_fetcher: Fetches and parses ``manifest.json``.
        cache: Result cache cleared on every mutation of the active profile.
        profile_id: Initially active profile.
        manifest_timeout: Deadline for the manifest request on ``add``.
    """

    def __init__(
        self,
        *,
        store: PreferenceStorePort,
        manifest_fetcher: _ManifestFetcher,
        cache: StreamResultCachePort,
        profile_id: str = "default",
        manifest_timeout: float | None = None,
    ) -> None:
        self._store = store
        self._fetcher = manifest_fetcher
        self._cache = cache
        self._profile_id = profile_id
        self._manifest_timeout = manifest_timeout

    # --- profiles ---

    @property
    def profile_id(self) -> str:
        return self._profile_id

    def switch_profile(self, profile_id: str) -> None:
        if profile_id == self._profile_id:
            return
        log.info("addon_profile_switched", old=self._profile_id, new=profile_id)
        self._profile_id = profile_id
        self._cache.clear()

    @staticmethod
    def _addons_key(profile_id: str) -> str:
        return f"profile:{profile_id}:installed_addons"

    @staticmethod
    def _helper_url_key(profile_id: str) -> str:
        return f"profile:{profile_id}:torrent_helper_base_url"

    # --- reads ---

    def list_for_profile(self, profile_id: str) -> list[Addon]:
        raw = self._store.get(self._addons_key(profile_id))
        addons: list[Addon] | None = None
        if raw:
            try:
                addons = decode_addons(raw)
            except AddonCodecError:
                log.warning("addon_list_undecodable", profile_id=profile_id)
        return enforce_builtin_subtitles(addons if addons is not None else default_addons())

    def list(self) -> list[Addon]:
        """Snapshot of the active profile's addons."""
        return self.list_for_profile(self._profile_id)

    def get(self, addon_id: str) -> Addon:
        for addon in self.list():
            if addon.id == addon_id:
                return addon
        raise AddonNotFoundError(f"Addon not found: {addon_id}")

    # --- writes ---

    def _save(self, profile_id: str, addons: list[Addon]) -> list[Addon]:
        resolved = enforce_builtin_subtitles(addons)
        self._store.set(self._addons_key(profile_id), encode_addons(resolved))
        if profile_id == self._profile_id:
            self._cache.clear()
        return resolved

    async def add(self, url: str, display_name: str | None = None) -> Addon:
        """Install a custom addon from a user-supplied URL.

        Raises:
            InvalidAddonUrlError: blank URL or no host after normalization.
            ManifestFetchError: manifest unreachable or malformed.
        """
        normalized = normalize_addon_url(url)
        if not normalized:
            raise InvalidAddonUrlError("Addon URL is empty")
        require_host(normalized)

        manifest = await self._fetcher.fetch_manifest(
            manifest_url(normalized), timeout=self._manifest_timeout
        )

        name = (display_name or "").strip() or manifest.name
        addon = Addon(
            id=addon_instance_id(manifest.id, normalized),
            name=name,
            version=manifest.version,
            type=AddonType.CUSTOM,
            description=manifest.description,
            is_installed=True,
            is_enabled=True,
            url=normalized,
            logo=manifest.logo,
            manifest=manifest,
            transport_url=transport_url(normalized),
        )

        addons = [a for a in self.list() if a.id != addon.id]
        addons.append(addon)
        self._save(self._profile_id, addons)
        log.info("addon_added", addon_id=addon.id, name=addon.name, url=normalized)
        return addon

    def _require_mutable(self, addon_id: str) -> list[Addon]:
        if addon_id == BUILTIN_SUBTITLE_ADDON_ID:
            raise BuiltInAddonError(f"Built-in addon cannot be changed: {addon_id}")
        addons = self.list()
        if not any(a.id == addon_id for a in addons):
            raise AddonNotFoundError(f"Addon not found: {addon_id}")
        return addons

    def remove(self, addon_id: str) -> None:
        addons = self._require_mutable(addon_id)
        self._save(self._profile_id, [a for a in addons if a.id != addon_id])
        log.info("addon_removed", addon_id=addon_id)

    def toggle(self, addon_id: str) -> Addon:
        """Flip ``is_enabled``; returns the updated addon."""
        addons = self._require_mutable(addon_id)
        current = next(a for a in addons if a.id == addon_id)
        updated = replace(current, is_enabled=not current.is_enabled)
        self._save(
            self._profile_id,
            [updated if a.id == addon_id else a for a in addons],
        )
        log.info("addon_toggled", addon_id=addon_id, enabled=updated.is_enabled)
        return updated

    def replace_all(self, addons: list[Addon]) -> list[Addon]:
        return self._save(self._profile_id, list(addons))

    def replace_for_profile(self, profile_id: str, addons: list[Addon]) -> list[Addon]:
        return self._save(profile_id, list(addons))

    # --- torrent helper base URL ---

    def torrent_helper_base_url(self) -> str:
        """Normalized helper URL for the active profile, ``""`` for auto-detect."""
        raw = self._store.get(self._helper_url_key(self._profile_id)) or ""
        return normalize_helper_base_url(raw)

    def set_torrent_helper_base_url(self, raw: str) -> None:
        self._store.set(self._helper_url_key(self._profile_id), raw.strip())
