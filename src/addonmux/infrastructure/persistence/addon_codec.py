"""JSON codec for the persisted addon list.

Manifests are stored in Stremio wire shape so that decoding goes
through the same lenient payload model as a freshly fetched manifest.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from addonmux.domain.entities.addon import Addon, AddonManifest, AddonType
from addonmux.infrastructure.stremio.payloads import ManifestPayload


class AddonCodecError(ValueError):
    """Stored addon list could not be decoded."""


class _AddonRecord(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str
    name: str
    version: str = "1.0.0"
    description: str = ""
    is_installed: bool = True
    is_enabled: bool = True
    type: AddonType = AddonType.CUSTOM
    url: Optional[str] = None
    logo: Optional[str] = None
    manifest: Optional[ManifestPayload] = None
    transport_url: Optional[str] = None


def _manifest_to_wire(manifest: AddonManifest) -> dict[str, Any]:
    resources: list[Any] = []
    for resource in manifest.resources:
        if not resource.types and resource.id_prefixes is None:
            resources.append(resource.name)
            continue
        entry: dict[str, Any] = {"name": resource.name, "types": list(resource.types)}
        if resource.id_prefixes is not None:
            entry["idPrefixes"] = list(resource.id_prefixes)
        resources.append(entry)

    catalogs = []
    for catalog in manifest.catalogs:
        entry = {"type": catalog.type, "id": catalog.id, "name": catalog.name}
        if catalog.genres is not None:
            entry["genres"] = list(catalog.genres)
        if catalog.extra is not None:
            entry["extra"] = [
                {
                    "name": e.name,
                    "isRequired": e.is_required,
                    **({"options": list(e.options)} if e.options is not None else {}),
                }
                for e in catalog.extra
            ]
        catalogs.append(entry)

    wire: dict[str, Any] = {
        "id": manifest.id,
        "name": manifest.name,
        "version": manifest.version,
        "description": manifest.description,
        "logo": manifest.logo,
        "background": manifest.background,
        "types": list(manifest.types),
        "resources": resources,
        "catalogs": catalogs,
        "idPrefixes": list(manifest.id_prefixes)
        if manifest.id_prefixes is not None
        else None,
    }
    if manifest.behavior_hints is not None:
        hints = manifest.behavior_hints
        wire["behaviorHints"] = {
            "adult": hints.adult,
            "p2p": hints.p2p,
            "configurable": hints.configurable,
            "configurationRequired": hints.configuration_required,
        }
    return wire


def addon_to_dict(addon: Addon) -> dict[str, Any]:
    return {
        "id": addon.id,
        "name": addon.name,
        "version": addon.version,
        "description": addon.description,
        "isInstalled": addon.is_installed,
        "isEnabled": addon.is_enabled,
        "type": addon.type.value,
        "url": addon.url,
        "logo": addon.logo,
        "manifest": _manifest_to_wire(addon.manifest)
        if addon.manifest is not None
        else None,
        "transportUrl": addon.transport_url,
    }


def encode_addons(addons: list[Addon]) -> str:
    return json.dumps([addon_to_dict(a) for a in addons])


def decode_addons(raw: str) -> list[Addon]:
    """Decode a stored list; raises ``AddonCodecError`` on any malformed input."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise AddonCodecError(str(exc)) from exc
    if not isinstance(data, list):
        raise AddonCodecError(f"Expected a JSON list, got: {type(data).__name__}")

    addons: list[Addon] = []
    for item in data:
        try:
            record = _AddonRecord.model_validate(item)
        except ValidationError as exc:
            raise AddonCodecError(str(exc)) from exc
        addons.append(
            Addon(
                id=record.id,
                name=record.name,
                version=record.version,
                type=record.type,
                description=record.description,
                is_installed=record.is_installed,
                is_enabled=record.is_enabled,
                url=record.url,
                logo=record.logo,
                manifest=record.manifest.to_manifest()
                if record.manifest is not None
                else None,
                transport_url=record.transport_url,
            )
        )
    return addons
