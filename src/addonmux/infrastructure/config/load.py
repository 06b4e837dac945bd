"""Layered configuration loading.

Every layer (defaults, YAML, ENV, CLI) is first brought into the sectioned
shape of ``config.yaml`` and then deep-merged over the previous one; the
merged mapping is validated once by ``AppConfig``.
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EngineConfig, EnvOverrides

_TOP_LEVEL_KEYS = frozenset({"app_name", "environment"})

# Flat name (ENV / CLI) -> (section, key inside the section)
_FLAT_KEYS: dict[str, tuple[str, str]] = {
    "http_timeout_seconds": ("http", "timeout_seconds"),
    "http_follow_redirects": ("http", "follow_redirects"),
    "http_user_agent": ("http", "user_agent"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
    "store_dir": ("store", "dir"),
    "default_profile_id": ("profile", "default_profile_id"),
}
_FLAT_KEYS.update(
    {name: ("engine", name) for name in EngineConfig.model_fields}
)

_SECTIONS = frozenset(section for section, _ in _FLAT_KEYS.values())


def merge_layers(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge *override* into *base* in place; nested mappings merge, the rest replaces."""
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merge_layers(current, value)
        else:
            base[key] = deepcopy(value)
    return base


def sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer into the sectioned shape. Unknown keys are ignored.

    Accepts both forms, e.g. ``{"engine": {"ttl_http_seconds": 5}}`` and
    ``{"ttl_http_seconds": 5}``; ``{"logging": {"level": "DEBUG"}}`` and
    ``{"log_level": "DEBUG"}``.
    """
    out: dict[str, Any] = {}
    for key, value in layer.items():
        if key in _SECTIONS and isinstance(value, Mapping):
            merge_layers(out, {key: value})
        elif key in _TOP_LEVEL_KEYS:
            out[key] = value
        elif key in _FLAT_KEYS:
            section, name = _FLAT_KEYS[key]
            merge_layers(out, {section: {name: value}})
    return out


def _yaml_layer(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(config_path)
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, Mapping):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return sectioned(parsed)


def _env_layer(dotenv_path: Path | None) -> dict[str, Any]:
    # A .env file only fills variables the process environment leaves unset.
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)
    return sectioned(EnvOverrides().to_update_dict())


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Build the validated ``AppConfig``: defaults < YAML < ENV (+ .env) < CLI.

    No files or directories are created.
    """
    env = _env_layer(dotenv_path)
    merged = sectioned(DEFAULT_CONFIG)
    if config_path is not None:
        merge_layers(merged, _yaml_layer(config_path))
    merge_layers(merged, env)
    merge_layers(merged, sectioned(cli_overrides or {}))
    return AppConfig.model_validate(merged)
