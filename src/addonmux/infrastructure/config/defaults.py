"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "addonmux",
    "environment": "dev",
    "http": {
        "timeout_seconds": 10.0,
        "follow_redirects": True,
        "user_agent": "addonmux/0.1.0",
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "store": {
        "dir": "./.cache/addonmux",
    },
    "profile": {
        "default_profile_id": "default",
    },
    "engine": {
        "addon_timeout_seconds": 5.0,
        "subtitle_timeout_seconds": 3.0,
        "anime_lookup_timeout_seconds": 0.6,
        "playback_timeout_seconds": 3.5,
        "reachability_timeout_seconds": 4.5,
        "max_concurrent_addons": 16,
        "vod_lookup_timeout_seconds": 2.5,
        "vod_append_timeout_seconds": 1.0,
        "ttl_empty_seconds": 120,
        "ttl_p2p_seconds": 120,
        "ttl_http_seconds": 30,
        "ttl_http_ephemeral_seconds": 10,
        "single_flight": True,
        "torrent_helper_ports": [8090],
    },
}
