"""Addon engine exceptions.

Only registry-level failures are raised. Per-addon timeouts, failed
reachability probes and failed playback resolution are absorbed into
empty lists, ``False`` and ``None`` by the components that hit them.
"""

from __future__ import annotations


class AddonError(Exception):
    """Base class for all addon-related errors."""


class InvalidAddonUrlError(AddonError):
    """Raised when an addon URL has no usable host after normalization."""


class ManifestFetchError(AddonError):
    """Raised when the manifest cannot be fetched or is malformed."""


class AddonNotFoundError(AddonError):
    """Raised when an addon id is not known to the registry."""


class BuiltInAddonError(AddonError):
    """Raised when removing or disabling the reserved built-in addon."""
