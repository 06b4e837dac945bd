"""Addon URL normalization and endpoint URL builders.

Accepts the forms users paste in practice: bare hosts, ``stremio://``
deep links, URLs with fragments and ``manifest.json`` typos such as
``manifest.jsonv``.
"""

from __future__ import annotations

import hashlib
import re
from urllib.parse import quote, urlsplit

from addonmux.domain.exceptions import InvalidAddonUrlError

_MANIFEST_TYPO_RE = re.compile(r"(?i)/manifest\.json[a-z0-9_-]+(?=($|[?]))")
_TRANSPORT_SUFFIXES: tuple[str, ...] = ("/manifest.json", "/stream", "/catalog")


def _has_http_scheme(url: str) -> bool:
    lower = url.lower()
    return lower.startswith("http://") or lower.startswith("https://")


def normalize_addon_url(raw_url: str) -> str:
    """Rewrite a user-supplied addon URL into canonical ``https://...`` form.

    Returns an empty string for blank input.
    """
    url = raw_url.strip()
    if not url:
        return url

    if url.lower().startswith("stremio://"):
        payload = url.split("://", 1)[1].strip()
        url = payload if _has_http_scheme(payload) else f"https://{payload}"

    if not _has_http_scheme(url):
        url = f"https://{url}"

    url = url.split("#", 1)[0]
    url = _MANIFEST_TYPO_RE.sub("/manifest.json", url)
    return url.strip()


def require_host(url: str) -> str:
    """Return *url* unchanged, or raise when it carries no usable host."""
    try:
        host = urlsplit(url).hostname
    except ValueError as exc:
        raise InvalidAddonUrlError(f"Invalid addon URL: {url!r}") from exc
    if not host:
        raise InvalidAddonUrlError(f"Addon URL has no host: {url!r}")
    return url


def split_base_and_query(url: str) -> tuple[str, str | None]:
    """Split on the first ``?``; the query part is None when absent or blank."""
    base, _, query = url.partition("?")
    return base, query or None


def manifest_url(url: str) -> str:
    """URL of ``manifest.json`` for an addon, preserving its query string."""
    base, query = split_base_and_query(normalize_addon_url(url))
    base = base.rstrip("/")
    if not base.endswith("manifest.json"):
        base = f"{base}/manifest.json"
    return f"{base}?{query}" if query else base


def transport_url(url: str) -> str:
    """Addon base URL with the manifest/resource suffix removed."""
    clean = normalize_addon_url(url).rstrip("/")
    for suffix in _TRANSPORT_SUFFIXES:
        if clean.endswith(suffix):
            clean = clean[: -len(suffix)]
    return clean


def addon_base_and_query(url: str) -> tuple[str, str | None]:
    """Transport base URL plus the addon's own query string (config tokens)."""
    base, query = split_base_and_query(url)
    return transport_url(base), query


def addon_instance_id(manifest_id: str, normalized_url: str) -> str:
    """Deterministic id: manifest id plus a short hash of the lowercased URL."""
    digest = hashlib.sha256(normalized_url.strip().lower().encode("utf-8")).digest()
    return f"{manifest_id}_{digest[:6].hex()}"


def resource_url(
    base_url: str,
    resource: str,
    content_type: str,
    content_id: str,
    query: str | None = None,
    *,
    encode: bool = False,
) -> str:
    """Build ``{base}/{resource}/{type}/{id}.json[?query]``.

    Stream ids such as ``tt1:1:2`` and ``kitsu:1:2`` are sent as-is;
    catalog and meta ids are percent-encoded.
    """
    if encode:
        content_type = quote(content_type, safe="")
        content_id = quote(content_id, safe="")
    url = f"{base_url}/{resource}/{content_type}/{content_id}.json"
    return f"{url}?{query}" if query else url
