"""Request header extraction, sanitizing and merging for provider streams.

Providers put required playback headers in different places. Each
extractor below reads one location; ``extract_request_headers`` applies
them in a fixed order so later locations override earlier ones.

Pure functions without I/O.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import unquote, urlsplit

from addonmux.infrastructure.stremio.payloads import StreamPayload

HeaderExtractor = Callable[[StreamPayload], Mapping[str, Any] | None]


def _has_line_break(text: str) -> bool:
    return "\r" in text or "\n" in text


def sanitize_headers(headers: Mapping[str, Any] | None) -> dict[str, str]:
    """Trim keys/values and drop blank, CR/LF or non-ASCII entries.

    Non-string values are stringified; ``None`` values are dropped.
    """
    if not headers:
        return {}
    sanitized: dict[str, str] = {}
    for raw_key, raw_value in headers.items():
        if raw_key is None or raw_value is None:
            continue
        key = str(raw_key).strip()
        value = str(raw_value).strip()
        if not key or not value:
            continue
        if _has_line_break(key) or _has_line_break(value):
            continue
        if not (key.isascii() and value.isascii()):
            continue
        sanitized[key] = value
    return sanitized


def merge_headers(
    base: Mapping[str, Any] | None,
    extra: Mapping[str, Any] | None,
) -> dict[str, str]:
    """Merge two header maps; keys from *extra* win. Both sides are sanitized."""
    merged = sanitize_headers(base)
    merged.update(sanitize_headers(extra))
    return merged


def _explicit_headers(stream: StreamPayload) -> Mapping[str, Any] | None:
    return stream.headers


def _hint_headers(stream: StreamPayload) -> Mapping[str, Any] | None:
    hints = stream.behavior_hints
    return hints.headers if hints is not None else None


def _proxy_request_headers(stream: StreamPayload) -> Mapping[str, Any] | None:
    hints = stream.behavior_hints
    if hints is None or hints.proxy_headers is None:
        return None
    return hints.proxy_headers.request


# Precedence: later extractors override earlier ones.
HEADER_EXTRACTORS: tuple[HeaderExtractor, ...] = (
    _explicit_headers,
    _hint_headers,
    _proxy_request_headers,
)


def extract_request_headers(
    stream: StreamPayload,
    extractors: tuple[HeaderExtractor, ...] = HEADER_EXTRACTORS,
) -> dict[str, str]:
    """Collect request headers from every known provider location."""
    merged: dict[str, str] = {}
    for extractor in extractors:
        merged = merge_headers(merged, extractor(stream))
    return merged


def _decode_header_part(value: str) -> str:
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError:
        return value


def split_url_and_headers(raw_url: str) -> tuple[str, dict[str, str]]:
    """Split ``url|Key=Value&Key2=Value2`` into the URL and a header map.

    Header parts are percent-decoded and sanitized. URLs without a pipe
    (or starting with one) are returned unchanged with no headers.
    """
    idx = raw_url.find("|")
    if idx <= 0:
        return raw_url, {}

    base_url = raw_url[:idx].strip()
    raw_headers = raw_url[idx + 1 :].strip()
    if not base_url or not raw_headers:
        return base_url or raw_url, {}

    parsed: dict[str, str] = {}
    for entry in raw_headers.split("&"):
        entry = entry.strip()
        separator = entry.find("=")
        if separator <= 0:
            continue
        key = _decode_header_part(entry[:separator])
        value = _decode_header_part(entry[separator + 1 :])
        parsed[key] = value
    return base_url, sanitize_headers(parsed)


def derive_origin(referer: str) -> str | None:
    """Build ``scheme://host[:port]`` from a Referer, omitting default ports."""
    try:
        parts = urlsplit(referer.strip())
        port = parts.port
    except ValueError:
        return None
    scheme = (parts.scheme or "").lower()
    host = parts.hostname
    if not scheme or not host:
        return None
    default_port = {"http": 80, "https": 443}.get(scheme)
    if port is not None and port != default_port:
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def find_header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup."""
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None
