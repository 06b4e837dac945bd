"""Content-aware TTL policy for cached fan-out results.

Pure logic, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass

from addonmux.domain.entities.stream import StreamResult, StreamSource

# Query markers of time-limited (signed/tokenized) playback URLs.
EPHEMERAL_URL_MARKERS: tuple[str, ...] = (
    "token=",
    "expires=",
    "signature=",
    "sig=",
    "exp=",
)


def _is_ephemeral(stream: StreamSource) -> bool:
    url = (stream.url or "").strip().lower()
    if any(marker in url for marker in EPHEMERAL_URL_MARKERS):
        return True
    hints = stream.behavior_hints
    if hints is None:
        return False
    return hints.not_web_ready or bool(hints.request_headers)


@dataclass(frozen=True)
class CacheTtlPolicy:
    """TTL buckets in seconds. The shortest applicable bucket wins."""

    empty_seconds: float = 120.0
    p2p_seconds: float = 120.0
    http_seconds: float = 30.0
    http_ephemeral_seconds: float = 10.0

    def ttl_for(self, result: StreamResult) -> float:
        streams = result.streams
        if not streams:
            return self.empty_seconds

        http_streams = [s for s in streams if s.is_http]
        if not http_streams:
            return self.p2p_seconds

        if any(_is_ephemeral(s) for s in streams):
            return self.http_ephemeral_seconds
        return self.http_seconds
