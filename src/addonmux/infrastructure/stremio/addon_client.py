"""HTTP client for the Stremio addon protocol endpoints."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from addonmux.domain.entities.addon import AddonManifest
from addonmux.domain.exceptions import ManifestFetchError
from addonmux.infrastructure.stremio.payloads import (
    ManifestPayload,
    StreamPayload,
    SubtitlePayload,
    parse_streams,
    parse_subtitles,
)

log = structlog.get_logger(__name__)


class StremioAddonClient:
    """Thin async wrapper over ``httpx.AsyncClient`` for addon resources.

    ``fetch_streams`` and ``fetch_subtitles`` propagate transport and
    status errors; callers decide how to absorb them. ``fetch_manifest``
    raises ``ManifestFetchError`` for every failure.
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    async def _get_json(
        self,
        url: str,
        *,
        timeout: float | None = None,
    ) -> Any:
        kwargs: dict[str, Any] = {}
        if timeout is not None:
            kwargs["timeout"] = timeout
        resp = await self._http.get(url, **kwargs)
        resp.raise_for_status()
        return resp.json()

    async def fetch_manifest(
        self,
        url: str,
        *,
        timeout: float | None = None,
    ) -> AddonManifest:
        try:
            body = await self._get_json(url, timeout=timeout)
        except httpx.HTTPStatusError as exc:
            log.warning(
                "addon_manifest_http_error",
                url=url,
                status=exc.response.status_code,
            )
            raise ManifestFetchError(
                f"Manifest request failed with HTTP {exc.response.status_code}: {url}"
            ) from exc
        except httpx.HTTPError as exc:
            log.warning("addon_manifest_network_error", url=url, exc_info=True)
            raise ManifestFetchError(f"Manifest request failed: {url}") from exc
        except ValueError as exc:
            log.warning("addon_manifest_invalid_json", url=url)
            raise ManifestFetchError(f"Manifest is not valid JSON: {url}") from exc

        try:
            return ManifestPayload.model_validate(body).to_manifest()
        except ValidationError as exc:
            log.warning("addon_manifest_invalid", url=url, errors=exc.error_count())
            raise ManifestFetchError(f"Manifest is malformed: {url}") from exc

    async def fetch_streams(
        self,
        url: str,
        *,
        timeout: float | None = None,
    ) -> list[StreamPayload]:
        return parse_streams(await self._get_json(url, timeout=timeout))

    async def fetch_subtitles(
        self,
        url: str,
        *,
        timeout: float | None = None,
    ) -> list[SubtitlePayload]:
        return parse_subtitles(await self._get_json(url, timeout=timeout))

    async def fetch_resource(
        self,
        url: str,
        *,
        timeout: float | None = None,
    ) -> dict[str, Any] | None:
        """GET a catalog/meta resource. Returns None on any failure."""
        try:
            body = await self._get_json(url, timeout=timeout)
        except httpx.HTTPError:
            log.debug("addon_resource_error", url=url, exc_info=True)
            return None
        except ValueError:
            log.debug("addon_resource_invalid_json", url=url)
            return None
        return body if isinstance(body, dict) else None
