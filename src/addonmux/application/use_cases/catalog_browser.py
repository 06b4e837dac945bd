"""Catalog and meta browsing against a single installed addon."""

from __future__ import annotations

from typing import Any, Protocol
from urllib.parse import quote

import structlog

from addonmux.domain.entities.addon import Addon, CatalogPage
from addonmux.infrastructure.stremio.addon_url import (
    addon_base_and_query,
    resource_url,
)

log = structlog.get_logger(__name__)

_TYPE_ALIASES: dict[str, tuple[str, ...]] = {
    "series": ("series", "tv", "show", "shows"),
    "tv": ("tv", "series", "show", "shows"),
    "show": ("show", "shows", "series", "tv"),
    "shows": ("shows", "show", "series", "tv"),
}


class _AddonLookup(Protocol):
    def get(self, addon_id: str) -> Addon: ...


class _ResourceFetcher(Protocol):
    async def fetch_resource(
        self, url: str, *, timeout: float | None = None
    ) -> dict[str, Any] | None: ...


def catalog_type_aliases(raw_type: str) -> list[str]:
    """Type spellings to try, in order. Unknown types are tried as given."""
    cleaned = raw_type.strip()
    return list(dict.fromkeys(_TYPE_ALIASES.get(cleaned.lower(), (cleaned,))))


def catalog_request_urls(
    base_url: str,
    catalog_type: str,
    catalog_id: str,
    skip: int = 0,
    query: str | None = None,
) -> list[str]:
    """Query-string skip first, then the ``/skip=N.json`` path-extra form."""
    params = [p for p in (query, f"skip={skip}" if skip > 0 else None) if p]
    default_url = resource_url(
        base_url,
        "catalog",
        catalog_type,
        catalog_id,
        "&".join(params) or None,
        encode=True,
    )
    if skip <= 0:
        return [default_url]

    path_url = (
        f"{base_url}/catalog/{quote(catalog_type, safe='')}/"
        f"{quote(catalog_id, safe='')}/skip={skip}.json"
    )
    if query:
        path_url = f"{path_url}?{query}"
    return list(dict.fromkeys([default_url, path_url]))


def _page_from(body: dict[str, Any]) -> CatalogPage:
    for field_name in ("metas", "items"):
        items = body.get(field_name)
        if isinstance(items, list) and items:
            return CatalogPage(metas=[m for m in items if isinstance(m, dict)])
    return CatalogPage()


class AddonCatalogBrowser:
    """Browse an addon's catalogs and metadata, trying type aliases."""

    def __init__(self, *, addons: _AddonLookup, fetcher: _ResourceFetcher) -> None:
        self._addons = addons
        self._fetcher = fetcher

    async def catalog_page(
        self,
        addon_id: str,
        catalog_type: str,
        catalog_id: str,
        skip: int = 0,
    ) -> CatalogPage:
        """First page with items, else the first successful page, else empty.

        Raises:
            AddonNotFoundError: *addon_id* is not installed.
        """
        addon = self._addons.get(addon_id)
        if not addon.url:
            return CatalogPage()
        base_url, query = addon_base_and_query(addon.url)

        first_successful: CatalogPage | None = None
        for type_candidate in catalog_type_aliases(catalog_type):
            for url in catalog_request_urls(
                base_url, type_candidate, catalog_id, skip, query
            ):
                body = await self._fetcher.fetch_resource(url)
                if body is None:
                    continue
                page = _page_from(body)
                if not page.is_empty:
                    log.debug(
                        "addon_catalog_page",
                        addon_id=addon_id,
                        catalog_type=type_candidate,
                        items=len(page.metas),
                    )
                    return page
                if first_successful is None:
                    first_successful = page

        return first_successful if first_successful is not None else CatalogPage()

    async def meta(
        self,
        addon_id: str,
        media_type: str,
        media_id: str,
    ) -> dict[str, Any] | None:
        addon = self._addons.get(addon_id)
        if not addon.url:
            return None
        base_url, query = addon_base_and_query(addon.url)

        for type_candidate in catalog_type_aliases(media_type):
            url = resource_url(
                base_url, "meta", type_candidate, media_id, query, encode=True
            )
            body = await self._fetcher.fetch_resource(url)
            meta = body.get("meta") if body is not None else None
            if isinstance(meta, dict):
                return meta
        log.debug("addon_meta_missing", addon_id=addon_id, media_id=media_id)
        return None
