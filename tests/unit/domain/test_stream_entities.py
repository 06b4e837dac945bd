"""Tests for stream and addon domain entities."""

from __future__ import annotations

import dataclasses

import pytest

from addonmux.domain.entities import (
    Addon,
    AddonType,
    CatalogPage,
    ProxyHeaders,
    StreamBehaviorHints,
    StreamRequest,
    StreamSource,
)
from addonmux.domain.exceptions import (
    AddonError,
    AddonNotFoundError,
    BuiltInAddonError,
    InvalidAddonUrlError,
    ManifestFetchError,
)


def _make_stream(url: str | None) -> StreamSource:
    return StreamSource(
        source="Movie.mkv",
        addon_name="Addon - Provider",
        addon_id="addon_1",
        quality="1080p",
        size="",
        url=url,
    )


class TestStreamRequest:
    def test_movie_content_id_is_imdb_id(self) -> None:
        req = StreamRequest(content_type="movie", imdb_id="tt0133093")
        assert req.content_id == "tt0133093"

    def test_episode_content_id_joins_season_and_episode(self) -> None:
        req = StreamRequest(content_type="series", imdb_id="tt0944947", season=1, episode=5)
        assert req.content_id == "tt0944947:1:5"


class TestStreamSource:
    @pytest.mark.parametrize(
        "url",
        ["http://a.example/x.mp4", "HTTPS://a.example/x.mp4", "  https://a.example "],
    )
    def test_is_http(self, url: str) -> None:
        assert _make_stream(url).is_http

    @pytest.mark.parametrize("url", [None, "", "magnet:?xt=urn:btih:abc", "rtmp://x"])
    def test_is_not_http(self, url: str | None) -> None:
        assert not _make_stream(url).is_http

    def test_is_frozen(self) -> None:
        stream = _make_stream("https://a.example/x.mp4")
        with pytest.raises(dataclasses.FrozenInstanceError):
            stream.url = "https://b.example"  # type: ignore[misc]


class TestStreamBehaviorHints:
    def test_request_headers_empty_without_proxy_headers(self) -> None:
        assert StreamBehaviorHints().request_headers == {}

    def test_request_headers_returns_copy(self) -> None:
        hints = StreamBehaviorHints(
            proxy_headers=ProxyHeaders(request={"Referer": "https://x.example"})
        )
        headers = hints.request_headers
        headers["Cookie"] = "a=b"
        assert hints.request_headers == {"Referer": "https://x.example"}


class TestAddon:
    def test_defaults(self) -> None:
        addon = Addon(id="a", name="A", version="1.0.0", type=AddonType.CUSTOM)
        assert addon.is_installed
        assert addon.is_enabled
        assert addon.url is None

    def test_addon_type_values_are_wire_strings(self) -> None:
        assert AddonType.SUBTITLE.value == "subtitle"
        assert AddonType("custom") is AddonType.CUSTOM


class TestCatalogPage:
    def test_empty_page(self) -> None:
        assert CatalogPage().is_empty

    def test_page_with_items(self) -> None:
        assert not CatalogPage(metas=[{"id": "tt1"}]).is_empty


class TestExceptions:
    @pytest.mark.parametrize(
        "exc_type",
        [InvalidAddonUrlError, ManifestFetchError, AddonNotFoundError, BuiltInAddonError],
    )
    def test_all_errors_share_base(self, exc_type: type[Exception]) -> None:
        assert issubclass(exc_type, AddonError)
