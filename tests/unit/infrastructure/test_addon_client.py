"""Tests for StremioAddonClient (addon protocol HTTP adapter)."""

from __future__ import annotations

import httpx
import pytest
import respx

from addonmux.domain.exceptions import ManifestFetchError
from addonmux.infrastructure.stremio.addon_client import StremioAddonClient

_BASE = "https://addon.example"

_MANIFEST = {
    "id": "org.example",
    "name": "Example",
    "version": "1.0.0",
    "resources": ["stream"],
    "types": ["movie"],
}


@pytest.fixture()
def client() -> StremioAddonClient:
    return StremioAddonClient(httpx.AsyncClient())


class TestFetchManifest:
    @respx.mock
    async def test_parses_manifest(self, client: StremioAddonClient) -> None:
        respx.get(f"{_BASE}/manifest.json").respond(json=_MANIFEST)

        manifest = await client.fetch_manifest(f"{_BASE}/manifest.json")

        assert manifest.id == "org.example"
        assert manifest.resources[0].name == "stream"

    @respx.mock
    async def test_http_error(self, client: StremioAddonClient) -> None:
        respx.get(f"{_BASE}/manifest.json").respond(status_code=404)

        with pytest.raises(ManifestFetchError, match="HTTP 404"):
            await client.fetch_manifest(f"{_BASE}/manifest.json")

    @respx.mock
    async def test_network_error(self, client: StremioAddonClient) -> None:
        respx.get(f"{_BASE}/manifest.json").mock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(ManifestFetchError):
            await client.fetch_manifest(f"{_BASE}/manifest.json")

    @respx.mock
    async def test_invalid_json(self, client: StremioAddonClient) -> None:
        respx.get(f"{_BASE}/manifest.json").respond(text="<html>")

        with pytest.raises(ManifestFetchError, match="not valid JSON"):
            await client.fetch_manifest(f"{_BASE}/manifest.json")

    @respx.mock
    async def test_missing_required_fields(self, client: StremioAddonClient) -> None:
        respx.get(f"{_BASE}/manifest.json").respond(json={"name": "no id"})

        with pytest.raises(ManifestFetchError, match="malformed"):
            await client.fetch_manifest(f"{_BASE}/manifest.json")


class TestFetchStreams:
    @respx.mock
    async def test_parses_streams(self, client: StremioAddonClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1.json").respond(
            json={"streams": [{"url": "https://cdn.example/v.mp4"}]}
        )

        streams = await client.fetch_streams(f"{_BASE}/stream/movie/tt1.json")

        assert [s.url for s in streams] == ["https://cdn.example/v.mp4"]

    @respx.mock
    async def test_propagates_status_errors(self, client: StremioAddonClient) -> None:
        respx.get(f"{_BASE}/stream/movie/tt1.json").respond(status_code=500)

        with pytest.raises(httpx.HTTPStatusError):
            await client.fetch_streams(f"{_BASE}/stream/movie/tt1.json")


class TestFetchResource:
    @respx.mock
    async def test_returns_dict(self, client: StremioAddonClient) -> None:
        respx.get(f"{_BASE}/meta/movie/tt1.json").respond(json={"meta": {"id": "tt1"}})

        assert await client.fetch_resource(f"{_BASE}/meta/movie/tt1.json") == {
            "meta": {"id": "tt1"}
        }

    @respx.mock
    async def test_failures_return_none(self, client: StremioAddonClient) -> None:
        respx.get(f"{_BASE}/a.json").respond(status_code=503)
        respx.get(f"{_BASE}/b.json").respond(text="not json")
        respx.get(f"{_BASE}/c.json").respond(json=["list"])

        assert await client.fetch_resource(f"{_BASE}/a.json") is None
        assert await client.fetch_resource(f"{_BASE}/b.json") is None
        assert await client.fetch_resource(f"{_BASE}/c.json") is None
