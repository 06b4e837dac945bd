"""Tests for capability routing of stream requests."""

from __future__ import annotations

import pytest

from addonmux.application.use_cases.request_router import (
    eligible_for_streams,
    is_stream_capable,
    supports_alt_id_scheme,
)
from addonmux.domain.entities.addon import (
    Addon,
    AddonManifest,
    AddonResource,
    AddonType,
)


def _make_manifest(
    resources: tuple[AddonResource, ...] = (),
    id_prefixes: tuple[str, ...] | None = None,
) -> AddonManifest:
    return AddonManifest(
        id="org.example",
        name="Example",
        version="1.0.0",
        resources=resources,
        id_prefixes=id_prefixes,
    )


def _make_addon(
    addon_id: str = "example",
    *,
    manifest: AddonManifest | None = None,
    addon_type: AddonType = AddonType.CUSTOM,
    url: str | None = "https://example.org/manifest.json",
    enabled: bool = True,
    installed: bool = True,
) -> Addon:
    return Addon(
        id=addon_id,
        name=addon_id,
        version="1.0.0",
        type=addon_type,
        url=url,
        manifest=manifest,
        is_enabled=enabled,
        is_installed=installed,
    )


class TestBasicEligibility:
    def test_unknown_manifest_is_capable(self) -> None:
        assert is_stream_capable(_make_addon(), "movie", "tt1")

    @pytest.mark.parametrize(
        "addon",
        [
            _make_addon(enabled=False),
            _make_addon(installed=False),
            _make_addon(addon_type=AddonType.SUBTITLE),
            _make_addon(url=None),
            _make_addon(url="   "),
        ],
        ids=["disabled", "not-installed", "subtitle", "no-url", "blank-url"],
    )
    def test_never_eligible(self, addon: Addon) -> None:
        assert not is_stream_capable(addon, "movie", "tt1")


class TestManifestResources:
    def test_stream_resource_with_matching_type(self) -> None:
        manifest = _make_manifest((AddonResource("stream", ("movie",)),))
        assert is_stream_capable(_make_addon(manifest=manifest), "movie", "tt1")

    def test_no_stream_resource(self) -> None:
        manifest = _make_manifest(
            (AddonResource("catalog", ("movie",)), AddonResource("meta", ("movie",)))
        )
        assert not is_stream_capable(_make_addon(manifest=manifest), "movie", "tt1")

    def test_untyped_stream_resource(self) -> None:
        manifest = _make_manifest((AddonResource("stream"),))
        assert is_stream_capable(_make_addon(manifest=manifest), "series", "tt1")

    def test_unrelated_type_only(self) -> None:
        manifest = _make_manifest((AddonResource("stream", ("tv", "channel")),))
        assert not is_stream_capable(_make_addon(manifest=manifest), "movie", "tt1")

    def test_resource_prefixes(self) -> None:
        manifest = _make_manifest((AddonResource("stream", ("movie",), ("tt",)),))
        addon = _make_addon(manifest=manifest)
        assert is_stream_capable(addon, "movie", "tt0111161")
        assert not is_stream_capable(addon, "movie", "kitsu:1")

    def test_resources_take_precedence_over_global_prefixes(self) -> None:
        manifest = _make_manifest(
            (AddonResource("stream", ("movie",)),), id_prefixes=("kitsu",)
        )
        addon = _make_addon(manifest=manifest, addon_type=AddonType.COMMUNITY)
        assert is_stream_capable(addon, "movie", "tt1")


class TestGlobalPrefixes:
    def test_enforced_for_non_custom(self) -> None:
        manifest = _make_manifest(id_prefixes=("kitsu",))
        addon = _make_addon(manifest=manifest, addon_type=AddonType.OFFICIAL)
        assert not is_stream_capable(addon, "movie", "tt1")
        assert is_stream_capable(addon, "movie", "kitsu:42")

    def test_ignored_for_custom(self) -> None:
        manifest = _make_manifest(id_prefixes=("kitsu",))
        assert is_stream_capable(_make_addon(manifest=manifest), "movie", "tt1")


class TestEligibleForStreams:
    def test_preserves_order_and_filters(self) -> None:
        addons = [
            _make_addon("a"),
            _make_addon("b", enabled=False),
            _make_addon("c"),
        ]
        assert [a.id for a in eligible_for_streams(addons, "movie", "tt1")] == [
            "a",
            "c",
        ]


class TestAltIdScheme:
    def test_kitsu_prefix(self) -> None:
        manifest = _make_manifest(id_prefixes=("tt", "kitsu"))
        assert supports_alt_id_scheme(_make_addon(manifest=manifest))

    @pytest.mark.parametrize(
        "url",
        [
            "https://torrentio.strem.fun/manifest.json",
            "https://aiostreams.example/abc/manifest.json",
            "https://mediafusion.example/manifest.json",
            "https://comet.example/manifest.json",
        ],
    )
    def test_known_provider_urls(self, url: str) -> None:
        assert supports_alt_id_scheme(_make_addon(url=url))

    def test_other_addons(self) -> None:
        assert not supports_alt_id_scheme(_make_addon())
