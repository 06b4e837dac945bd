"""Tests for the lenient addon wire payload models."""

from __future__ import annotations

from addonmux.domain.entities.addon import AddonResource
from addonmux.infrastructure.stremio.payloads import (
    ManifestPayload,
    StreamPayload,
    parse_streams,
    parse_subtitles,
)

_MANIFEST = {
    "id": "org.example.addon",
    "name": "Example",
    "version": "2.1.0",
    "description": "Streams",
    "types": ["movie", "series"],
    "resources": [
        "catalog",
        {"name": "stream", "types": ["movie"], "idPrefixes": ["tt"]},
        {"types": ["movie"]},
    ],
    "catalogs": [
        {
            "type": "movie",
            "id": "top",
            "name": "Top",
            "extra": [{"name": "skip", "isRequired": False}],
        }
    ],
    "idPrefixes": ["tt", "kitsu"],
    "behaviorHints": {"p2p": True, "configurable": True},
    "unknownField": {"ignored": True},
}


class TestManifestPayload:
    def test_to_manifest_maps_resources(self) -> None:
        manifest = ManifestPayload.model_validate(_MANIFEST).to_manifest()
        # Resource without a name is dropped.
        assert manifest.resources == (
            AddonResource(name="catalog"),
            AddonResource(name="stream", types=("movie",), id_prefixes=("tt",)),
        )
        assert manifest.id_prefixes == ("tt", "kitsu")
        assert manifest.types == ("movie", "series")

    def test_to_manifest_maps_catalogs_and_hints(self) -> None:
        manifest = ManifestPayload.model_validate(_MANIFEST).to_manifest()
        catalog = manifest.catalogs[0]
        assert catalog.id == "top"
        assert catalog.extra is not None
        assert catalog.extra[0].name == "skip"
        assert manifest.behavior_hints is not None
        assert manifest.behavior_hints.p2p
        assert not manifest.behavior_hints.adult

    def test_non_list_prefixes_are_ignored(self) -> None:
        data = {**_MANIFEST, "idPrefixes": "tt"}
        assert ManifestPayload.model_validate(data).to_manifest().id_prefixes is None


class TestStreamPayload:
    def test_lenient_scalars(self) -> None:
        stream = StreamPayload.model_validate(
            {
                "url": "https://cdn.example/v.mp4",
                "fileIdx": "3",
                "name": {"nested": True},
                "behaviorHints": {"videoSize": "abc", "filename": 42},
            }
        )
        assert stream.file_idx == 3
        assert stream.name is None
        assert stream.behavior_hints is not None
        assert stream.behavior_hints.video_size is None
        assert stream.behavior_hints.filename == "42"

    def test_non_dict_behavior_hints_dropped(self) -> None:
        stream = StreamPayload.model_validate({"infoHash": "abc", "behaviorHints": "junk"})
        assert stream.behavior_hints is None

    def test_playable_link(self) -> None:
        assert StreamPayload.model_validate({"ytId": "abc"}).has_playable_link()
        assert StreamPayload.model_validate({"externalUrl": "https://x"}).has_playable_link()
        assert not StreamPayload.model_validate({"name": "x"}).has_playable_link()

    def test_stream_url_falls_back_to_external_url(self) -> None:
        stream = StreamPayload.model_validate({"externalUrl": "https://x.example/page"})
        assert stream.stream_url() == "https://x.example/page"


class TestParseStreams:
    def test_malformed_items_are_dropped(self) -> None:
        body = {
            "streams": [
                {"url": "https://cdn.example/a.mp4"},
                "not-a-dict",
                {"url": "https://cdn.example/b.mp4", "behaviorHints": {"cached": "maybe"}},
                {"infoHash": "abcdef"},
            ]
        }
        streams = parse_streams(body)
        assert [s.url for s in streams] == ["https://cdn.example/a.mp4", None]
        assert streams[1].info_hash == "abcdef"

    def test_unexpected_body_shapes(self) -> None:
        assert parse_streams(None) == []
        assert parse_streams([]) == []
        assert parse_streams({"streams": "nope"}) == []


class TestParseSubtitles:
    def test_parses_entries(self) -> None:
        subs = parse_subtitles(
            {"subtitles": [{"id": 7, "url": "https://s.example/a.srt", "lang": "eng"}]}
        )
        assert subs[0].id == "7"
        assert subs[0].lang == "eng"
        assert subs[0].label is None
