"""Tests for the ARM/Kitsu anime episode mapper."""

from __future__ import annotations

import httpx
import pytest
import respx

from addonmux.infrastructure.anime.arm_mapper import ArmAnimeMapper

_ARM = "https://arm.haglund.dev/api/v2/themoviedb"
_KITSU = "https://kitsu.io/api/edge/anime"


def _kitsu_body(count: int | None) -> dict:
    return {"data": {"id": "1", "attributes": {"episodeCount": count}}}


@pytest.fixture()
def mapper() -> ArmAnimeMapper:
    return ArmAnimeMapper(httpx.AsyncClient())


async def _resolve(
    mapper: ArmAnimeMapper,
    season: int,
    episode: int,
    tmdb_id: int | None = 37854,
) -> str | None:
    return await mapper.resolve_anime_episode_query(
        tmdb_id=tmdb_id,
        tvdb_id=None,
        title="Some Show",
        imdb_id="tt0388629",
        season=season,
        episode=episode,
    )


class TestIsAnimeContent:
    def test_japanese_animation(self, mapper: ArmAnimeMapper) -> None:
        assert mapper.is_anime_content(1, (16, 10759), "ja")

    def test_other_language(self, mapper: ArmAnimeMapper) -> None:
        assert not mapper.is_anime_content(1, (16,), "en")

    def test_no_animation_genre(self, mapper: ArmAnimeMapper) -> None:
        assert not mapper.is_anime_content(1, (18,), "ja")


class TestResolveAnimeEpisodeQuery:
    @respx.mock
    async def test_single_entry(self, mapper: ArmAnimeMapper) -> None:
        arm = respx.get(url__startswith=_ARM).mock(
            return_value=httpx.Response(200, json=[{"kitsu": 100, "anilist": 5}])
        )
        respx.get(f"{_KITSU}/100").mock(
            return_value=httpx.Response(200, json=_kitsu_body(12))
        )

        assert await _resolve(mapper, 1, 5) == "kitsu:100:5"
        assert arm.calls.last.request.url.params["id"] == "37854"

    @respx.mock
    async def test_merged_season_walks_entries(self, mapper: ArmAnimeMapper) -> None:
        respx.get(url__startswith=_ARM).mock(
            return_value=httpx.Response(200, json=[{"kitsu": 100}, {"kitsu": 200}])
        )
        respx.get(f"{_KITSU}/100").mock(
            return_value=httpx.Response(200, json=_kitsu_body(12))
        )
        respx.get(f"{_KITSU}/200").mock(
            return_value=httpx.Response(200, json=_kitsu_body(13))
        )

        assert await _resolve(mapper, 1, 15) == "kitsu:200:3"

    @respx.mock
    async def test_unknown_counts_assume_one_cour(self, mapper: ArmAnimeMapper) -> None:
        respx.get(url__startswith=_ARM).mock(
            return_value=httpx.Response(200, json=[{"kitsu": 1}, {"kitsu": 2}])
        )
        respx.get(url__startswith=_KITSU).mock(return_value=httpx.Response(404))

        assert await _resolve(mapper, 1, 14) == "kitsu:2:2"

    @respx.mock
    async def test_later_season_uses_matching_entry(
        self, mapper: ArmAnimeMapper
    ) -> None:
        respx.get(url__startswith=_ARM).mock(
            return_value=httpx.Response(200, json=[{"kitsu": 100}, {"kitsu": 200}])
        )
        respx.get(f"{_KITSU}/200").mock(
            return_value=httpx.Response(200, json=_kitsu_body(24))
        )

        assert await _resolve(mapper, 2, 4) == "kitsu:200:4"

    @respx.mock
    async def test_not_found_falls_back_to_imdb(self, mapper: ArmAnimeMapper) -> None:
        respx.get(url__startswith=_ARM).mock(return_value=httpx.Response(404))

        assert await _resolve(mapper, 1, 5) == "tt0388629:1:5"

    @respx.mock
    async def test_server_error_falls_back_to_imdb(
        self, mapper: ArmAnimeMapper
    ) -> None:
        respx.get(url__startswith=_ARM).mock(return_value=httpx.Response(503))

        assert await _resolve(mapper, 2, 1) == "tt0388629:2:1"

    async def test_no_tmdb_id(self, mapper: ArmAnimeMapper) -> None:
        assert await _resolve(mapper, 1, 1, tmdb_id=None) == "tt0388629:1:1"

    @respx.mock
    async def test_mapping_is_cached(self, mapper: ArmAnimeMapper) -> None:
        arm = respx.get(url__startswith=_ARM).mock(
            return_value=httpx.Response(200, json=[{"kitsu": 100}])
        )
        kitsu = respx.get(f"{_KITSU}/100").mock(
            return_value=httpx.Response(200, json=_kitsu_body(12))
        )

        await _resolve(mapper, 1, 1)
        await _resolve(mapper, 1, 2)

        assert arm.call_count == 1
        assert kitsu.call_count == 1
