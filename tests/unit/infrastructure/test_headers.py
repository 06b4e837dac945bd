"""Tests for request header extraction, sanitizing and merging."""

from __future__ import annotations

from addonmux.infrastructure.stremio.headers import (
    derive_origin,
    extract_request_headers,
    find_header,
    merge_headers,
    sanitize_headers,
    split_url_and_headers,
)
from addonmux.infrastructure.stremio.payloads import StreamPayload


class TestSanitizeHeaders:
    def test_trims_and_drops_blank_entries(self) -> None:
        result = sanitize_headers({" Referer ": " https://a.example ", "X-Empty": "  ", "": "v"})
        assert result == {"Referer": "https://a.example"}

    def test_drops_crlf_entries(self) -> None:
        result = sanitize_headers({"X-Bad": "a\r\nInjected: 1", "X-Good": "ok"})
        assert result == {"X-Good": "ok"}

    def test_drops_non_ascii_entries(self) -> None:
        result = sanitize_headers({"Referer": "https://exämple.com/", "X-Good": "ok"})
        assert result == {"X-Good": "ok"}

    def test_stringifies_values_and_drops_none(self) -> None:
        assert sanitize_headers({"X-Num": 5, "X-None": None}) == {"X-Num": "5"}

    def test_none_input(self) -> None:
        assert sanitize_headers(None) == {}


class TestMergeHeaders:
    def test_extra_wins(self) -> None:
        merged = merge_headers({"Referer": "a", "Cookie": "c"}, {"Referer": "b"})
        assert merged == {"Referer": "b", "Cookie": "c"}

    def test_both_sides_sanitized(self) -> None:
        assert merge_headers({"A": " "}, {"B": "x\n"}) == {}


class TestExtractRequestHeaders:
    def test_proxy_headers_win_over_hints_over_explicit(self) -> None:
        stream = StreamPayload.model_validate(
            {
                "url": "https://cdn.example/v.mp4",
                "headers": {"Referer": "explicit", "X-Explicit": "1"},
                "behaviorHints": {
                    "headers": {"Referer": "hint", "X-Hint": "1"},
                    "proxyHeaders": {"request": {"Referer": "proxy"}},
                },
            }
        )
        assert extract_request_headers(stream) == {
            "Referer": "proxy",
            "X-Explicit": "1",
            "X-Hint": "1",
        }

    def test_no_headers(self) -> None:
        stream = StreamPayload.model_validate({"url": "https://cdn.example/v.mp4"})
        assert extract_request_headers(stream) == {}


class TestSplitUrlAndHeaders:
    def test_splits_pipe_encoded_headers(self) -> None:
        url, headers = split_url_and_headers(
            "https://cdn.example/v.m3u8|Referer=https%3A%2F%2Fsite.example%2F&User-Agent=Foo"
        )
        assert url == "https://cdn.example/v.m3u8"
        assert headers == {"Referer": "https://site.example/", "User-Agent": "Foo"}

    def test_url_without_pipe_unchanged(self) -> None:
        assert split_url_and_headers("https://cdn.example/v.mp4") == (
            "https://cdn.example/v.mp4",
            {},
        )

    def test_leading_pipe_unchanged(self) -> None:
        assert split_url_and_headers("|Referer=x") == ("|Referer=x", {})

    def test_entries_without_key_are_skipped(self) -> None:
        _, headers = split_url_and_headers("https://a.example/v|=x&novalue&K=v")
        assert headers == {"K": "v"}


class TestDeriveOrigin:
    def test_default_port_omitted(self) -> None:
        assert derive_origin("https://site.example:443/page?x=1") == "https://site.example"

    def test_custom_port_kept(self) -> None:
        assert derive_origin("http://site.example:8080/a") == "http://site.example:8080"

    def test_invalid_referer(self) -> None:
        assert derive_origin("not a url") is None


class TestFindHeader:
    def test_case_insensitive(self) -> None:
        assert find_header({"user-agent": "x"}, "User-Agent") == "x"
        assert find_header({}, "Range") is None
