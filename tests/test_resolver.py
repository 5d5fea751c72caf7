# tests/test_resolver.py
"""Test metadata resolution cascades"""

from unittest.mock import Mock, patch

import pytest
import requests

from spot_mp3.core.exceptions import ResolutionError, SpotifyError
from spot_mp3.spotify.resolver import (
    PLAYLIST_FAILURE_MESSAGE,
    MetadataResolver,
    StrategyResult,
    default_playlist_name,
    run_cascade,
)

FETCH_PAGE = "spot_mp3.spotify.scraper.fetch_page"

PLAYLIST_ID = "37i9dQZF1DXcBWIGoYBM5M"
EMBED_URL = f"https://open.spotify.com/embed/playlist/{PLAYLIST_ID}"
DIRECT_URL = f"https://open.spotify.com/playlist/{PLAYLIST_ID}"


def pages(mapping):
    """fetch_page side effect serving HTML by URL, failing for anything else"""
    def fetch(url, timeout, http=None):
        if url not in mapping:
            raise requests.ConnectionError(f"no route to {url}")
        value = mapping[url]
        if isinstance(value, Exception):
            raise value
        return value
    return fetch


class TestRunCascade:
    """Test run_cascade()"""

    def test_first_ok_wins(self):
        second = Mock(return_value=StrategyResult.ok("b"))
        third = Mock(return_value=StrategyResult.ok("c"))

        value = run_cascade(
            [("first", lambda: StrategyResult.skip("nothing")), ("second", second), ("third", third)],
            description="thing",
        )

        assert value == "b"
        third.assert_not_called()

    def test_all_fail_lists_reasons(self):
        with pytest.raises(ResolutionError) as exc_info:
            run_cascade(
                [("a", lambda: StrategyResult.skip("no token")), ("b", lambda: StrategyResult.fail("HTTP 500"))],
                description="thing",
            )

        assert exc_info.value.message == "Could not resolve thing (a: no token; b: HTTP 500)"
        assert exc_info.value.details["reasons"] == ["a: no token", "b: HTTP 500"]

    def test_custom_failure_message(self):
        with pytest.raises(ResolutionError) as exc_info:
            run_cascade([("a", lambda: StrategyResult.skip("x"))], "thing", failure_message="Nope")
        assert exc_info.value.message.startswith("Nope (")


class TestResolveTrack:
    """Test track resolution"""

    def test_api_first(self):
        api = Mock()
        api.available = True
        api.track.return_value = {
            "name": "One More Time",
            "artists": [{"name": "Daft Punk"}, {"name": "Romanthony"}],
        }

        with patch(FETCH_PAGE) as fetch:
            track = MetadataResolver(api).resolve_track("abc")

        assert track.name == "One More Time"
        assert track.artists == "Daft Punk, Romanthony"
        assert track.search_query == "Daft Punk, Romanthony - One More Time"
        fetch.assert_not_called()

    def test_page_title_without_token(self, fake_api):
        html = "<title>Windowlicker - song by Aphex Twin | Spotify</title>"
        with patch(FETCH_PAGE, side_effect=pages({"https://open.spotify.com/track/abc": html})):
            track = MetadataResolver(fake_api).resolve_track("abc")

        assert (track.name, track.artists) == ("Windowlicker", "Aphex Twin")
        assert track.search_query == "Aphex Twin - Windowlicker"
        fake_api.track.assert_not_called()

    def test_api_error_falls_back_to_page(self):
        api = Mock()
        api.available = True
        api.track.side_effect = SpotifyError("Rate limited", is_rate_limit=True)
        html = (
            "<title>Spotify</title>"
            '<meta property="og:title" content="Teardrop">'
            '<meta property="og:description" content="Listen to Teardrop by Massive Attack on Spotify.">'
        )

        with patch(FETCH_PAGE, side_effect=pages({"https://open.spotify.com/track/abc": html})):
            track = MetadataResolver(api).resolve_track("abc")

        assert track.search_query == "Massive Attack - Teardrop"

    def test_page_fetched_once(self, fake_api):
        html = '<script type="application/ld+json">{"@type": "MusicRecording", "name": "Xtal", "byArtist": {"name": "Aphex Twin"}}</script>'
        with patch(FETCH_PAGE, return_value=html) as fetch:
            track = MetadataResolver(fake_api).resolve_track("abc")

        assert track.name == "Xtal"
        assert fetch.call_count == 1

    def test_nothing_found(self, fake_api):
        with patch(FETCH_PAGE, side_effect=requests.ConnectionError("offline")):
            with pytest.raises(ResolutionError) as exc_info:
                MetadataResolver(fake_api).resolve_track("abc")

        reasons = exc_info.value.details["reasons"]
        assert reasons[0] == "api: no access token"
        assert len(reasons) == 4


class TestResolvePlaylist:
    """Test playlist resolution"""

    def test_api_with_pagination_order(self):
        api = Mock()
        api.available = True
        api.playlist.return_value = {"id": PLAYLIST_ID, "name": "Trip Hop"}
        api.playlist_all_items.return_value = [
            {"track": {"name": "Teardrop", "artists": [{"name": "Massive Attack"}]}},
            {"track": None},
            {"track": {"name": "Roads", "artists": [{"name": "Portishead"}]}},
        ]

        with patch(FETCH_PAGE) as fetch:
            playlist = MetadataResolver(api).resolve_playlist(PLAYLIST_ID)

        assert playlist.playlist_name == "Trip Hop"
        assert [t.name for t in playlist.tracks] == ["Teardrop", "Roads"]
        assert playlist.tracks[0].search_query == "Massive Attack Teardrop"
        assert playlist.source == "api"
        fetch.assert_not_called()

    def test_empty_api_playlist_tries_scraping(self, embed_html):
        api = Mock()
        api.available = True
        api.playlist.return_value = {"name": "Empty"}
        api.playlist_all_items.return_value = []
        html = embed_html("Chill | Spotify", [{"track": {"name": "Teardrop", "artists": [{"name": "Massive Attack"}]}}])

        with patch(FETCH_PAGE, side_effect=pages({EMBED_URL: html})):
            playlist = MetadataResolver(api).resolve_playlist(PLAYLIST_ID)

        assert playlist.source == "embed_state"
        assert playlist.playlist_name == "Chill"

    def test_embed_markup(self, fake_api, markup_html):
        html = markup_html("Roadtrip | Spotify", [("Teardrop", "Massive Attack"), ("Roads", "Portishead")])
        with patch(FETCH_PAGE, side_effect=pages({EMBED_URL: html})):
            playlist = MetadataResolver(fake_api).resolve_playlist(PLAYLIST_ID)

        assert playlist.source == "embed_markup"
        assert playlist.playlist_name == "Roadtrip"
        assert playlist.total_tracks == 2

    def test_direct_page_only(self, fake_api, markup_html):
        """Embed page unreachable, direct page lists 12 tracks"""
        pairs = [(f"Track Title {chr(65 + i)}", f"Band {chr(65 + i)}") for i in range(12)]
        html = markup_html("Twelve Songs | Spotify", pairs)

        with patch(FETCH_PAGE, side_effect=pages({EMBED_URL: requests.HTTPError("404"), DIRECT_URL: html})):
            playlist = MetadataResolver(fake_api).resolve_playlist(PLAYLIST_ID)

        assert playlist.source == "page_markup"
        assert playlist.total_tracks == 12
        assert [t.name for t in playlist.tracks] == [name for name, _ in pairs]
        assert playlist.playlist_name == "Twelve Songs"

    def test_default_name_without_title(self, fake_api, markup_html):
        html = markup_html("", [("Teardrop", "Massive Attack")]).replace("<title></title>", "")
        with patch(FETCH_PAGE, side_effect=pages({EMBED_URL: html})):
            playlist = MetadataResolver(fake_api).resolve_playlist(PLAYLIST_ID)

        assert playlist.playlist_name == f"Playlist_{PLAYLIST_ID}"

    def test_everything_fails(self, fake_api):
        with patch(FETCH_PAGE, return_value="<html><title>Spotify</title></html>"):
            with pytest.raises(ResolutionError) as exc_info:
                MetadataResolver(fake_api).resolve_playlist(PLAYLIST_ID)

        assert exc_info.value.message.startswith(PLAYLIST_FAILURE_MESSAGE)
        assert len(exc_info.value.details["reasons"]) == 4


def test_default_playlist_name():
    assert default_playlist_name("abc") == "Playlist_abc"
