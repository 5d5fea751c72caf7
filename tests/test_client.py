# tests/test_client.py
"""Test the Spotify Web API wrapper"""

from unittest.mock import Mock, patch

import pytest
import spotipy

from spot_mp3.core.exceptions import SpotifyError
from spot_mp3.spotify.client import SpotifyApi
from spot_mp3.spotify.session import SpotifySession


def http_error(status):
    return spotipy.SpotifyException(status, -1, f"HTTP {status}")


@pytest.fixture
def session():
    session = SpotifySession("id", "secret", access_token="tok")
    session.refresh = Mock(return_value="tok-2")
    return session


class TestSpotifyApi:
    """Test SpotifyApi"""

    def test_unavailable_without_token(self):
        api = SpotifyApi(SpotifySession())
        assert not api.available
        with pytest.raises(SpotifyError) as exc_info:
            api.track("abc")
        assert exc_info.value.is_auth_error

    @patch("spot_mp3.spotify.client.spotipy.Spotify")
    def test_track(self, mock_spotify, session):
        mock_spotify.return_value.track.return_value = {"name": "Teardrop"}

        assert SpotifyApi(session).track("abc") == {"name": "Teardrop"}
        mock_spotify.assert_called_with(auth="tok", requests_timeout=15.0, retries=0)

    @patch("spot_mp3.spotify.client.spotipy.Spotify")
    def test_refresh_on_401(self, mock_spotify, session):
        mock_spotify.return_value.track.side_effect = [http_error(401), {"name": "Teardrop"}]

        assert SpotifyApi(session).track("abc") == {"name": "Teardrop"}
        session.refresh.assert_called_once()

    @patch("spot_mp3.spotify.client.spotipy.Spotify")
    def test_second_401_is_auth_error(self, mock_spotify, session):
        mock_spotify.return_value.track.side_effect = [http_error(401), http_error(401)]

        with pytest.raises(SpotifyError) as exc_info:
            SpotifyApi(session).track("abc")
        assert exc_info.value.is_auth_error

    @patch("spot_mp3.spotify.client.spotipy.Spotify")
    def test_rate_limit(self, mock_spotify, session):
        mock_spotify.return_value.track.side_effect = http_error(429)

        with pytest.raises(SpotifyError) as exc_info:
            SpotifyApi(session).track("abc")
        assert exc_info.value.is_rate_limit
        session.refresh.assert_not_called()

    @patch("spot_mp3.spotify.client.spotipy.Spotify")
    def test_not_found(self, mock_spotify, session):
        mock_spotify.return_value.playlist.side_effect = http_error(404)

        with pytest.raises(SpotifyError) as exc_info:
            SpotifyApi(session).playlist("abc")
        assert "Not found" in exc_info.value.message

    @patch("spot_mp3.spotify.client.spotipy.Spotify")
    def test_playlist_pagination(self, mock_spotify, session):
        client = mock_spotify.return_value
        first = {"items": [{"track": {"name": "A"}}], "next": "page-2"}
        second = {"items": [{"track": {"name": "B"}}], "next": "page-3"}
        third = {"items": [{"track": {"name": "C"}}], "next": None}
        client.playlist_items.return_value = first
        client.next.side_effect = [second, third]

        items = SpotifyApi(session).playlist_all_items("abc")

        assert [item["track"]["name"] for item in items] == ["A", "B", "C"]
        assert client.next.call_args_list[0].args == (first,)
        assert client.next.call_args_list[1].args == (second,)

    @patch("spot_mp3.spotify.client.spotipy.Spotify")
    def test_search_track(self, mock_spotify, session):
        client = mock_spotify.return_value
        client.search.return_value = {"tracks": {"items": [{"id": "t1"}]}}

        assert SpotifyApi(session).search_track("Teardrop", "Massive Attack") == {"id": "t1"}
        client.search.assert_called_once_with(
            q='track:"Teardrop" artist:"Massive Attack"', type="track", limit=1
        )

    @patch("spot_mp3.spotify.client.spotipy.Spotify")
    def test_search_no_match(self, mock_spotify, session):
        mock_spotify.return_value.search.return_value = {"tracks": {"items": []}}
        assert SpotifyApi(session).search_track("x", "y") is None

    @patch("spot_mp3.spotify.client.spotipy.Spotify")
    def test_audio_features(self, mock_spotify, session):
        mock_spotify.return_value.audio_features.return_value = [{"tempo": 120.0}]
        assert SpotifyApi(session).audio_features("t1") == {"tempo": 120.0}

    @patch("spot_mp3.spotify.client.spotipy.Spotify")
    def test_network_error(self, mock_spotify, session):
        mock_spotify.return_value.track.side_effect = ConnectionError("offline")

        with pytest.raises(SpotifyError):
            SpotifyApi(session).track("abc")
