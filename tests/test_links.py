# tests/test_links.py
"""Test Spotify link classification"""

import pytest

from spot_mp3.spotify.links import classify, is_spotify_link
from spot_mp3.spotify.models import ExternalLink, LinkKind


class TestClassify:
    """Test classify()"""

    @pytest.mark.parametrize("query, kind, entity_id", [
        ("https://open.spotify.com/track/4iV5W9uYEdYUVa79Axb7Rh", LinkKind.TRACK, "4iV5W9uYEdYUVa79Axb7Rh"),
        ("https://open.spotify.com/album/1ATL5GLyefJaxhQzSPVrLX?si=abc", LinkKind.ALBUM, "1ATL5GLyefJaxhQzSPVrLX"),
        ("http://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M", LinkKind.PLAYLIST, "37i9dQZF1DXcBWIGoYBM5M"),
        ("https://open.spotify.com/intl-it/playlist/37i9dQZF1DXcBWIGoYBM5M?si=x", LinkKind.PLAYLIST, "37i9dQZF1DXcBWIGoYBM5M"),
        ("https://open.spotify.com/intl-pt-BR/track/abc123", LinkKind.TRACK, "abc123"),
        ("spotify:track:4iV5W9uYEdYUVa79Axb7Rh", LinkKind.TRACK, "4iV5W9uYEdYUVa79Axb7Rh"),
        ("spotify:playlist:37i9dQZF1DXcBWIGoYBM5M", LinkKind.PLAYLIST, "37i9dQZF1DXcBWIGoYBM5M"),
        ("  spotify:album:1ATL5GLyefJaxhQzSPVrLX  ", LinkKind.ALBUM, "1ATL5GLyefJaxhQzSPVrLX"),
    ])
    def test_links(self, query, kind, entity_id):
        """Known link shapes are classified with kind and id"""
        assert classify(query) == ExternalLink(kind, entity_id)

    @pytest.mark.parametrize("query", [
        "daft punk one more time",
        "",
        "https://www.youtube.com/watch?v=FGBhQbmPwH8",
        "https://open.spotify.com/artist/4tZwfgrHOc3mvqYlEYSvVi",
        "spotify:episode:123",
        "see https://open.spotify.com/track/abc",
    ])
    def test_plain_text(self, query):
        """Anything else is search text"""
        assert classify(query) is None

    def test_non_string_never_raises(self):
        assert classify(None) is None
        assert classify(42) is None

    def test_is_spotify_link(self):
        assert is_spotify_link("spotify:track:abc")
        assert not is_spotify_link("abc")


class TestExternalLink:
    """Test link URLs"""

    def test_urls(self):
        link = ExternalLink(LinkKind.PLAYLIST, "37i9dQZF1DXcBWIGoYBM5M")
        assert link.url == "https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M"
        assert link.embed_url == "https://open.spotify.com/embed/playlist/37i9dQZF1DXcBWIGoYBM5M"
