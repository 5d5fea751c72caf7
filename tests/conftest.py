"""Test configuration and fixtures"""

import json
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from spot_mp3.spotify.models import PlaylistResolution, TrackDescriptor
from spot_mp3.youtube.models import MediaCandidate


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def candidate():
    """A single YouTube search result"""
    return MediaCandidate(
        video_id="FGBhQbmPwH8",
        title="One More Time (Official Video)",
        channel="Daft Punk",
        duration="5:21",
        thumbnail="https://i.ytimg.com/vi/FGBhQbmPwH8/default.jpg",
        url="https://www.youtube.com/watch?v=FGBhQbmPwH8",
    )


@pytest.fixture
def descriptor():
    """Track identity used for tagging"""
    return TrackDescriptor(name="One More Time", artists="Daft Punk")


@pytest.fixture
def sample_playlist():
    """Three-track playlist resolution"""
    return PlaylistResolution(
        playlist_name="My: Playlist/2024*",
        tracks=(
            TrackDescriptor(name="One More Time", artists="Daft Punk"),
            TrackDescriptor(name="Windowlicker", artists="Aphex Twin"),
            TrackDescriptor(name="Teardrop", artists="Massive Attack"),
        ),
        source="api",
    )


@pytest.fixture
def sample_ytmusic_results():
    """Raw ytmusicapi video search results"""
    return [
        {
            "videoId": "FGBhQbmPwH8",
            "title": "One More Time",
            "artists": [{"name": "Daft Punk", "id": "UC_kRDKYrUlrbtrSiyu5Tflg"}],
            "duration": "5:21",
            "thumbnails": [
                {"url": "https://i.ytimg.com/small.jpg", "width": 60},
                {"url": "https://i.ytimg.com/large.jpg", "width": 120},
            ],
        },
        {
            "videoId": None,
            "title": "Broken result",
        },
        {
            "videoId": "A2VpR8HahKc",
            "title": "One More Time (Live)",
            "artists": [],
        },
    ]


@pytest.fixture
def sample_spotify_track():
    """Spotify /tracks object"""
    return {
        "id": "0DiWol3AO6WpXZgp0goxAV",
        "name": "One More Time",
        "artists": [{"id": "4tZwfgrHOc3mvqYlEYSvVi", "name": "Daft Punk"}],
        "album": {"name": "Discovery", "release_date": "2001-03-12"},
        "duration_ms": 320357,
        "popularity": 80,
        "explicit": False,
        "preview_url": None,
        "external_urls": {"spotify": "https://open.spotify.com/track/0DiWol3AO6WpXZgp0goxAV"},
    }


@pytest.fixture
def sample_audio_features():
    """Spotify /audio-features object"""
    return {
        "tempo": 122.749,
        "key": 2,
        "mode": 1,
        "energy": 0.697,
        "danceability": 0.613,
        "valence": 0.476,
        "acousticness": 0.0194,
        "instrumentalness": 0.0,
        "liveness": 0.332,
        "speechiness": 0.133,
        "loudness": -8.618,
        "time_signature": 4,
    }


def _embed_html(title: str, items: list) -> str:
    state = {"entities": {"items": items}}
    return (
        f"<html><head><title>{title}</title></head><body>"
        f"<script>window.__SPOTIFY_INITIAL_STATE__ = {json.dumps(state)};</script>"
        "</body></html>"
    )


def _markup_html(title: str, pairs: list[tuple[str, str]]) -> str:
    entries = ",".join(
        f'{{"name":"{name}","artists":[{{"name":"{artist}"}}]}}' for name, artist in pairs
    )
    return f"<html><head><title>{title}</title></head><body><script>var d=[{entries}];</script></body></html>"


@pytest.fixture
def fake_api():
    """SpotifyApi double with no token"""
    api = Mock()
    api.available = False
    return api


@pytest.fixture
def embed_html():
    """Builder for embed pages carrying the initial state blob"""
    return _embed_html


@pytest.fixture
def markup_html():
    """Builder for pages whose only track data is inline name/artists JSON"""
    return _markup_html
