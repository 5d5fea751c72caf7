"""
Spotify module for spot-mp3.

Everything that turns user input into track identities:
    - links: classify raw input as a track/album/playlist link or search text
    - session / client: client-credentials token and spotipy wrapper
    - scraper / resolver: API-first resolution with a scraping cascade
    - features: audio features used for ID3 tags

Usage:
    from spot_mp3.spotify import classify, MetadataResolver, SpotifyApi, SpotifySession

    session = SpotifySession(client_id, client_secret)
    session.refresh()
    resolver = MetadataResolver(SpotifyApi(session))
    playlist = resolver.resolve_playlist("37i9dQZF1DXcBWIGoYBM5M")
"""

from spot_mp3.spotify.client import SpotifyApi
from spot_mp3.spotify.features import fetch_audio_features
from spot_mp3.spotify.links import classify, is_spotify_link
from spot_mp3.spotify.models import (
    AudioFeatureSet,
    ExternalLink,
    LinkKind,
    PlaylistResolution,
    TrackDescriptor,
)
from spot_mp3.spotify.resolver import MetadataResolver, StrategyResult, run_cascade
from spot_mp3.spotify.scraper import is_valid_track_info
from spot_mp3.spotify.session import SpotifySession, request_access_token

__all__ = [
    "AudioFeatureSet",
    "ExternalLink",
    "LinkKind",
    "MetadataResolver",
    "PlaylistResolution",
    "SpotifyApi",
    "SpotifySession",
    "StrategyResult",
    "TrackDescriptor",
    "classify",
    "fetch_audio_features",
    "is_spotify_link",
    "is_valid_track_info",
    "request_access_token",
    "run_cascade",
]
