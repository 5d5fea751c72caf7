"""
Audio feature lookup for ID3 tagging.

Finds a track on Spotify by name and artist, then collects its audio
features, audio analysis and primary artist genres into an
AudioFeatureSet. Each secondary lookup is allowed to fail on its own.
"""

from typing import Any, Callable

from spot_mp3.core.exceptions import SpotifyError
from spot_mp3.core.logger import get_logger
from spot_mp3.spotify.client import SpotifyApi
from spot_mp3.spotify.models import AudioFeatureSet


logger = get_logger(__name__)


def _optional(description: str, fetch: Callable[[], Any]) -> Any:
    try:
        return fetch()
    except SpotifyError as e:
        logger.debug(f"Could not fetch {description}: {e.message}")
        return None


def fetch_audio_features(api: SpotifyApi, name: str, artist: str) -> AudioFeatureSet | None:
    """
    Look up audio features for a track.

    Args:
        api: Spotify API wrapper (its session may hold no token).
        name: Track title.
        artist: Artist name(s).

    Returns:
        AudioFeatureSet, or None if no token is held, the search found
        nothing, or the search itself failed.
    """
    if not api.available:
        logger.debug("No Spotify token, skipping audio features")
        return None

    try:
        track = api.search_track(name, artist)
    except SpotifyError as e:
        logger.warning(f"Spotify search failed for '{artist} - {name}': {e.message}")
        return None

    if not track:
        logger.debug(f"No Spotify match for '{artist} - {name}'")
        return None

    track_id = track.get("id")
    features = _optional("audio features", lambda: api.audio_features(track_id))
    analysis = _optional("audio analysis", lambda: api.audio_analysis(track_id))

    genres = None
    artists = track.get("artists") or []
    if artists and artists[0].get("id"):
        artist_data = _optional("artist genres", lambda: api.artist(artists[0]["id"]))
        if artist_data:
            genres = artist_data.get("genres")

    feature_set = AudioFeatureSet.from_spotify_data(track, features, analysis, genres)
    logger.debug(
        f"Audio features for '{artist} - {name}': "
        f"BPM {feature_set.bpm}, key {feature_set.key}"
    )
    return feature_set
