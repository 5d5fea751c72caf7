# tests/test_features.py
"""Test audio feature lookup"""

from unittest.mock import Mock

from spot_mp3.core.exceptions import SpotifyError
from spot_mp3.spotify.features import fetch_audio_features


def available_api(track):
    api = Mock()
    api.available = True
    api.search_track.return_value = track
    return api


class TestFetchAudioFeatures:
    """Test fetch_audio_features()"""

    def test_no_token(self, fake_api):
        assert fetch_audio_features(fake_api, "Teardrop", "Massive Attack") is None
        fake_api.search_track.assert_not_called()

    def test_no_match(self):
        assert fetch_audio_features(available_api(None), "x", "y") is None

    def test_search_failure(self):
        api = available_api(None)
        api.search_track.side_effect = SpotifyError("Rate limited", is_rate_limit=True)
        assert fetch_audio_features(api, "x", "y") is None

    def test_full_lookup(self, sample_spotify_track, sample_audio_features):
        api = available_api(sample_spotify_track)
        api.audio_features.return_value = sample_audio_features
        api.audio_analysis.return_value = {"sections": [{}, {}], "bars": [], "beats": [], "tatums": []}
        api.artist.return_value = {"genres": ["french house"]}

        features = fetch_audio_features(api, "One More Time", "Daft Punk")

        assert features.bpm == 123
        assert features.key == "D major"
        assert features.sections == 2
        assert features.genres == ("french house",)
        api.artist.assert_called_once_with("4tZwfgrHOc3mvqYlEYSvVi")

    def test_secondary_failures_are_tolerated(self, sample_spotify_track):
        api = available_api(sample_spotify_track)
        api.audio_features.side_effect = SpotifyError("Not found: audio features")
        api.audio_analysis.side_effect = SpotifyError("Not found: audio analysis")
        api.artist.side_effect = SpotifyError("Rate limited")

        features = fetch_audio_features(api, "One More Time", "Daft Punk")

        assert features.bpm is None
        assert features.key is None
        assert features.album == "Discovery"
        assert features.genres == ()
