# tests/test_cli.py
"""Test the command-line interface"""

from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from spot_mp3.cli import cli
from spot_mp3.core.exceptions import SpotifyError
from spot_mp3.spotify.models import PlaylistResolution, TrackDescriptor


@pytest.fixture
def service():
    return Mock()


@pytest.fixture
def run(service, temp_dir, monkeypatch):
    monkeypatch.chdir(temp_dir)
    for name in ("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "SPOT_MP3_OUTPUT_DIR"):
        monkeypatch.delenv(name, raising=False)

    def invoke(*args):
        with patch("spot_mp3.cli.DownloaderService.from_config", return_value=service), \
                patch("spot_mp3.cli.setup_logging"):
            return CliRunner().invoke(cli, list(args))

    return invoke


class TestCli:
    """Test CLI commands and exit codes"""

    def test_search(self, run, service, candidate):
        service.search.return_value = {
            "success": True, "type": "search", "query": "daft punk", "results": [candidate.to_dict()]
        }

        result = run("search", "daft punk")

        assert result.exit_code == 0
        assert "Daft Punk - One More Time (Official Video) [5:21]" in result.output
        service.initialize.assert_called_once()

    def test_search_playlist_link(self, run, service, sample_playlist):
        service.search.return_value = {"success": True, "type": "playlist", "playlist": sample_playlist.to_dict()}

        result = run("search", "https://open.spotify.com/playlist/abc")

        assert result.exit_code == 0
        assert "Aphex Twin - Windowlicker" in result.output

    def test_download_pick(self, run, service, candidate, temp_dir):
        other = dict(candidate.to_dict(), id="other", url="https://www.youtube.com/watch?v=other")
        service.search.return_value = {
            "success": True, "type": "search", "query": "q", "results": [candidate.to_dict(), other]
        }
        service.select_folder.return_value = {"success": True, "path": str(temp_dir)}
        service.download_track.return_value = {
            "success": True, "filePath": str(temp_dir / "x.mp3"), "fileName": "x.mp3", "size": "3 MB", "tagged": False
        }

        result = run("download", "q", "--pick", "2", "--output", str(temp_dir))

        assert result.exit_code == 0
        assert service.download_track.call_args.args[0] == other

    def test_download_failure(self, run, service, candidate, temp_dir):
        service.search.return_value = {"success": True, "type": "search", "query": "q", "results": [candidate.to_dict()]}
        service.select_folder.return_value = {"success": True, "path": str(temp_dir)}
        service.download_track.return_value = {"success": False, "error": "File already exists in the destination folder"}

        result = run("download", "q")

        assert result.exit_code == 4

    def test_playlist(self, run, service, temp_dir):
        resolution = PlaylistResolution("Mix", (TrackDescriptor("Roads", "Portishead"),))
        service.resolver.resolve_playlist.return_value = resolution
        service.select_folder.return_value = {"success": True, "path": str(temp_dir)}
        service.download_playlist.return_value = {
            "success": True, "playlistName": "Mix", "totalTracks": 1,
            "downloaded": 1, "failed": 0, "errors": [], "folder": str(temp_dir / "Mix"),
        }

        result = run("playlist", "https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M")

        assert result.exit_code == 0
        service.resolver.resolve_playlist.assert_called_once_with("37i9dQZF1DXcBWIGoYBM5M")

    def test_playlist_rejects_track_link(self, run, service):
        result = run("playlist", "https://open.spotify.com/track/abc")
        assert result.exit_code == 2

    def test_spotify_error_exit_code(self, run, service):
        service.get_track_metadata.side_effect = SpotifyError("Spotify rejected the access token", is_auth_error=True)

        result = run("metadata", "Teardrop", "Massive Attack")

        assert result.exit_code == 3

    def test_metadata(self, run, service):
        service.get_track_metadata.return_value = {"success": True, "metadata": {"bpm": 77, "key": None, "genres": []}}

        result = run("metadata", "Teardrop", "Massive Attack")

        assert result.exit_code == 0
        assert "bpm: 77" in result.output
        assert "key" not in result.output

    def test_invalid_config_exit_code(self, run, temp_dir):
        config = temp_dir / "bad.yaml"
        config.write_text("download:\n  bitrate: fast\n", encoding="utf-8")

        result = run("--config", str(config), "search", "x")

        assert result.exit_code == 1

    def test_keyboard_interrupt(self, run, service):
        service.search.side_effect = KeyboardInterrupt()
        assert run("search", "x").exit_code == 130
