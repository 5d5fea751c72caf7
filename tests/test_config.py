# tests/test_config.py
"""Test configuration loading"""

from pathlib import Path

import pytest

from spot_mp3.core.config import DownloadConfig, NetworkConfig, default_config, load_config
from spot_mp3.core.exceptions import ConfigError


def write_config(temp_dir, content):
    path = temp_dir / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "SPOT_MP3_OUTPUT_DIR"):
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:
    """Test load_config()"""

    def test_full_file(self, temp_dir):
        path = write_config(temp_dir, f"""
spotify:
  client_id: " abc "
  client_secret: "def"
output:
  directory: "{temp_dir / 'music'}"
download:
  bitrate: "320k"
  track_pause: 0
  candidates_per_track: 5
network:
  page_timeout: 3
""")
        config = load_config(path, use_env=False)

        assert config.spotify.client_id == "abc"
        assert config.spotify.has_credentials
        assert config.output.directory == (temp_dir / "music").resolve()
        assert config.download.bitrate == "320k"
        assert config.download.track_pause == 0.0
        assert config.download.candidates_per_track == 5
        assert config.download.sample_rate == 44100
        assert config.network.page_timeout == 3.0
        assert config.network.embed_timeout == 15.0

    def test_defaults_without_file(self, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)
        config = load_config(use_env=False)

        assert config == default_config()
        assert not config.spotify.has_credentials
        assert config.download == DownloadConfig()
        assert config.network == NetworkConfig()

    def test_empty_file(self, temp_dir):
        config = load_config(write_config(temp_dir, ""), use_env=False)
        assert config.download.bitrate == "192k"

    def test_explicit_missing_file(self, temp_dir):
        with pytest.raises(ConfigError) as exc_info:
            load_config(temp_dir / "nope.yaml")
        assert "not found" in exc_info.value.message

    def test_env_overrides(self, temp_dir, monkeypatch):
        monkeypatch.setenv("SPOTIFY_CLIENT_ID", "env-id")
        monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "env-secret")
        monkeypatch.setenv("SPOT_MP3_OUTPUT_DIR", str(temp_dir / "env-music"))
        path = write_config(temp_dir, "spotify:\n  client_id: file-id\n")

        config = load_config(path)

        assert config.spotify.client_id == "env-id"
        assert config.spotify.client_secret == "env-secret"
        assert config.output.directory == (temp_dir / "env-music").resolve()

    def test_home_is_expanded(self, temp_dir):
        config = load_config(write_config(temp_dir, "output:\n  directory: ~/Music/x\n"), use_env=False)
        assert config.output.directory == (Path.home() / "Music" / "x").resolve()

    @pytest.mark.parametrize("content", [
        "spotify: [1, 2]",
        "- just\n- a list\n",
        "download:\n  bitrate: 192\n",
        "download:\n  bitrate: fast\n",
        "download:\n  sample_rate: -1\n",
        "download:\n  sample_rate: 44.1\n",
        "download:\n  track_pause: -2\n",
        "network:\n  api_timeout: 0\n",
        "output:\n  directory: ''\n",
        "spotify:\n  client_id: 123\n",
        "spotify: {unclosed",
    ])
    def test_invalid(self, temp_dir, content):
        with pytest.raises(ConfigError):
            load_config(write_config(temp_dir, content), use_env=False)
