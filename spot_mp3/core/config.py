"""
Configuration management for spot-mp3.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml, with environment
variable overrides loaded through python-dotenv.

The configuration file contains:
    - Spotify API credentials (optional, enables the API path)
    - Output directory for downloaded files
    - Transcoding and pacing settings
    - Network timeouts for scraping and API calls

Configuration File Location:
    config.yaml is looked up in the current working directory. If it is
    missing, built-in defaults are used (scraping-only mode until
    credentials are configured).

Environment Overrides (also read from a .env file):
    SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET, SPOT_MP3_OUTPUT_DIR

Example config.yaml:
    spotify:
      client_id: "your_client_id_here"
      client_secret: "your_client_secret_here"

    output:
      directory: "~/Music/SpotMP3"

    download:
      bitrate: "192k"
      sample_rate: 44100
      subprocess_timeout: 600
      track_pause: 1.0
      candidates_per_track: 3
      ffmpeg_path: "ffmpeg"
      ytdlp_path: null

    network:
      page_timeout: 10
      embed_timeout: 15
      api_timeout: 15
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from spot_mp3.core.exceptions import ConfigError


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_OUTPUT_DIRECTORY = "~/Music/SpotMP3"

ENV_CLIENT_ID = "SPOTIFY_CLIENT_ID"
ENV_CLIENT_SECRET = "SPOTIFY_CLIENT_SECRET"
ENV_OUTPUT_DIR = "SPOT_MP3_OUTPUT_DIR"

_BITRATE_PATTERN = re.compile(r"^\d+k$")


@dataclass(frozen=True)
class SpotifyConfig:
    """
    Spotify API credentials configuration.

    Both values may be empty: the resolver then runs in scraping-only
    mode and audio features are unavailable.

    Attributes:
        client_id: The Spotify application client ID.
        client_secret: The Spotify application client secret.
    """
    client_id: str = ""
    client_secret: str = ""

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass(frozen=True)
class OutputConfig:
    """
    Output directory configuration.

    Attributes:
        directory: Absolute path used when no destination is given.
                   Created on first download, not at load time.
    """
    directory: Path


@dataclass(frozen=True)
class DownloadConfig:
    """
    Download and transcoding behavior.

    Attributes:
        bitrate: Constant MP3 bitrate passed to ffmpeg (e.g. "192k").
        sample_rate: Output sample rate in Hz.
        subprocess_timeout: Seconds before ffmpeg or yt-dlp is killed.
        track_pause: Seconds to wait between playlist tracks.
        candidates_per_track: Search results requested per playlist track.
        ffmpeg_path: ffmpeg executable name or path.
        ytdlp_path: Explicit yt-dlp executable, or None to probe common
                    install locations.
    """
    bitrate: str = "192k"
    sample_rate: int = 44100
    subprocess_timeout: float = 600.0
    track_pause: float = 1.0
    candidates_per_track: int = 3
    ffmpeg_path: str = "ffmpeg"
    ytdlp_path: str | None = None


@dataclass(frozen=True)
class NetworkConfig:
    """
    Request timeouts in seconds.

    Attributes:
        page_timeout: Public track page fetch.
        embed_timeout: Playlist embed page and direct page fetches.
        api_timeout: Spotify Web API and token endpoint requests.
    """
    page_timeout: float = 10.0
    embed_timeout: float = 15.0
    api_timeout: float = 15.0


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable.

    Example:
        config = load_config()
        print(f"Saving to: {config.output.directory}")
    """
    spotify: SpotifyConfig
    output: OutputConfig
    download: DownloadConfig
    network: NetworkConfig


def default_config() -> Config:
    """Build a Config made only of defaults (no file, no environment)."""
    return Config(
        spotify=SpotifyConfig(),
        output=OutputConfig(directory=Path(DEFAULT_OUTPUT_DIRECTORY).expanduser().resolve()),
        download=DownloadConfig(),
        network=NetworkConfig(),
    )


def load_config(config_path: Path | None = None, use_env: bool = True) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in the current working
                     directory and falls back to defaults when absent.
        use_env: Apply SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET /
                 SPOT_MP3_OUTPUT_DIR overrides (after loading .env).

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit config file is not found, the YAML is
                     invalid, the document is not a mapping, or a field has
                     an invalid value.
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    raw_config: dict[str, Any] = {}

    if config_path.exists():
        raw_config = _read_config_file(config_path)
    elif explicit:
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    _validate_config(raw_config)

    spotify_section = dict(raw_config.get("spotify") or {})
    output_section = dict(raw_config.get("output") or {})

    if use_env:
        load_dotenv()
        if os.getenv(ENV_CLIENT_ID):
            spotify_section["client_id"] = os.getenv(ENV_CLIENT_ID)
        if os.getenv(ENV_CLIENT_SECRET):
            spotify_section["client_secret"] = os.getenv(ENV_CLIENT_SECRET)
        if os.getenv(ENV_OUTPUT_DIR):
            output_section["directory"] = os.getenv(ENV_OUTPUT_DIR)

    return Config(
        spotify=_parse_spotify_config(spotify_section),
        output=_parse_output_config(output_section),
        download=_parse_download_config(raw_config.get("download")),
        network=_parse_network_config(raw_config.get("network")),
    )


def _read_config_file(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except IOError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file is the same as no file
    if raw_config is None:
        return {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return raw_config


def _validate_config(raw_config: dict[str, Any]) -> None:
    """
    Validate that every present section is a dictionary.

    Raises:
        ConfigError: If a known section has a non-mapping value.
    """
    for section in ("spotify", "output", "download", "network"):
        value = raw_config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )


def _parse_spotify_config(spotify_section: dict[str, Any]) -> SpotifyConfig:
    client_id = spotify_section.get("client_id") or ""
    client_secret = spotify_section.get("client_secret") or ""

    for field_name, value in (("client_id", client_id), ("client_secret", client_secret)):
        if not isinstance(value, str):
            raise ConfigError(
                f"'spotify.{field_name}' must be a string",
                details={"field": f"spotify.{field_name}"}
            )

    return SpotifyConfig(
        client_id=client_id.strip(),
        client_secret=client_secret.strip()
    )


def _parse_output_config(output_section: dict[str, Any]) -> OutputConfig:
    """
    Parse the output section, expanding ~ and making the path absolute.

    Does NOT create the directory (that happens at download time).
    """
    directory = output_section.get("directory", DEFAULT_OUTPUT_DIRECTORY)

    if not isinstance(directory, str) or not directory.strip():
        raise ConfigError(
            "'output.directory' must be a non-empty string",
            details={"field": "output.directory"}
        )

    return OutputConfig(directory=Path(directory.strip()).expanduser().resolve())


def _parse_download_config(download_section: dict[str, Any] | None) -> DownloadConfig:
    """
    Parse the download section, applying defaults for missing fields.

    Raises:
        ConfigError: If a numeric field is not positive or the bitrate
                     is not of the form "<digits>k".
    """
    defaults = DownloadConfig()
    if not download_section:
        return defaults

    bitrate = download_section.get("bitrate", defaults.bitrate)
    if not isinstance(bitrate, str) or not _BITRATE_PATTERN.match(bitrate):
        raise ConfigError(
            "'download.bitrate' must look like '192k'",
            details={"field": "download.bitrate", "value": bitrate}
        )

    sample_rate = _positive_number(download_section, "download", "sample_rate", defaults.sample_rate, int)
    timeout = _positive_number(download_section, "download", "subprocess_timeout", defaults.subprocess_timeout, float)
    candidates = _positive_number(download_section, "download", "candidates_per_track", defaults.candidates_per_track, int)

    track_pause = download_section.get("track_pause", defaults.track_pause)
    if isinstance(track_pause, bool) or not isinstance(track_pause, (int, float)) or track_pause < 0:
        raise ConfigError(
            "'download.track_pause' must be a non-negative number",
            details={"field": "download.track_pause", "value": track_pause}
        )

    ffmpeg_path = download_section.get("ffmpeg_path") or defaults.ffmpeg_path
    ytdlp_path = download_section.get("ytdlp_path")
    if ytdlp_path is not None and not isinstance(ytdlp_path, str):
        raise ConfigError(
            "'download.ytdlp_path' must be a string path or null",
            details={"field": "download.ytdlp_path"}
        )

    return DownloadConfig(
        bitrate=bitrate,
        sample_rate=sample_rate,
        subprocess_timeout=timeout,
        track_pause=float(track_pause),
        candidates_per_track=candidates,
        ffmpeg_path=str(ffmpeg_path),
        ytdlp_path=ytdlp_path,
    )


def _parse_network_config(network_section: dict[str, Any] | None) -> NetworkConfig:
    defaults = NetworkConfig()
    if not network_section:
        return defaults

    return NetworkConfig(
        page_timeout=_positive_number(network_section, "network", "page_timeout", defaults.page_timeout, float),
        embed_timeout=_positive_number(network_section, "network", "embed_timeout", defaults.embed_timeout, float),
        api_timeout=_positive_number(network_section, "network", "api_timeout", defaults.api_timeout, float),
    )


def _positive_number(section: dict[str, Any], section_name: str, key: str, default, cast):
    value = section.get(key)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(
            f"'{section_name}.{key}' must be a positive number",
            details={"field": f"{section_name}.{key}", "value": value}
        )
    if cast is int and not isinstance(value, int):
        raise ConfigError(
            f"'{section_name}.{key}' must be an integer",
            details={"field": f"{section_name}.{key}", "value": value}
        )
    return cast(value)
