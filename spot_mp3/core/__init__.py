"""
Core module for spot-mp3.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with multiple outputs
    - progress: Progress events and Rich progress bars

Usage:
    from spot_mp3.core import (
        Config, load_config,
        setup_logging, get_logger,
        SpotMp3Error, ConfigError
    )
"""

from spot_mp3.core.config import (
    Config,
    DownloadConfig,
    NetworkConfig,
    OutputConfig,
    SpotifyConfig,
    default_config,
    load_config,
)
from spot_mp3.core.exceptions import (
    ConfigError,
    DownloadTimeoutError,
    ExtractionError,
    ResolutionError,
    SpotifyError,
    SpotMp3Error,
    StreamInterruptedError,
    SubprocessError,
    TagWriteError,
)
from spot_mp3.core.logger import (
    get_logger,
    log_download_failure,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "SpotifyConfig",
    "OutputConfig",
    "DownloadConfig",
    "NetworkConfig",
    "default_config",
    "load_config",
    # Exceptions
    "SpotMp3Error",
    "ConfigError",
    "SpotifyError",
    "ResolutionError",
    "ExtractionError",
    "StreamInterruptedError",
    "SubprocessError",
    "DownloadTimeoutError",
    "TagWriteError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_download_failure",
    "shutdown_logging",
]
