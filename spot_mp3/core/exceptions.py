"""
Exception classes for spot-mp3.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message plus an optional details
dictionary for logging.

Exception Hierarchy:
    SpotMp3Error (base)
        ConfigError - Configuration file issues
        SpotifyError - Spotify Web API issues
        ResolutionError - Metadata or search resolution failed
        ExtractionError - Primary audio stream extraction failed
            StreamInterruptedError - Stream broke mid-transfer
        SubprocessError - ffmpeg or yt-dlp exited nonzero / could not spawn
            DownloadTimeoutError - Stream or subprocess exceeded its budget
        TagWriteError - ID3 tag writing failed

A link that does not match any known shape is NOT an error: the classifier
returns None and the input is treated as search text.
"""


class SpotMp3Error(Exception):
    """
    Base exception for all spot-mp3 errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (URLs, ids, codes).

    Example:
        try:
            resolver.resolve_track(track_id)
        except SpotMp3Error as e:
            logger.error(f"Operation failed: {e.message}")
            logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description shown to the user.
            details: Optional dictionary containing additional context.
                     Common keys: 'url', 'track_id', 'original_error'.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(SpotMp3Error):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - An explicitly given config file does not exist
        - config.yaml has invalid YAML syntax
        - Invalid field values (e.g., negative timeout)
    """
    pass


class SpotifyError(SpotMp3Error):
    """
    Raised when there's an issue with the Spotify Web API.

    Callers inside the resolver treat this as a reason to fall back to
    scraping; it is never fatal on its own.

    Attributes:
        is_auth_error: True if no token is held or the token was rejected.
        is_rate_limit: True if Spotify answered 429.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        is_auth_error: bool = False,
        is_rate_limit: bool = False
    ) -> None:
        """
        Initialize Spotify error with additional flags.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context.
            is_auth_error: Set to True for missing or rejected credentials.
            is_rate_limit: Set to True for HTTP 429 responses.
        """
        super().__init__(message, details)
        self.is_auth_error = is_auth_error
        self.is_rate_limit = is_rate_limit


class ResolutionError(SpotMp3Error):
    """
    Raised when a track, playlist or search query cannot be resolved.

    The message carries the upstream failure reason. For cascaded
    resolution it aggregates the reason of every strategy tried.

    Example:
        raise ResolutionError(
            "Could not resolve track 4iV5W9uYEdYUVa79Axb7Rh",
            details={'reasons': ['api: no access token', 'page_title: no match']}
        )
    """
    pass


class ExtractionError(SpotMp3Error):
    """
    Raised when the primary audio stream extraction fails.

    Never surfaced to the user directly: the download pipeline reacts
    by running the yt-dlp command-line fallback.
    """
    pass


class StreamInterruptedError(ExtractionError):
    """Raised when an opened audio stream fails mid-transfer."""
    pass


class SubprocessError(SpotMp3Error):
    """
    Raised when ffmpeg or the yt-dlp tool fails.

    Attributes:
        exit_code: The process exit code, or None if it could not spawn.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        exit_code: int | None = None
    ) -> None:
        super().__init__(message, details)
        self.exit_code = exit_code


class DownloadTimeoutError(SubprocessError):
    """Raised when a stream or subprocess exceeds its time budget."""
    pass


class TagWriteError(SpotMp3Error):
    """
    Raised when ID3 tags cannot be written to an MP3 file.

    The tag writer catches this internally and returns False; the audio
    file is kept without full tags.
    """
    pass
