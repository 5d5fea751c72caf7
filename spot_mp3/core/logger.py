"""
Logging configuration for spot-mp3.

This module sets up the logging system with multiple outputs:
    - Console: Colored messages written through tqdm.write
    - log_full_<ts>.log: Complete log of all events (DEBUG and above)
    - log_errors_<ts>.log: Only ERROR and CRITICAL level messages
    - download_failures_<ts>.log: Tracks that could not be downloaded

Log File Locations:
    All log files are created in <output_dir>/logs, one set per run.

Usage:
    from spot_mp3.core.logger import setup_logging, get_logger

    setup_logging(output_dir)  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


# Log file name prefixes (created in output_dir/logs)
LOG_FULL_FILENAME = "log_full"
LOG_ERRORS_FILENAME = "log_errors"
DOWNLOAD_FAILURES_FILENAME = "download_failures"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("urllib3", "spotipy", "ytmusicapi", "yt_dlp")


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that colors the level name for console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        return f"{color}{record.levelname}{Colors.RESET}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to the console without breaking progress bars.

    Messages go through tqdm.write(), which prints above any active bar
    instead of tearing it apart.
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class DownloadFailedTrackHandler(logging.Handler):
    """
    Handler that collects failed downloads into a plain report file.

    Only records carrying the 'download_failed_track_name' extra are
    written, in the form:

        Artist Name - Song Title
        Reason: Not found on YouTube
        https://open.spotify.com/track/xxxxx

    Use log_download_failure() to emit such records.
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "download_failed_track_name"):
            return

        if self.report_file is None:
            return

        try:
            track_name = getattr(record, "download_failed_track_name", "Unknown")
            artist = getattr(record, "download_failed_track_artist", "Unknown")
            reason = getattr(record, "download_failed_reason", "")
            url = getattr(record, "download_failed_source_url", None)

            self.report_file.write(f"{artist} - {track_name}\n")
            self.report_file.write(f"Reason: {reason}\n")
            if url:
                self.report_file.write(f"{url}\n")
            self.report_file.write("\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            self.report_file.close()
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """Filter that only allows ERROR and CRITICAL level records."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(output_dir: Path, verbose: bool = False) -> Path:
    """
    Configure the logging system for the application.

    This function should be called ONCE at application startup, after
    the configuration is loaded but before any other operations.

    Args:
        output_dir: Directory where log files will be created.
                    Logs are stored in a 'logs' subdirectory.
        verbose: If True, the console shows DEBUG messages too.

    Returns:
        Path to the logs directory used for this run.

    Behavior:
        1. Create output_dir/logs if it doesn't exist
        2. Configure root logger level to DEBUG
        3. Console handler (TqdmLoggingHandler, colored, INFO or DEBUG)
        4. Full log file handler (DEBUG)
        5. Error log file handler (ERROR+ via ErrorOnlyFilter)
        6. Download failure report handler
        7. Quiet down third-party loggers
    """
    logs_dir = output_dir / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    full_log_path = logs_dir / f"{LOG_FULL_FILENAME}_{timestamp}.log"
    full_handler = logging.FileHandler(full_log_path, mode="w", encoding="utf-8")
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_log_path = logs_dir / f"{LOG_ERRORS_FILENAME}_{timestamp}.log"
    error_handler = logging.FileHandler(error_log_path, mode="w", encoding="utf-8")
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    failures_path = logs_dir / f"{DOWNLOAD_FAILURES_FILENAME}_{timestamp}.log"
    failures_handler = DownloadFailedTrackHandler(failures_path)
    failures_handler.open()
    root_logger.addHandler(failures_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logs_dir


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Note:
        Loggers obtained before setup_logging() is called have no handlers
        of their own and propagate to whatever the root logger has.
    """
    return logging.getLogger(name)


def log_download_failure(
    logger: logging.Logger,
    track_name: str,
    artist: str,
    error_message: str,
    source_url: str | None = None
) -> None:
    """
    Log a track whose download failed.

    Logs an ERROR message and attaches the extra fields that
    DownloadFailedTrackHandler writes to download_failures_<ts>.log.

    Example:
        log_download_failure(
            logger,
            track_name="Song Title",
            artist="Artist Name",
            error_message="Not found on YouTube",
        )
    """
    logger.error(
        f"Download failed: {artist} - {track_name}: {error_message}",
        extra={
            "download_failed_track_name": track_name,
            "download_failed_track_artist": artist,
            "download_failed_reason": error_message,
            "download_failed_source_url": source_url,
        }
    )


def shutdown_logging() -> None:
    """
    Flush, close and detach every root handler.

    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        handler.flush()
        handler.close()
        root_logger.removeHandler(handler)
