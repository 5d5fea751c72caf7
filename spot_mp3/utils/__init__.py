"""
Utility functions for spot-mp3.

    - Filename sanitization for track files and playlist folders
    - Human-readable byte sizes for progress events
    - Directory creation helper

Usage:
    from spot_mp3.utils import sanitize_filename, format_bytes, ensure_directory
"""

import re
from pathlib import Path


MAX_FILENAME_LENGTH = 200

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE_RUN = re.compile(r"\s+")

_BYTE_UNITS = ("Bytes", "KB", "MB", "GB")


def sanitize_filename(name: str) -> str:
    """
    Sanitize a string for use as a file or folder name.

    Args:
        name: The string to sanitize (playlist name, "<channel> - <title>.mp3").

    Returns:
        The name with <>:"/\\|?* removed, whitespace runs collapsed to a
        single space, trimmed and truncated to 200 characters.

    Examples:
        sanitize_filename("My: Playlist/2024*")   # "My Playlist2024"
        sanitize_filename("  AC/DC   -  Back ")   # "ACDC - Back"
    """
    cleaned = _INVALID_FILENAME_CHARS.sub("", name)
    cleaned = _WHITESPACE_RUN.sub(" ", cleaned).strip()
    return cleaned[:MAX_FILENAME_LENGTH]


def format_bytes(size: int | float | None) -> str:
    """
    Format a byte count with base-1024 units and two decimals.

    Examples:
        format_bytes(0)        # "0 Bytes"
        format_bytes(1536)     # "1.5 KB"
        format_bytes(5242880)  # "5 MB"
    """
    if not size:
        return "0 Bytes"

    value = float(size)
    unit_index = 0
    while value >= 1024 and unit_index < len(_BYTE_UNITS) - 1:
        value /= 1024
        unit_index += 1

    # Two decimals, trailing zeros dropped
    return f"{round(value, 2):g} {_BYTE_UNITS[unit_index]}"


def ensure_directory(path: Path) -> Path:
    """
    Ensure a directory exists, creating it and its parents if necessary.

    Returns:
        The same path (for chaining).

    Raises:
        OSError: If the directory cannot be created.
    """
    path.mkdir(parents=True, exist_ok=True)
    return path
