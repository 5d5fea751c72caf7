"""
Primary audio stream extraction.

Fetches the format list of a YouTube video with the yt-dlp Python API
(no download), keeps the audio-only formats, picks the one with the
highest declared bitrate and opens it as an HTTP byte stream.

Every failure is raised as ExtractionError. The download pipeline
answers that by running the command-line fallback (youtube/fallback.py).
"""

from typing import Any

import requests
from yt_dlp import YoutubeDL

from spot_mp3.core.exceptions import ExtractionError
from spot_mp3.core.logger import get_logger
from spot_mp3.utils.http import MEDIA_HEADERS
from spot_mp3.youtube.models import AudioEncoding, AudioStreamHandle


logger = get_logger(__name__)


class YtDlpSilentLogger:
    """
    Logger for yt-dlp that keeps its output off the console.

    yt-dlp prints some errors to stderr even with quiet=True. Messages are
    forwarded to our debug log and the last error is kept for reporting.
    """

    def __init__(self) -> None:
        self.last_error: str | None = None

    def debug(self, msg: str) -> None:
        pass

    def info(self, msg: str) -> None:
        pass

    def warning(self, msg: str) -> None:
        logger.debug(f"yt-dlp: {msg}")

    def error(self, msg: str) -> None:
        self.last_error = msg
        logger.debug(f"yt-dlp: {msg}")


def is_audio_only(fmt: dict[str, Any]) -> bool:
    """True for formats with an audio codec and no video track."""
    return (
        fmt.get("vcodec") == "none"
        and fmt.get("acodec") not in (None, "none")
        and bool(fmt.get("url"))
    )


def select_audio_format(formats: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Pick the audio-only format with the highest declared bitrate.

    Ties keep the first format encountered.

    Raises:
        ExtractionError: If no audio-only format exists.
    """
    best: dict[str, Any] | None = None
    best_bitrate = -1.0

    for fmt in formats:
        if not is_audio_only(fmt):
            continue
        bitrate = float(fmt.get("abr") or 0)
        if bitrate > best_bitrate:
            best = fmt
            best_bitrate = bitrate

    if best is None:
        raise ExtractionError("No audio formats available")

    return best


class StreamExtractor:
    """
    Open the best audio-only stream of a YouTube video.

    Attributes:
        timeout: Timeout for opening and reading the media stream.
    """

    def __init__(self, timeout: float = 30.0, http: requests.Session | None = None) -> None:
        self.timeout = timeout
        self._http = http or requests.Session()

    def _get_yt_dlp_options(self, yt_logger: YtDlpSilentLogger) -> dict[str, Any]:
        return {
            "quiet": True,
            "no_warnings": True,
            "noprogress": True,
            "noplaylist": True,
            "skip_download": True,
            "http_headers": dict(MEDIA_HEADERS),
            "logger": yt_logger,
        }

    def fetch_info(self, media_url: str) -> dict[str, Any]:
        """
        Fetch video info (including the format list) without downloading.

        Raises:
            ExtractionError: If yt-dlp fails or returns nothing.
        """
        yt_logger = YtDlpSilentLogger()
        try:
            with YoutubeDL(self._get_yt_dlp_options(yt_logger)) as ydl:
                info = ydl.extract_info(media_url, download=False)
        except Exception as e:
            raise ExtractionError(
                f"Could not fetch media info: {yt_logger.last_error or e}",
                details={"url": media_url, "original_error": str(e)}
            ) from e

        if not info:
            raise ExtractionError("yt-dlp returned no info", details={"url": media_url})

        return info

    def extract_audio_stream(self, media_url: str) -> AudioStreamHandle:
        """
        Select the best audio-only encoding and open it.

        Args:
            media_url: YouTube watch URL.

        Returns:
            AudioStreamHandle ready to be consumed by the transcoder.

        Raises:
            ExtractionError: On info fetch failure, when no audio-only
                             format exists, or when the stream cannot be
                             opened.
        """
        info = self.fetch_info(media_url)
        encoding = AudioEncoding.from_format(select_audio_format(info.get("formats") or []))

        logger.debug(
            f"Selected format {encoding.format_id} "
            f"({encoding.container}, {encoding.bitrate:.0f} kbps) for {media_url}"
        )

        headers = {**MEDIA_HEADERS, **encoding.http_headers}
        try:
            response = self._http.get(encoding.url, headers=headers, stream=True, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ExtractionError(
                f"Could not open audio stream: {e}",
                details={"url": media_url, "format_id": encoding.format_id}
            ) from e

        return AudioStreamHandle(encoding, response)
