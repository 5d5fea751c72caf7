"""
YouTube module for spot-mp3.

    - search: free-text query -> MediaCandidate list (ytmusicapi)
    - extractor: best audio-only stream via the yt-dlp Python API
    - fallback: yt-dlp command-line download when the stream path fails
"""

from spot_mp3.youtube.extractor import StreamExtractor, select_audio_format
from spot_mp3.youtube.fallback import FallbackExtractor, parse_stderr_line, parse_stdout_line
from spot_mp3.youtube.models import AudioEncoding, AudioStreamHandle, MediaCandidate
from spot_mp3.youtube.search import YouTubeSearch

__all__ = [
    "AudioEncoding",
    "AudioStreamHandle",
    "FallbackExtractor",
    "MediaCandidate",
    "StreamExtractor",
    "YouTubeSearch",
    "parse_stderr_line",
    "parse_stdout_line",
    "select_audio_format",
]
