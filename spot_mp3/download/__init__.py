"""
Download module for spot-mp3.

    - transcoder: ffmpeg bridge turning a raw audio stream into a 192k MP3
    - tagger: ID3 tags with audio features for DJ software
    - pipeline: single-track download with the yt-dlp fallback
    - batch: sequential playlist download with per-track accounting
"""

from spot_mp3.download.batch import BatchOrchestrator, BatchResult
from spot_mp3.download.pipeline import DownloadOutcome, TrackDownloader
from spot_mp3.download.tagger import TagWriter
from spot_mp3.download.transcoder import TranscoderBridge

__all__ = [
    "BatchOrchestrator",
    "BatchResult",
    "DownloadOutcome",
    "TagWriter",
    "TrackDownloader",
    "TranscoderBridge",
]
