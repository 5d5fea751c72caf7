"""
Sequential playlist download.

For each track, in playlist order:
    1. Emit a PlaylistProgress event
    2. Search YouTube (top 3) and take the first result
    3. Run the single-track pipeline into the playlist folder
    4. Record success or failure
    5. Pause before the next track

Tracks are processed one at a time. A failure in one track, including an
unexpected exception, is recorded and never stops the batch.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from spot_mp3.core.exceptions import SpotMp3Error
from spot_mp3.core.logger import get_logger, log_download_failure
from spot_mp3.core.progress import PlaylistCallback, PlaylistProgress, TransferCallback
from spot_mp3.download.pipeline import TrackDownloader
from spot_mp3.spotify.models import PlaylistResolution, TrackDescriptor
from spot_mp3.utils import ensure_directory, sanitize_filename
from spot_mp3.youtube.search import YouTubeSearch


logger = get_logger(__name__)


NOT_FOUND_ERROR = "Not found on YouTube"
DEFAULT_FOLDER_NAME = "Playlist"


@dataclass
class BatchResult:
    """
    Accumulated result of a playlist download.

    Attributes:
        playlist_name: Sanitized playlist (folder) name.
        total_tracks: Number of tracks attempted.
        downloaded: Successful downloads.
        failed: Failed downloads.
        errors: "<name> - <artist>: <reason>" per failure, in order.
        folder: Folder the files were written to.
    """
    playlist_name: str
    total_tracks: int
    downloaded: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    folder: Path | None = None

    def record_success(self) -> None:
        self.downloaded += 1

    def record_failure(self, track: TrackDescriptor, reason: str) -> None:
        self.failed += 1
        self.errors.append(f"{track.name} - {track.artists}: {reason}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "playlistName": self.playlist_name,
            "totalTracks": self.total_tracks,
            "downloaded": self.downloaded,
            "failed": self.failed,
            "errors": list(self.errors),
            "folder": str(self.folder) if self.folder else None,
        }


class BatchOrchestrator:
    """
    Download every track of a resolved playlist, one after another.

    Attributes:
        search: YouTube search adapter.
        downloader: Single-track pipeline.
        pause_seconds: Fixed pause between tracks.
        candidates_per_track: Search results requested per track.
    """

    def __init__(
        self,
        search: YouTubeSearch,
        downloader: TrackDownloader,
        pause_seconds: float = 1.0,
        candidates_per_track: int = 3,
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        self.search = search
        self.downloader = downloader
        self.pause_seconds = pause_seconds
        self.candidates_per_track = candidates_per_track
        self._sleep = sleep

    def download_all(
        self,
        resolution: PlaylistResolution,
        destination: Path,
        on_playlist_progress: PlaylistCallback | None = None,
        on_track_progress: TransferCallback | None = None
    ) -> BatchResult:
        """
        Download all tracks of a playlist into destination/<playlist name>.

        Returns:
            BatchResult once every track has been attempted.
        """
        folder_name = sanitize_filename(resolution.playlist_name) or DEFAULT_FOLDER_NAME
        folder = ensure_directory(Path(destination) / folder_name)

        total = resolution.total_tracks
        result = BatchResult(playlist_name=folder_name, total_tracks=total, folder=folder)

        logger.info("=" * 60)
        logger.info(f"Downloading playlist '{resolution.playlist_name}' ({total} tracks)")
        logger.info("=" * 60)

        for index, track in enumerate(resolution.tracks):
            if index > 0 and self.pause_seconds > 0:
                self._sleep(self.pause_seconds)

            try:
                if on_playlist_progress is not None:
                    on_playlist_progress(PlaylistProgress(
                        current=index + 1,
                        total=total,
                        track_name=track.name,
                        artist=track.artists,
                        percent=round((index + 1) / total * 100),
                    ))

                reason = self._download_one(index, track, folder, on_track_progress)
            except Exception as e:
                logger.exception(f"Unexpected error while downloading '{track.name}'")
                reason = e.message if isinstance(e, SpotMp3Error) else str(e)

            if reason is None:
                result.record_success()
            else:
                result.record_failure(track, reason)
                log_download_failure(logger, track.name, track.artists, reason)

        logger.info("-" * 60)
        logger.info(
            f"Playlist complete: {result.downloaded} downloaded, "
            f"{result.failed} failed of {total}"
        )
        return result

    def _download_one(
        self,
        index: int,
        track: TrackDescriptor,
        folder: Path,
        on_track_progress: TransferCallback | None
    ) -> str | None:
        """Return None on success, the failure reason otherwise."""
        candidates = self.search.search(track.search_query, limit=self.candidates_per_track)
        if not candidates:
            return NOT_FOUND_ERROR

        best = candidates[0]
        logger.debug(f"Matched '{track.artists} - {track.name}' -> {best.url}")

        outcome = self.downloader.download_track(
            best,
            folder,
            progress_id=f"playlist-{index}",
            on_progress=on_track_progress,
            descriptor=track,
        )
        return None if outcome.success else outcome.error
