"""
Single-track download pipeline.

    MediaCandidate
        -> StreamExtractor (best audio-only stream)
        -> TranscoderBridge (ffmpeg, 192k MP3)
        -> TagWriter (when the track identity is known)

If the primary extraction fails, or the stream breaks mid-transfer, the
whole track is retried once with the yt-dlp command-line fallback.

Every failure is converted to DownloadOutcome(success=False, error=...)
at this boundary; nothing raises past download_track().
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from spot_mp3.core.exceptions import ExtractionError, SpotMp3Error, SubprocessError
from spot_mp3.core.logger import get_logger
from spot_mp3.core.progress import MonotonicProgress, TransferCallback
from spot_mp3.download.tagger import TagWriter
from spot_mp3.download.transcoder import TranscoderBridge
from spot_mp3.spotify.models import AudioFeatureSet, TrackDescriptor
from spot_mp3.utils import ensure_directory, format_bytes, sanitize_filename
from spot_mp3.youtube.extractor import StreamExtractor
from spot_mp3.youtube.fallback import FallbackExtractor
from spot_mp3.youtube.models import MediaCandidate


logger = get_logger(__name__)


FILE_EXISTS_ERROR = "File already exists in the destination folder"

FeatureProvider = Callable[[str, str], AudioFeatureSet | None]


@dataclass(frozen=True)
class DownloadOutcome:
    """
    Terminal result of one track's pipeline run.

    Attributes:
        success: True if an MP3 file was produced.
        file_path: Path of the MP3 on success.
        error: Failure reason otherwise.
        size: Humanized file size on success.
        tagged: True if ID3 tags were written.
    """
    success: bool
    file_path: Path | None = None
    error: str | None = None
    size: str | None = None
    tagged: bool = False

    @classmethod
    def failed(cls, error: str) -> "DownloadOutcome":
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "filePath": str(self.file_path),
            "fileName": self.file_path.name,
            "size": self.size,
            "tagged": self.tagged,
        }


def track_filename(candidate: MediaCandidate) -> str:
    return sanitize_filename(f"{candidate.channel} - {candidate.title}.mp3")


class TrackDownloader:
    """
    Run the full pipeline for one MediaCandidate.

    Attributes:
        extractor: Primary stream extractor.
        transcoder: ffmpeg bridge.
        fallback: yt-dlp command-line fallback.
        tagger: ID3 tag writer.
        feature_provider: (name, artist) -> AudioFeatureSet | None, or None
                          to tag without audio features.
    """

    def __init__(
        self,
        extractor: StreamExtractor,
        transcoder: TranscoderBridge,
        fallback: FallbackExtractor,
        tagger: TagWriter | None = None,
        feature_provider: FeatureProvider | None = None
    ) -> None:
        self.extractor = extractor
        self.transcoder = transcoder
        self.fallback = fallback
        self.tagger = tagger or TagWriter()
        self.feature_provider = feature_provider

    def download_track(
        self,
        candidate: MediaCandidate,
        destination: Path,
        progress_id: str | None = None,
        on_progress: TransferCallback | None = None,
        descriptor: TrackDescriptor | None = None
    ) -> DownloadOutcome:
        """
        Download, transcode and tag one track.

        Args:
            candidate: The YouTube video to download.
            destination: Folder for the MP3 (created if missing).
            progress_id: Id put on progress events (defaults to video id).
            on_progress: Receives TransferProgress events.
            descriptor: Track identity; when given, tags are written.

        Returns:
            DownloadOutcome. An existing target file is a failure and is
            left untouched.
        """
        reporter = MonotonicProgress(progress_id or candidate.video_id, on_progress)

        try:
            ensure_directory(destination)
        except OSError as e:
            return DownloadOutcome.failed(f"Cannot create destination folder: {e}")

        output_path = destination / track_filename(candidate)
        if output_path.exists():
            logger.warning(f"Skipping '{output_path.name}': already exists")
            return DownloadOutcome.failed(FILE_EXISTS_ERROR)

        logger.info(f"Downloading: {candidate.channel} - {candidate.title}")

        try:
            self._download_audio(candidate, output_path, reporter)
        except SpotMp3Error as e:
            logger.error(f"Download failed for '{candidate.title}': {e.message}")
            return DownloadOutcome.failed(e.message)
        except OSError as e:
            logger.error(f"Download failed for '{candidate.title}': {e}")
            return DownloadOutcome.failed(str(e))

        if not output_path.exists():
            return DownloadOutcome.failed("Download finished but the MP3 file is missing")

        size = format_bytes(output_path.stat().st_size)
        tagged = self._apply_tags(output_path, descriptor) if descriptor else False
        reporter.finish(size, size)

        logger.info(f"Saved {output_path.name} ({size})")
        return DownloadOutcome(success=True, file_path=output_path, size=size, tagged=tagged)

    def _download_audio(self, candidate: MediaCandidate, output_path: Path, reporter: MonotonicProgress) -> Path:
        try:
            stream = self.extractor.extract_audio_stream(candidate.url)
        except ExtractionError as e:
            return self._run_fallback(candidate, output_path, reporter, e)

        try:
            return self.transcoder.transcode(stream, output_path, reporter.report)
        except ExtractionError as e:
            # stream broke mid-transfer
            return self._run_fallback(candidate, output_path, reporter, e)

    def _run_fallback(
        self,
        candidate: MediaCandidate,
        output_path: Path,
        reporter: MonotonicProgress,
        cause: ExtractionError
    ) -> Path:
        logger.warning(f"Primary extraction failed ({cause.message}), trying yt-dlp fallback")
        try:
            return self.fallback.download(
                candidate.url,
                output_path,
                lambda percent: reporter.report(percent, "Downloading...", "Unknown"),
            )
        except SubprocessError as e:
            raise type(e)(
                f"{cause.message} | {e.message}",
                details={**e.details, "primary_error": cause.message},
                exit_code=e.exit_code
            ) from e

    def _apply_tags(self, output_path: Path, descriptor: TrackDescriptor) -> bool:
        features = None
        if self.feature_provider is not None:
            features = self.feature_provider(descriptor.name, descriptor.artists)
            if features is None:
                logger.debug(f"No audio features for '{descriptor.artists} - {descriptor.name}'")
        return self.tagger.write_tags(output_path, features, descriptor)
