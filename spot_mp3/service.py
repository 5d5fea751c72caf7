"""
Request/response facade over the download core.

Every public method returns a plain dict with a 'success' key, so any
front end (the CLI, a GUI shell) can use it without handling exceptions:

    search(query)                                  -> results / playlist
    select_folder(path)                            -> folder path
    download_track(candidate, destination)         -> file info
    download_playlist(resolution, destination)     -> batch summary
    get_track_metadata(name, artist)               -> audio features
    set_credentials(client_id, client_secret)      -> token exchange result

Progress for downloads is delivered through the optional callbacks.
"""

from pathlib import Path
from typing import Any

from spot_mp3.core.config import Config
from spot_mp3.core.exceptions import ResolutionError, SpotMp3Error
from spot_mp3.core.logger import get_logger
from spot_mp3.core.progress import PlaylistCallback, TransferCallback
from spot_mp3.download.batch import BatchOrchestrator
from spot_mp3.download.pipeline import TrackDownloader
from spot_mp3.download.tagger import TagWriter
from spot_mp3.download.transcoder import TranscoderBridge
from spot_mp3.spotify.client import SpotifyApi
from spot_mp3.spotify.features import fetch_audio_features
from spot_mp3.spotify.links import classify
from spot_mp3.spotify.models import LinkKind, PlaylistResolution, TrackDescriptor
from spot_mp3.spotify.resolver import MetadataResolver
from spot_mp3.spotify.session import SpotifySession
from spot_mp3.utils import ensure_directory
from spot_mp3.youtube.extractor import StreamExtractor
from spot_mp3.youtube.fallback import FallbackExtractor
from spot_mp3.youtube.models import MediaCandidate
from spot_mp3.youtube.search import YouTubeSearch


logger = get_logger(__name__)


SEARCH_RESULT_LIMIT = 10


class DownloaderService:
    """
    Wire the components together and expose dict-returning operations.

    Use DownloaderService.from_config() for the production wiring; tests
    pass their own collaborators.
    """

    def __init__(
        self,
        config: Config,
        session: SpotifySession,
        resolver: MetadataResolver,
        search: YouTubeSearch,
        downloader: TrackDownloader,
        batch: BatchOrchestrator
    ) -> None:
        self.config = config
        self.session = session
        self.resolver = resolver
        self.youtube = search
        self.downloader = downloader
        self.batch = batch

    @classmethod
    def from_config(cls, config: Config) -> "DownloaderService":
        session = SpotifySession(
            config.spotify.client_id,
            config.spotify.client_secret,
            timeout=config.network.api_timeout,
        )
        api = SpotifyApi(session, timeout=config.network.api_timeout)
        resolver = MetadataResolver(
            api,
            page_timeout=config.network.page_timeout,
            embed_timeout=config.network.embed_timeout,
        )
        search = YouTubeSearch()
        downloader = TrackDownloader(
            extractor=StreamExtractor(),
            transcoder=TranscoderBridge(
                ffmpeg_path=config.download.ffmpeg_path,
                bitrate=config.download.bitrate,
                sample_rate=config.download.sample_rate,
                timeout=config.download.subprocess_timeout,
            ),
            fallback=FallbackExtractor(
                executable=config.download.ytdlp_path,
                timeout=config.download.subprocess_timeout,
            ),
            tagger=TagWriter(),
            feature_provider=lambda name, artist: fetch_audio_features(api, name, artist),
        )
        batch = BatchOrchestrator(
            search,
            downloader,
            pause_seconds=config.download.track_pause,
            candidates_per_track=config.download.candidates_per_track,
        )
        return cls(config, session, resolver, search, downloader, batch)

    # =========================================================================
    # Credentials
    # =========================================================================

    def initialize(self) -> bool:
        """Exchange configured credentials for a token, if any are set."""
        if not self.session.has_credentials:
            logger.info("No Spotify credentials configured, using public pages only")
            return False
        if self.session.refresh() is None:
            logger.warning("Spotify credentials were rejected, using public pages only")
            return False
        logger.info("Spotify API access enabled")
        return True

    def set_credentials(self, client_id: str, client_secret: str) -> dict[str, Any]:
        if not client_id or not client_secret:
            return {"success": False, "error": "Client ID and Client Secret are required"}
        if self.session.configure(client_id, client_secret):
            return {"success": True}
        return {"success": False, "error": "Invalid credentials"}

    # =========================================================================
    # Search
    # =========================================================================

    def search(self, query: str) -> dict[str, Any]:
        """
        Search by free text or Spotify link.

        Track links are resolved to "<artist> - <name>" first (falling back
        to the raw query if resolution fails). Playlist links return the
        resolved playlist, or manual-mode info when it cannot be read.
        """
        link = classify(query)
        search_query = query.strip() if isinstance(query, str) else ""
        resolved_track: TrackDescriptor | None = None

        if link is not None and link.kind is LinkKind.PLAYLIST:
            try:
                playlist = self.resolver.resolve_playlist(link.id)
            except ResolutionError as e:
                logger.warning(e.message)
                return {
                    "success": False,
                    "type": "playlist",
                    "isManualMode": True,
                    "playlistId": link.id,
                    "playlistUrl": link.url,
                    "error": e.message,
                }
            return {"success": True, "type": "playlist", "playlist": playlist.to_dict()}

        if link is not None and link.kind is LinkKind.TRACK:
            try:
                resolved_track = self.resolver.resolve_track(link.id)
                search_query = resolved_track.search_query
                logger.info(f"Resolved Spotify track: {search_query}")
            except ResolutionError as e:
                logger.warning(f"{e.message}; searching the raw link instead")

        if not search_query:
            return {"success": False, "error": "Empty search query"}

        try:
            candidates = self.youtube.search(search_query, limit=SEARCH_RESULT_LIMIT)
        except ResolutionError as e:
            return {"success": False, "error": e.message}

        response: dict[str, Any] = {
            "success": True,
            "type": "search",
            "query": search_query,
            "results": [candidate.to_dict() for candidate in candidates],
        }
        if resolved_track is not None:
            response["track"] = resolved_track.to_dict()
        return response

    # =========================================================================
    # Folders and downloads
    # =========================================================================

    def select_folder(self, path: str | Path | None = None) -> dict[str, Any]:
        """Expand and create a destination folder (default: configured output)."""
        folder = Path(path).expanduser().resolve() if path else self.config.output.directory
        try:
            ensure_directory(folder)
        except OSError as e:
            return {"success": False, "error": f"Cannot use folder {folder}: {e}"}
        return {"success": True, "path": str(folder)}

    def download_track(
        self,
        candidate: MediaCandidate | dict[str, Any],
        destination: str | Path | None = None,
        on_progress: TransferCallback | None = None,
        descriptor: TrackDescriptor | dict[str, Any] | None = None
    ) -> dict[str, Any]:
        if isinstance(candidate, dict):
            candidate = MediaCandidate.from_dict(candidate)
        if isinstance(descriptor, dict):
            descriptor = TrackDescriptor.from_dict(descriptor)

        folder = Path(destination).expanduser() if destination else self.config.output.directory
        outcome = self.downloader.download_track(
            candidate, folder, on_progress=on_progress, descriptor=descriptor
        )
        return outcome.to_dict()

    def download_playlist(
        self,
        resolution: PlaylistResolution | dict[str, Any],
        destination: str | Path | None = None,
        on_playlist_progress: PlaylistCallback | None = None,
        on_track_progress: TransferCallback | None = None
    ) -> dict[str, Any]:
        if isinstance(resolution, dict):
            resolution = PlaylistResolution.from_dict(resolution)

        folder = Path(destination).expanduser() if destination else self.config.output.directory
        try:
            result = self.batch.download_all(
                resolution, folder, on_playlist_progress, on_track_progress
            )
        except (SpotMp3Error, OSError) as e:
            logger.error(f"Playlist download failed: {e}")
            return {"success": False, "error": str(e)}
        return result.to_dict()

    # =========================================================================
    # Metadata
    # =========================================================================

    def get_track_metadata(self, name: str, artist: str) -> dict[str, Any]:
        features = fetch_audio_features(self.resolver.api, name, artist)
        if features is None:
            return {"success": False, "error": "Metadata not found"}
        return {"success": True, "metadata": features.to_dict()}
