"""
YouTube search adapter.

Maps a free-text query to MediaCandidate objects using ytmusicapi's
video search. Results are returned in the provider's order; nothing is
filtered or re-ranked here.
"""

from ytmusicapi import YTMusic

from spot_mp3.core.exceptions import ResolutionError
from spot_mp3.core.logger import get_logger
from spot_mp3.youtube.models import MediaCandidate


logger = get_logger(__name__)


class YouTubeSearch:
    """
    Search YouTube videos through the YouTube Music API.

    The YTMusic client is created lazily on first use (it performs no
    authentication; language is fixed to English).
    """

    def __init__(self, ytmusic: YTMusic | None = None) -> None:
        self._ytmusic = ytmusic

    @property
    def ytmusic(self) -> YTMusic:
        if self._ytmusic is None:
            self._ytmusic = YTMusic(language="en")
        return self._ytmusic

    def search(self, query: str, limit: int = 10) -> list[MediaCandidate]:
        """
        Search for videos matching a query.

        Args:
            query: Free-text search, e.g. "Daft Punk - One More Time".
            limit: Maximum number of candidates returned.

        Returns:
            Candidates in provider order (at most `limit`).

        Raises:
            ResolutionError: If the provider call fails.
        """
        try:
            raw_results = self.ytmusic.search(query, filter="videos", limit=limit)
        except Exception as e:
            raise ResolutionError(
                f"YouTube search failed: {e}",
                details={"query": query, "original_error": str(e)}
            ) from e

        candidates = [
            MediaCandidate.from_ytmusic_result(result)
            for result in raw_results or []
            if result.get("videoId")
        ][:limit]

        logger.debug(f"YouTube search '{query}': {len(candidates)} results")
        return candidates
