"""
Spotify Web API client wrapper.

Thin wrapper around spotipy that:
    - Builds a spotipy client from the session's current token per call
    - Retries a call once after refreshing the token on HTTP 401
    - Converts spotipy exceptions to SpotifyError

Usage:
    api = SpotifyApi(session)
    track = api.track("4iV5W9uYEdYUVa79Axb7Rh")
    items = api.playlist_all_items("37i9dQZF1DXcBWIGoYBM5M")
"""

from typing import Any, Callable, TypeVar

import spotipy

from spot_mp3.core.exceptions import SpotifyError
from spot_mp3.core.logger import get_logger
from spot_mp3.spotify.session import SpotifySession


logger = get_logger(__name__)

T = TypeVar("T")


class SpotifyApi:
    """
    Spotify Web API operations used by the resolver and feature lookup.

    Attributes:
        session: Injected SpotifySession providing the bearer token.
        timeout: Request timeout passed to spotipy.
    """

    def __init__(self, session: SpotifySession, timeout: float = 15.0) -> None:
        self.session = session
        self.timeout = timeout

    @property
    def available(self) -> bool:
        """True if a token is held and API calls can be attempted."""
        return self.session.has_token

    def _client(self) -> spotipy.Spotify:
        token = self.session.access_token
        if token is None:
            raise SpotifyError("No Spotify access token", is_auth_error=True)
        return spotipy.Spotify(auth=token, requests_timeout=self.timeout, retries=0)

    def _call(self, description: str, operation: Callable[[spotipy.Spotify], T]) -> T:
        """
        Run an API operation, refreshing the token once on 401.

        Raises:
            SpotifyError: With is_auth_error / is_rate_limit set from the
                          HTTP status.
        """
        try:
            try:
                return operation(self._client())
            except spotipy.SpotifyException as e:
                if e.http_status != 401 or self.session.refresh() is None:
                    raise
                logger.debug(f"Spotify token expired during {description}, retrying")
                return operation(self._client())
        except spotipy.SpotifyException as e:
            if e.http_status == 401:
                raise SpotifyError(
                    f"Spotify rejected the access token while fetching {description}",
                    details={"http_status": 401, "original_error": str(e)},
                    is_auth_error=True
                ) from e
            if e.http_status == 429:
                raise SpotifyError(
                    f"Rate limited while fetching {description}",
                    details={"http_status": 429},
                    is_rate_limit=True
                ) from e
            if e.http_status == 404:
                raise SpotifyError(
                    f"Not found: {description}",
                    details={"http_status": 404}
                ) from e
            raise SpotifyError(
                f"Failed to fetch {description}: {e}",
                details={"http_status": e.http_status, "original_error": str(e)}
            ) from e
        except (OSError, ValueError) as e:
            # requests errors are OSError subclasses; bad JSON is ValueError
            raise SpotifyError(
                f"Failed to fetch {description}: {e}",
                details={"original_error": str(e)}
            ) from e

    def track(self, track_id: str) -> dict[str, Any]:
        result = self._call(f"track {track_id}", lambda sp: sp.track(track_id))
        if not result:
            raise SpotifyError(f"Track not found: {track_id}", details={"track_id": track_id})
        return result

    def playlist(self, playlist_id: str) -> dict[str, Any]:
        result = self._call(
            f"playlist {playlist_id}",
            lambda sp: sp.playlist(playlist_id, fields="id,name,owner(display_name)")
        )
        if not result:
            raise SpotifyError(f"Playlist not found: {playlist_id}", details={"playlist_id": playlist_id})
        return result

    def playlist_all_items(self, playlist_id: str) -> list[dict[str, Any]]:
        """
        Get ALL items of a playlist, following 'next' links.

        Pages are fetched strictly one after another; each page's 'next'
        link gates the following request. Item order is preserved.
        """
        all_items: list[dict[str, Any]] = []
        page = self._call(
            f"playlist items {playlist_id}",
            lambda sp: sp.playlist_items(playlist_id, limit=100, additional_types=("track",))
        )

        while page:
            all_items.extend(page.get("items") or [])
            if page.get("next") is None:
                break
            current = page
            page = self._call(f"playlist items {playlist_id}", lambda sp: sp.next(current))

        return all_items

    def search_track(self, name: str, artist: str) -> dict[str, Any] | None:
        """Return the first track matching name and artist, or None."""
        query = f'track:"{name}" artist:"{artist}"'
        result = self._call(f"search {query}", lambda sp: sp.search(q=query, type="track", limit=1))
        items = ((result or {}).get("tracks") or {}).get("items") or []
        return items[0] if items else None

    def audio_features(self, track_id: str) -> dict[str, Any] | None:
        result = self._call(f"audio features {track_id}", lambda sp: sp.audio_features([track_id]))
        if not result:
            return None
        return result[0]

    def audio_analysis(self, track_id: str) -> dict[str, Any] | None:
        return self._call(f"audio analysis {track_id}", lambda sp: sp.audio_analysis(track_id))

    def artist(self, artist_id: str) -> dict[str, Any] | None:
        return self._call(f"artist {artist_id}", lambda sp: sp.artist(artist_id))
