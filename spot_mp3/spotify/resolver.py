"""
Metadata resolution for Spotify tracks and playlists.

Resolution is a cascade of strategies tried in order. Each strategy
returns a StrategyResult:

    StrategyResult.ok(value)     - resolved, stop here
    StrategyResult.skip(reason)  - not applicable (e.g. no token, nothing found)
    StrategyResult.fail(reason)  - attempted and errored

run_cascade() stops at the first ok result and otherwise raises a
ResolutionError whose message lists every reason.

Track cascade:     api -> page_title -> open_graph -> json_ld
Playlist cascade:  api -> embed_state -> embed_markup -> page_markup
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Sequence, TypeVar

import requests
from bs4 import BeautifulSoup

from spot_mp3.core.exceptions import ResolutionError, SpotifyError
from spot_mp3.core.logger import get_logger
from spot_mp3.spotify import scraper
from spot_mp3.spotify.client import SpotifyApi
from spot_mp3.spotify.models import ExternalLink, LinkKind, PlaylistResolution, TrackDescriptor


logger = get_logger(__name__)

T = TypeVar("T")

PLAYLIST_FAILURE_MESSAGE = (
    "Could not extract playlist tracks. "
    "The playlist may be private, empty, or require authentication."
)


class StrategyStatus(str, Enum):
    OK = "ok"
    SKIP = "skip"
    FAIL = "fail"


@dataclass(frozen=True)
class StrategyResult(Generic[T]):
    """Tagged outcome of one resolution strategy."""
    status: StrategyStatus
    value: T | None = None
    reason: str = ""

    @classmethod
    def ok(cls, value: T) -> "StrategyResult[T]":
        return cls(StrategyStatus.OK, value=value)

    @classmethod
    def skip(cls, reason: str) -> "StrategyResult[T]":
        return cls(StrategyStatus.SKIP, reason=reason)

    @classmethod
    def fail(cls, reason: str) -> "StrategyResult[T]":
        return cls(StrategyStatus.FAIL, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status is StrategyStatus.OK


Strategy = tuple[str, Callable[[], StrategyResult[T]]]


def run_cascade(strategies: Sequence[Strategy], description: str, failure_message: str | None = None) -> T:
    """
    Try strategies in order and return the first ok value.

    Args:
        strategies: (name, callable) pairs. Callables return a StrategyResult.
        description: What is being resolved, for logs and the error.
        failure_message: Message of the final error; defaults to
                         "Could not resolve <description>".

    Raises:
        ResolutionError: If no strategy returned ok. The message ends with
                         every "<name>: <reason>" and details['reasons']
                         holds them as a list.
    """
    reasons: list[str] = []

    for name, strategy in strategies:
        result = strategy()
        if result.is_ok:
            logger.debug(f"Resolved {description} via '{name}'")
            return result.value
        logger.debug(f"Strategy '{name}' for {description}: {result.status.value} ({result.reason})")
        reasons.append(f"{name}: {result.reason}")

    message = failure_message or f"Could not resolve {description}"
    raise ResolutionError(
        f"{message} ({'; '.join(reasons)})",
        details={"reasons": reasons}
    )


class _PageCache:
    """Fetch a page at most once; remember either its HTML or the error."""

    def __init__(self, url: str, timeout: float, http: requests.Session | None) -> None:
        self.url = url
        self._timeout = timeout
        self._http = http
        self._fetched = False
        self._html: str | None = None
        self._soup: BeautifulSoup | None = None
        self.error: str | None = None

    def html(self) -> str | None:
        if not self._fetched:
            self._fetched = True
            try:
                self._html = scraper.fetch_page(self.url, self._timeout, self._http)
            except requests.RequestException as e:
                self.error = f"HTTP request failed: {e}"
                logger.debug(f"Fetching {self.url} failed: {e}")
        return self._html

    def soup(self) -> BeautifulSoup | None:
        if self._soup is None and self.html() is not None:
            self._soup = scraper.parse_html(self._html)
        return self._soup

    @property
    def fetched(self) -> bool:
        return self._html is not None


class MetadataResolver:
    """
    Resolve Spotify links to TrackDescriptor / PlaylistResolution.

    Attributes:
        api: Spotify API wrapper; its session decides whether the API
             strategies run or skip.
        page_timeout: Timeout for the public track page.
        embed_timeout: Timeout for the playlist embed and direct pages.
    """

    def __init__(
        self,
        api: SpotifyApi,
        page_timeout: float = 10.0,
        embed_timeout: float = 15.0,
        http: requests.Session | None = None
    ) -> None:
        self.api = api
        self.page_timeout = page_timeout
        self.embed_timeout = embed_timeout
        self._http = http

    # =========================================================================
    # Tracks
    # =========================================================================

    def resolve_track(self, track_id: str) -> TrackDescriptor:
        """
        Resolve a track id to its name and artists.

        The returned descriptor's search query is "<artist> - <name>".

        Raises:
            ResolutionError: If neither the API nor any page strategy
                             produced both a name and an artist.
        """
        link = ExternalLink(LinkKind.TRACK, track_id)
        page = _PageCache(link.url, self.page_timeout, self._http)

        def from_page(extract: Callable[[BeautifulSoup], tuple[str, str]]) -> Callable[[], StrategyResult]:
            def strategy() -> StrategyResult[TrackDescriptor]:
                soup = page.soup()
                if soup is None:
                    return StrategyResult.fail(page.error or "page unavailable")
                name, artist = extract(soup)
                if not name or not artist:
                    return StrategyResult.skip("no name/artist found")
                return StrategyResult.ok(_track_descriptor(name, artist))
            return strategy

        return run_cascade(
            [
                ("api", lambda: self._track_from_api(track_id)),
                ("page_title", from_page(scraper.track_from_page_title)),
                ("open_graph", from_page(scraper.track_from_open_graph)),
                ("json_ld", from_page(scraper.track_from_json_ld)),
            ],
            description=f"track {track_id}",
        )

    def _track_from_api(self, track_id: str) -> StrategyResult[TrackDescriptor]:
        if not self.api.available:
            return StrategyResult.skip("no access token")
        try:
            data = self.api.track(track_id)
        except SpotifyError as e:
            return StrategyResult.fail(e.message)

        name = data.get("name")
        artists = ", ".join(a.get("name", "") for a in data.get("artists") or [] if a.get("name"))
        if not name or not artists:
            return StrategyResult.skip("API response without name/artists")
        return StrategyResult.ok(_track_descriptor(name, artists))

    # =========================================================================
    # Playlists
    # =========================================================================

    def resolve_playlist(self, playlist_id: str) -> PlaylistResolution:
        """
        Resolve a playlist id to its name and ordered track list.

        Raises:
            ResolutionError: If every strategy produced zero tracks.
        """
        link = ExternalLink(LinkKind.PLAYLIST, playlist_id)
        embed_page = _PageCache(link.embed_url, self.embed_timeout, self._http)
        direct_page = _PageCache(link.url, self.embed_timeout, self._http)

        def from_markup(page: _PageCache, source: str) -> Callable[[], StrategyResult]:
            def strategy() -> StrategyResult[PlaylistResolution]:
                html = page.html()
                if html is None:
                    return StrategyResult.fail(page.error or "page unavailable")
                tracks = scraper.tracks_from_markup(html)
                if not tracks:
                    return StrategyResult.skip("no track patterns matched")
                name = self._scraped_playlist_name(playlist_id, embed_page, direct_page)
                return StrategyResult.ok(PlaylistResolution(name, tuple(tracks), source))
            return strategy

        def from_embed_state() -> StrategyResult[PlaylistResolution]:
            html = embed_page.html()
            if html is None:
                return StrategyResult.fail(embed_page.error or "page unavailable")
            tracks = scraper.tracks_from_initial_state(html)
            if not tracks:
                return StrategyResult.skip("no tracks in embedded state")
            name = self._scraped_playlist_name(playlist_id, embed_page, direct_page)
            return StrategyResult.ok(PlaylistResolution(name, tuple(tracks), "embed_state"))

        resolution = run_cascade(
            [
                ("api", lambda: self._playlist_from_api(playlist_id)),
                ("embed_state", from_embed_state),
                ("embed_markup", from_markup(embed_page, "embed_markup")),
                ("page_markup", from_markup(direct_page, "page_markup")),
            ],
            description=f"playlist {playlist_id}",
            failure_message=PLAYLIST_FAILURE_MESSAGE,
        )

        logger.info(
            f"Resolved playlist '{resolution.playlist_name}': "
            f"{resolution.total_tracks} tracks ({resolution.source})"
        )
        return resolution

    def _playlist_from_api(self, playlist_id: str) -> StrategyResult[PlaylistResolution]:
        if not self.api.available:
            return StrategyResult.skip("no access token")
        try:
            playlist = self.api.playlist(playlist_id)
            items = self.api.playlist_all_items(playlist_id)
        except SpotifyError as e:
            return StrategyResult.fail(e.message)

        tracks = [track for track in (_track_from_api_item(item) for item in items) if track]
        if not tracks:
            return StrategyResult.skip("API returned no tracks")

        name = playlist.get("name") or default_playlist_name(playlist_id)
        return StrategyResult.ok(PlaylistResolution(name, tuple(tracks), "api"))

    def _scraped_playlist_name(self, playlist_id: str, embed_page: _PageCache, direct_page: _PageCache) -> str:
        """Embed page title first, then the direct page if it was fetched."""
        for page in (embed_page, direct_page):
            if page.fetched:
                name = scraper.playlist_name_from_markup(page.html())
                if name:
                    return name
        return default_playlist_name(playlist_id)


def default_playlist_name(playlist_id: str) -> str:
    return f"Playlist_{playlist_id}"


def _track_descriptor(name: str, artist: str) -> TrackDescriptor:
    return TrackDescriptor(name=name, artists=artist, search_query=f"{artist} - {name}")


def _track_from_api_item(item: dict[str, Any]) -> TrackDescriptor | None:
    track = (item or {}).get("track")
    if not isinstance(track, dict) or not track.get("name"):
        return None
    artists = ", ".join(a.get("name", "") for a in track.get("artists") or [] if a.get("name"))
    if not artists:
        return None
    return TrackDescriptor(name=track["name"], artists=artists)
