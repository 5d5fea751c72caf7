"""
Scraping of public Spotify pages.

Used when the Web API is unavailable (no token) or fails. Scraped pages
contain a lot of unrelated JSON, so every playlist candidate passes
is_valid_track_info() before it is accepted.

Track page strategies (BeautifulSoup):
    - page title "Song - song by Artist | Spotify"
    - Open Graph og:title + og:description "... by Artist on ..."
    - JSON-LD object with @type "MusicRecording"

Playlist page strategies:
    - embedded window.__SPOTIFY_INITIAL_STATE__ JSON blob
    - prioritized regex scan over the raw markup (TRACK_PATTERNS)
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable

import requests
from bs4 import BeautifulSoup

from spot_mp3.core.logger import get_logger
from spot_mp3.spotify.models import TrackDescriptor
from spot_mp3.utils.http import BROWSER_HEADERS


logger = get_logger(__name__)


TITLE_SUFFIX = " | Spotify"
TITLE_SEPARATORS = (" - song by ", " - song and lyrics by ")

OG_ARTIST_PATTERN = re.compile(r"by\s+(.+?)(?:\s+on\s+|$)")

INITIAL_STATE_PATTERN = re.compile(r"window\.__SPOTIFY_INITIAL_STATE__\s*=\s*({.+?});")
INITIAL_STATE_PATHS = (
    "entities.items",
    "data.playlistV2.content.items",
    "data.playlist.tracks.items",
    "initialState.entities.items",
)

HTML_TITLE_PATTERN = re.compile(r"<title>([^<]+)</title>", re.IGNORECASE)

MAX_MATCHES_PER_PATTERN = 200

MIN_FIELD_LENGTH = 2
MAX_FIELD_LENGTH = 100

_INVALID_FIELD_PATTERNS = (
    re.compile(r"^https?://", re.IGNORECASE),
    re.compile(r"\\[nt]"),
    re.compile(r"[<>{}]"),
    re.compile(r"^\d+$"),
    re.compile(r"^[^a-zA-Z]*$"),
)
_RESERVED_WORDS = re.compile(r"playlist|album|artist|spotify", re.IGNORECASE)


def is_valid_track_info(name: str | None, artist: str | None) -> bool:
    """
    Reject name/artist pairs that are obviously not a real track.

    A pair is rejected if either string:
        - is shorter than 2 or longer than 100 characters
        - starts with http:// or https://
        - contains a literal backslash escape (\\n, \\t)
        - contains <, >, { or }
        - is all digits, or has no ASCII letter at all
        - contains "playlist", "album", "artist" or "spotify" (any case)
    """
    if not name or not artist:
        return False

    for value in (name, artist):
        if len(value) < MIN_FIELD_LENGTH or len(value) > MAX_FIELD_LENGTH:
            return False
        if any(pattern.search(value) for pattern in _INVALID_FIELD_PATTERNS):
            return False
        if _RESERVED_WORDS.search(value):
            return False

    return True


def fetch_page(url: str, timeout: float, http: requests.Session | None = None) -> str:
    """
    GET a public page with browser headers.

    Raises:
        requests.RequestException: On network errors or non-2xx status.
    """
    client = http or requests
    response = client.get(url, headers=BROWSER_HEADERS, timeout=timeout)
    response.raise_for_status()
    return response.text


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def clean_page_title(title: str) -> str:
    """Strip the " | Spotify" suffix and surrounding whitespace."""
    return title.replace(TITLE_SUFFIX, "").strip()


def page_title(soup: BeautifulSoup) -> str | None:
    if soup.title is None or not soup.title.string:
        return None
    return soup.title.string.strip()


# =============================================================================
# Track page strategies
# Each returns (name, artist) with possibly empty parts.
# =============================================================================

def track_from_page_title(soup: BeautifulSoup) -> tuple[str, str]:
    """
    Split a title like "Song - song by Artist | Spotify".

    Returns ("", "") if the title does not carry the service suffix or
    neither separator phrase.
    """
    title = page_title(soup)
    if not title or TITLE_SUFFIX not in title:
        return "", ""

    cleaned = clean_page_title(title)
    for separator in TITLE_SEPARATORS:
        if separator in cleaned:
            name, _, artist = cleaned.partition(separator)
            return name.strip(), artist.strip()

    return "", ""


def track_from_open_graph(soup: BeautifulSoup) -> tuple[str, str]:
    """Read og:title as the name and the "by <artist> on" part of og:description."""
    name = ""
    artist = ""

    og_title = soup.find("meta", attrs={"property": "og:title"})
    if og_title and og_title.get("content"):
        name = og_title["content"].strip()

    og_description = soup.find("meta", attrs={"property": "og:description"})
    if og_description and og_description.get("content"):
        match = OG_ARTIST_PATTERN.search(og_description["content"])
        if match:
            artist = match.group(1).strip()

    return name, artist


def track_from_json_ld(soup: BeautifulSoup) -> tuple[str, str]:
    """Find the first JSON-LD MusicRecording with a name and byArtist.name."""
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            continue

        for entry in data if isinstance(data, list) else [data]:
            if not isinstance(entry, dict) or entry.get("@type") != "MusicRecording":
                continue
            by_artist = entry.get("byArtist")
            if isinstance(by_artist, list):
                by_artist = by_artist[0] if by_artist else None
            artist = by_artist.get("name", "") if isinstance(by_artist, dict) else ""
            name = entry.get("name") or ""
            if name and artist:
                return name.strip(), artist.strip()

    return "", ""


# =============================================================================
# Playlist: embedded initial state
# =============================================================================

def get_nested(data: Any, path: str) -> Any:
    """Follow a dotted path through nested dicts; None if any step is missing."""
    current = data
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def _join_artists(artists: Any) -> str:
    if not isinstance(artists, list):
        return ""
    names = []
    for artist in artists:
        if isinstance(artist, dict):
            names.append(artist.get("name") or (artist.get("profile") or {}).get("name", ""))
        elif isinstance(artist, str):
            names.append(artist)
    return ", ".join(name for name in names if name)


def track_from_state_item(item: Any) -> TrackDescriptor | None:
    """
    Extract a track from one initial-state list item.

    Accepted shapes: {"track": {...}}, {"data": {"track": {...}}} and a
    bare {"name": ..., "artists": [...]} object. Artists may also sit in
    {"artists": {"items": [...]}}, or in a single {"artist": {"name": ...}}
    when no artists list is present.
    """
    if not isinstance(item, dict):
        return None

    track = item.get("track")
    if not isinstance(track, dict):
        track = get_nested(item, "data.track")
    if not isinstance(track, dict):
        track = item if "name" in item and "artists" in item else None
    if track is None:
        return None

    artists = track.get("artists")
    if isinstance(artists, dict):
        artists = artists.get("items")

    name = track.get("name")
    artist_names = _join_artists(artists)
    if not isinstance(artists, list):
        artist_names = _join_artists([track.get("artist")])
    if not isinstance(name, str) or not artist_names:
        return None

    return TrackDescriptor(name=name.strip(), artists=artist_names)


def extract_initial_state(html: str) -> dict[str, Any] | None:
    match = INITIAL_STATE_PATTERN.search(html)
    if not match:
        return None
    try:
        return json.loads(match.group(1))
    except ValueError as e:
        logger.debug(f"Embedded initial state is not valid JSON: {e}")
        return None


def tracks_from_initial_state(html: str) -> list[TrackDescriptor]:
    """
    Walk the known initial-state paths and return the first track list found.

    Items failing is_valid_track_info() are dropped.
    """
    state = extract_initial_state(html)
    if state is None:
        return []

    for path in INITIAL_STATE_PATHS:
        items = get_nested(state, path)
        if isinstance(items, dict):
            items = list(items.values())
        if not isinstance(items, list):
            continue

        tracks = []
        for item in items:
            track = track_from_state_item(item)
            if track and is_valid_track_info(track.name, track.artists):
                tracks.append(track)

        if tracks:
            logger.debug(f"Found {len(tracks)} tracks in initial state at '{path}'")
            return tracks

    return []


# =============================================================================
# Playlist: regex scan over raw markup
# =============================================================================

@dataclass(frozen=True)
class ScrapePattern:
    """
    One regex over raw page markup yielding (name, artist) candidates.

    Attributes:
        label: Short name used in debug logs.
        regex: Compiled pattern with two capture groups.
        name_group: Group holding the track name.
        artist_group: Group holding the artist.
        post_process: Optional fix-up applied to each (name, artist) pair.
    """
    label: str
    regex: re.Pattern
    name_group: int = 1
    artist_group: int = 2
    post_process: Callable[[str, str], tuple[str, str]] | None = None

    def scan(self, markup: str) -> Iterable[tuple[str, str]]:
        for match in self.regex.finditer(markup):
            name = match.group(self.name_group).strip()
            artist = match.group(self.artist_group).strip()
            if self.post_process is not None:
                name, artist = self.post_process(name, artist)
            yield name, artist


def _longer_as_name(name: str, artist: str) -> tuple[str, str]:
    # title/subtitle pairs are sometimes reversed
    if len(artist) > len(name):
        return artist, name
    return name, artist


TRACK_PATTERNS: tuple[ScrapePattern, ...] = (
    ScrapePattern(
        "name-artists",
        re.compile(r'"name":"([^"]{2,100})"[^}]*?"artists":\[{"name":"([^"]{2,100})"'),
    ),
    ScrapePattern(
        "track-name-artists",
        re.compile(r'"track":{"name":"([^"]{2,100})"[^}]*?"artists":\[{"name":"([^"]{2,100})"'),
    ),
    ScrapePattern(
        "inline-name-artists",
        re.compile(r'{"name":"([^"]{2,100})","artists":\[{"name":"([^"]{2,100})"'),
    ),
    ScrapePattern(
        "trackName-artistName",
        re.compile(r'"trackName":"([^"]{2,100})"[^}]*?"artistName":"([^"]{2,100})"'),
    ),
    ScrapePattern(
        "title-subtitle",
        re.compile(r'"title":"([^"]{2,100})"[^}]*?"subtitle":"([^"]{2,100})"'),
        post_process=_longer_as_name,
    ),
)


def tracks_from_markup(
    markup: str,
    patterns: Iterable[ScrapePattern] = TRACK_PATTERNS
) -> list[TrackDescriptor]:
    """
    Regex-scan raw markup for track/artist pairs.

    Patterns are tried in priority order; the first one yielding at least
    one valid, unique pair wins. Each pattern accepts at most 200 pairs.
    Uniqueness is case-insensitive on "name|||artist".
    """
    for pattern in patterns:
        seen: set[str] = set()
        tracks: list[TrackDescriptor] = []

        for name, artist in pattern.scan(markup):
            if len(tracks) >= MAX_MATCHES_PER_PATTERN:
                break
            if not is_valid_track_info(name, artist):
                continue
            track = TrackDescriptor(name=name, artists=artist)
            if track.dedup_key in seen:
                continue
            seen.add(track.dedup_key)
            tracks.append(track)

        if tracks:
            logger.debug(f"Pattern '{pattern.label}' matched {len(tracks)} tracks")
            return tracks

    return []


def playlist_name_from_markup(markup: str) -> str | None:
    """Return the <title> text minus the service suffix, or None."""
    soup = parse_html(markup)
    title = page_title(soup)
    if not title:
        match = HTML_TITLE_PATTERN.search(markup)
        title = match.group(1).strip() if match else None
    if not title:
        return None
    cleaned = clean_page_title(title)
    return cleaned or None
