"""
Data models for Spotify entities.

    ExternalLink        - classified Spotify link (kind + id)
    TrackDescriptor     - name / artists pair used for search and tagging
    PlaylistResolution  - ordered playlist track list with its name
    AudioFeatureSet     - audio features and analysis for ID3 tagging

All models are immutable and scoped to a single request.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


# Spotify pitch class notation -> key name
KEY_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")
MODE_NAMES = ("minor", "major")


class LinkKind(str, Enum):
    """Kinds of Spotify entities the classifier recognizes."""
    TRACK = "track"
    ALBUM = "album"
    PLAYLIST = "playlist"


@dataclass(frozen=True)
class ExternalLink:
    """
    A parsed reference to a Spotify track, album or playlist.

    Attributes:
        kind: Entity kind.
        id: Base62 entity identifier, e.g. "4iV5W9uYEdYUVa79Axb7Rh".
    """
    kind: LinkKind
    id: str

    @property
    def url(self) -> str:
        return f"https://open.spotify.com/{self.kind.value}/{self.id}"

    @property
    def embed_url(self) -> str:
        return f"https://open.spotify.com/embed/{self.kind.value}/{self.id}"


@dataclass(frozen=True)
class TrackDescriptor:
    """
    A track identified by display name and artists.

    Attributes:
        name: Track title.
        artists: Comma-joined artist names, e.g. "Daft Punk, Romanthony".
        search_query: Text sent to the video search. Defaults to
                      "<artists> <name>".

    Two descriptors naming the same track in different letter case share
    the same dedup_key.
    """
    name: str
    artists: str
    search_query: str = ""

    def __post_init__(self) -> None:
        if not self.search_query:
            object.__setattr__(self, "search_query", f"{self.artists} {self.name}")

    @property
    def dedup_key(self) -> str:
        return f"{self.name.lower()}|||{self.artists.lower()}"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "artists": self.artists, "searchQuery": self.search_query}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackDescriptor":
        return cls(
            name=data.get("name", ""),
            artists=data.get("artists") or data.get("artist", ""),
            search_query=data.get("searchQuery") or data.get("search_query", ""),
        )


@dataclass(frozen=True)
class PlaylistResolution:
    """
    A resolved playlist.

    Attributes:
        playlist_name: Display name (from the page title or the API).
        tracks: Tracks in source order.
        source: Which strategy produced the tracks (api, embed_state,
                embed_markup, page_markup).
    """
    playlist_name: str
    tracks: tuple[TrackDescriptor, ...]
    source: str = ""

    @property
    def total_tracks(self) -> int:
        return len(self.tracks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "playlistName": self.playlist_name,
            "tracks": [track.to_dict() for track in self.tracks],
            "totalTracks": self.total_tracks,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlaylistResolution":
        return cls(
            playlist_name=data.get("playlistName") or data.get("playlist_name", ""),
            tracks=tuple(TrackDescriptor.from_dict(t) for t in data.get("tracks", [])),
            source=data.get("source", ""),
        )


def _percent(value: float | None) -> int | None:
    if value is None:
        return None
    return round(value * 100)


@dataclass(frozen=True)
class AudioFeatureSet:
    """
    Audio characteristics of a Spotify track.

    Every field is None when Spotify has no data for it. Percent-like
    features (energy, danceability, ...) are integers in 0-100.
    """
    bpm: int | None = None
    key: str | None = None
    energy: int | None = None
    danceability: int | None = None
    valence: int | None = None
    acousticness: int | None = None
    instrumentalness: int | None = None
    liveness: int | None = None
    speechiness: int | None = None
    loudness: int | None = None
    duration_ms: int | None = None
    popularity: int | None = None
    explicit: bool | None = None
    preview_url: str | None = None
    spotify_id: str | None = None
    spotify_url: str | None = None
    album: str | None = None
    release_date: str | None = None
    genres: tuple[str, ...] = field(default_factory=tuple)
    time_signature: int | None = None
    sections: int | None = None
    bars: int | None = None
    beats: int | None = None
    tatums: int | None = None

    @property
    def year(self) -> str | None:
        if not self.release_date:
            return None
        return self.release_date[:4]

    @classmethod
    def from_spotify_data(
        cls,
        track: dict[str, Any],
        features: dict[str, Any] | None = None,
        analysis: dict[str, Any] | None = None,
        genres: list[str] | None = None
    ) -> "AudioFeatureSet":
        """
        Build a feature set from Spotify API payloads.

        Args:
            track: Track object from /search or /tracks.
            features: /audio-features object, or None.
            analysis: /audio-analysis object, or None.
            genres: Genres of the primary artist, or None.

        Key Mapping:
            key 0-11 + mode 0/1 -> "C minor" ... "B major"; key -1 -> None.
        """
        features = features or {}
        analysis = analysis or {}
        album = track.get("album") or {}

        musical_key = None
        key_index = features.get("key")
        mode_index = features.get("mode")
        if key_index is not None and 0 <= key_index < len(KEY_NAMES):
            musical_key = KEY_NAMES[key_index]
            if mode_index in (0, 1):
                musical_key = f"{musical_key} {MODE_NAMES[mode_index]}"

        tempo = features.get("tempo")
        loudness = features.get("loudness")

        return cls(
            bpm=round(tempo) if tempo is not None else None,
            key=musical_key,
            energy=_percent(features.get("energy")),
            danceability=_percent(features.get("danceability")),
            valence=_percent(features.get("valence")),
            acousticness=_percent(features.get("acousticness")),
            instrumentalness=_percent(features.get("instrumentalness")),
            liveness=_percent(features.get("liveness")),
            speechiness=_percent(features.get("speechiness")),
            loudness=round(loudness) if loudness is not None else None,
            duration_ms=track.get("duration_ms"),
            popularity=track.get("popularity"),
            explicit=track.get("explicit"),
            preview_url=track.get("preview_url"),
            spotify_id=track.get("id"),
            spotify_url=(track.get("external_urls") or {}).get("spotify"),
            album=album.get("name"),
            release_date=album.get("release_date"),
            genres=tuple(genres or ()),
            time_signature=features.get("time_signature"),
            sections=len(analysis["sections"]) if "sections" in analysis else None,
            bars=len(analysis["bars"]) if "bars" in analysis else None,
            beats=len(analysis["beats"]) if "beats" in analysis else None,
            tatums=len(analysis["tatums"]) if "tatums" in analysis else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["genres"] = list(self.genres)
        return data
