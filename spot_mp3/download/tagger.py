"""
ID3 tag writer for downloaded MP3 files.

Writes the track identity plus Spotify audio features in a way DJ
software (Rekordbox, Serato, Traktor) picks up:

    TIT2 / TPE1       title / artist
    TALB              album ("Unknown Album" if missing)
    TDRC              year (omitted without a release date)
    TCON              first genre ("Electronic" if none)
    COMM              "Downloaded from YouTube | BPM: x | Key: y"
    TBPM / TKEY       BPM and musical key
    TXXX              ENERGY, DANCEABILITY, VALENCE, SPOTIFY_ID, SPOTIFY_URL

Frames whose value is missing are not written at all.
"""

from pathlib import Path

from mutagen import MutagenError
from mutagen.id3 import COMM, ID3, ID3NoHeaderError, TALB, TBPM, TCON, TDRC, TIT2, TKEY, TPE1, TXXX, Frame

from spot_mp3.core.exceptions import TagWriteError
from spot_mp3.core.logger import get_logger
from spot_mp3.spotify.models import AudioFeatureSet, TrackDescriptor


logger = get_logger(__name__)


DEFAULT_ALBUM = "Unknown Album"
DEFAULT_GENRE = "Electronic"
COMMENT_PREFIX = "Downloaded from YouTube"

# ID3v2.3 is what most DJ software reads reliably
ID3_VERSION = 3

# UTF-8 for v2.4, downgraded to UTF-16 by mutagen when saving v2.3
TEXT_ENCODING = 3


def build_comment(features: AudioFeatureSet) -> str:
    bpm = features.bpm if features.bpm is not None else "Unknown"
    key = features.key or "Unknown"
    return f"{COMMENT_PREFIX} | BPM: {bpm} | Key: {key}"


def build_frames(descriptor: TrackDescriptor, features: AudioFeatureSet | None = None) -> list[Frame]:
    """
    Build the ID3 frames for a track.

    Args:
        descriptor: Title and artists.
        features: Audio features, or None to write only identity and
                  default album/genre.

    Returns:
        List of mutagen frames, absent values already left out.
    """
    features = features or AudioFeatureSet()

    frames: list[Frame] = [
        TIT2(encoding=TEXT_ENCODING, text=descriptor.name),
        TPE1(encoding=TEXT_ENCODING, text=descriptor.artists),
        TALB(encoding=TEXT_ENCODING, text=features.album or DEFAULT_ALBUM),
        TCON(encoding=TEXT_ENCODING, text=features.genres[0] if features.genres else DEFAULT_GENRE),
        COMM(encoding=TEXT_ENCODING, lang="eng", desc="", text=build_comment(features)),
    ]

    if features.year:
        frames.append(TDRC(encoding=TEXT_ENCODING, text=features.year))
    if features.bpm is not None:
        frames.append(TBPM(encoding=TEXT_ENCODING, text=str(features.bpm)))
    if features.key:
        frames.append(TKEY(encoding=TEXT_ENCODING, text=features.key))

    custom_fields = {
        "ENERGY": features.energy,
        "DANCEABILITY": features.danceability,
        "VALENCE": features.valence,
        "SPOTIFY_ID": features.spotify_id,
        "SPOTIFY_URL": features.spotify_url,
    }
    for description, value in custom_fields.items():
        if value is None or value == "":
            continue
        frames.append(TXXX(encoding=TEXT_ENCODING, desc=description, text=str(value)))

    return frames


class TagWriter:
    """Write ID3 tags into MP3 files."""

    def write(self, file_path: Path, descriptor: TrackDescriptor, features: AudioFeatureSet | None = None) -> None:
        """
        Write tags, replacing frames of the same kind.

        Raises:
            TagWriteError: If the file cannot be read or saved.
        """
        try:
            try:
                tags = ID3(str(file_path))
            except ID3NoHeaderError:
                tags = ID3()

            for frame in build_frames(descriptor, features):
                tags.setall(frame.HashKey, [frame])

            tags.save(str(file_path), v2_version=ID3_VERSION)
        except (MutagenError, OSError) as e:
            raise TagWriteError(
                f"Failed to write tags to {file_path.name}: {e}",
                details={"file_path": str(file_path), "original_error": str(e)}
            ) from e

    def write_tags(
        self,
        file_path: Path,
        features: AudioFeatureSet | None,
        descriptor: TrackDescriptor
    ) -> bool:
        """
        Write tags and report success.

        Returns:
            True on success, False if writing failed (logged; the file
            itself is left in place).
        """
        try:
            self.write(file_path, descriptor, features)
        except TagWriteError as e:
            logger.error(e.message)
            return False

        logger.debug(f"Tagged {file_path.name}")
        return True
