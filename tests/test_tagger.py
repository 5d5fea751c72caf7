# tests/test_tagger.py
"""Test ID3 tag writing"""

from mutagen.id3 import ID3

from spot_mp3.download.tagger import TagWriter, build_comment, build_frames
from spot_mp3.spotify.models import AudioFeatureSet


FEATURES = AudioFeatureSet(
    bpm=123,
    key="D major",
    energy=70,
    danceability=61,
    valence=48,
    spotify_id="0DiWol3AO6WpXZgp0goxAV",
    spotify_url="https://open.spotify.com/track/0DiWol3AO6WpXZgp0goxAV",
    album="Discovery",
    release_date="2001-03-12",
    genres=("french house", "disco"),
)


def make_mp3(temp_dir, name="Daft Punk - One More Time.mp3"):
    path = temp_dir / name
    path.write_bytes(b"\xff\xfb\x90\x00" + b"\x00" * 1024)
    return path


class TestBuildFrames:
    """Test frame construction"""

    def test_comment(self):
        assert build_comment(FEATURES) == "Downloaded from YouTube | BPM: 123 | Key: D major"
        assert build_comment(AudioFeatureSet()) == "Downloaded from YouTube | BPM: Unknown | Key: Unknown"

    def test_absent_values_left_out(self, descriptor):
        frames = {frame.HashKey for frame in build_frames(descriptor, AudioFeatureSet(bpm=120))}
        assert "TBPM" in frames
        assert "TKEY" not in frames
        assert "TDRC" not in frames
        assert not any(key.startswith("TXXX") for key in frames)

    def test_defaults_without_features(self, descriptor):
        frames = {frame.HashKey: frame for frame in build_frames(descriptor)}
        assert frames["TALB"].text == ["Unknown Album"]
        assert frames["TCON"].text == ["Electronic"]


class TestTagWriter:
    """Test TagWriter with real files"""

    def test_writes_all_frames(self, temp_dir, descriptor):
        path = make_mp3(temp_dir)

        assert TagWriter().write_tags(path, FEATURES, descriptor)

        tags = ID3(str(path))
        assert tags.version[:2] == (2, 3)
        assert tags["TIT2"].text == ["One More Time"]
        assert tags["TPE1"].text == ["Daft Punk"]
        assert tags["TALB"].text == ["Discovery"]
        assert str(tags["TDRC"].text[0]) == "2001"
        assert tags["TCON"].text == ["french house"]
        assert tags["TBPM"].text == ["123"]
        assert tags["TKEY"].text == ["D major"]
        assert tags["COMM::eng"].text == ["Downloaded from YouTube | BPM: 123 | Key: D major"]
        assert tags["TXXX:ENERGY"].text == ["70"]
        assert tags["TXXX:DANCEABILITY"].text == ["61"]
        assert tags["TXXX:VALENCE"].text == ["48"]
        assert tags["TXXX:SPOTIFY_ID"].text == ["0DiWol3AO6WpXZgp0goxAV"]

    def test_rewrite_replaces_frames(self, temp_dir, descriptor):
        path = make_mp3(temp_dir)
        writer = TagWriter()
        writer.write_tags(path, FEATURES, descriptor)
        writer.write_tags(path, AudioFeatureSet(bpm=90), descriptor)

        tags = ID3(str(path))
        assert tags["TBPM"].text == ["90"]
        assert len(tags.getall("TBPM")) == 1

    def test_missing_file(self, temp_dir, descriptor):
        assert not TagWriter().write_tags(temp_dir / "missing.mp3", FEATURES, descriptor)
