# tests/test_utils.py
"""Test utilities and helpers"""

from spot_mp3.utils import ensure_directory, format_bytes, sanitize_filename


class TestSanitizeFilename:
    """Test filename sanitization"""

    def test_removes_invalid_characters(self):
        """Characters illegal on common filesystems are dropped"""
        assert sanitize_filename("My: Playlist/2024*") == "My Playlist2024"
        assert sanitize_filename('a<b>c"d|e?f\\g') == "abcdefg"

    def test_collapses_whitespace(self):
        """Whitespace runs become one space and ends are trimmed"""
        assert sanitize_filename("  AC/DC   -  Back \t in Black ") == "ACDC - Back in Black"

    def test_truncates_long_names(self):
        """Names are cut to 200 characters"""
        assert len(sanitize_filename("x" * 500)) == 200

    def test_empty_result(self):
        """Only invalid characters leaves an empty string"""
        assert sanitize_filename("???***") == ""


class TestFormatBytes:
    """Test human-readable byte sizes"""

    def test_zero(self):
        assert format_bytes(0) == "0 Bytes"
        assert format_bytes(None) == "0 Bytes"

    def test_units(self):
        assert format_bytes(512) == "512 Bytes"
        assert format_bytes(1024) == "1 KB"
        assert format_bytes(1536) == "1.5 KB"
        assert format_bytes(5 * 1024 * 1024) == "5 MB"
        assert format_bytes(3 * 1024 ** 3) == "3 GB"

    def test_two_decimals(self):
        """Values are rounded to two decimals"""
        assert format_bytes(1234567) == "1.18 MB"


class TestEnsureDirectory:
    """Test directory creation"""

    def test_creates_nested(self, temp_dir):
        target = temp_dir / "a" / "b" / "c"
        assert ensure_directory(target) == target
        assert target.is_dir()

    def test_existing_is_fine(self, temp_dir):
        assert ensure_directory(temp_dir) == temp_dir
