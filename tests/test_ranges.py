"""Tests for Range header parsing."""

from __future__ import annotations

import pytest

from vidshelf.errors import InvalidRangeError
from vidshelf.models import ByteRange
from vidshelf.streaming.ranges import content_type_for, parse_range


class TestParseRange:
    """Tests for parse_range on a 1000 byte file."""

    def test_closed_range(self) -> None:
        assert parse_range("bytes=0-99", 1000) == ByteRange(0, 99)

    def test_open_end_defaults_to_last_byte(self) -> None:
        assert parse_range("bytes=900-", 1000) == ByteRange(900, 999)

    def test_open_start_defaults_to_zero(self) -> None:
        """A missing start means byte 0, not a suffix range."""
        assert parse_range("bytes=-99", 1000) == ByteRange(0, 99)

    def test_single_byte(self) -> None:
        byte_range = parse_range("bytes=999-999", 1000)
        assert byte_range.length == 1

    def test_whitespace_and_unit_case(self) -> None:
        assert parse_range(" Bytes=10-20 ", 1000) == ByteRange(10, 20)

    @pytest.mark.parametrize(
        "header",
        [
            "bytes=2000-3000",
            "bytes=0-1000",
            "bytes=500-100",
            "bytes=-",
            "bytes=",
            "bytes=abc-10",
            "bytes=10-xyz",
            "bytes=-5-10",
            "bytes=0-99,200-299",
            "items=0-99",
            "0-99",
            "bytes=1.5-2",
            "bytes=²-5",
        ],
    )
    def test_invalid_ranges(self, header: str) -> None:
        with pytest.raises(InvalidRangeError):
            parse_range(header, 1000)

    def test_empty_file_has_no_satisfiable_range(self) -> None:
        with pytest.raises(InvalidRangeError):
            parse_range("bytes=0-", 0)


class TestByteRange:
    def test_content_range(self) -> None:
        assert ByteRange(0, 99).content_range(1000) == "bytes 0-99/1000"

    def test_length_is_inclusive(self) -> None:
        assert ByteRange(900, 999).length == 100


class TestContentType:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("a.mp4", "video/mp4"),
            ("a.WEBM", "video/webm"),
            ("a.mkv", "video/x-matroska"),
            ("a.avi", "video/x-msvideo"),
            ("a.mov", "video/quicktime"),
            ("a.bin", "application/octet-stream"),
            ("noext", "application/octet-stream"),
        ],
    )
    def test_lookup(self, name: str, expected: str) -> None:
        assert content_type_for(name) == expected
