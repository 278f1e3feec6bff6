"""Range header parsing and media type lookup."""

from __future__ import annotations

from pathlib import Path

from vidshelf.errors import InvalidRangeError
from vidshelf.models import ByteRange

CONTENT_TYPES = {
    ".mp4": "video/mp4",
    ".m4v": "video/mp4",
    ".webm": "video/webm",
    ".mkv": "video/x-matroska",
    ".avi": "video/x-msvideo",
    ".mov": "video/quicktime",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type_for(path: str | Path) -> str:
    return CONTENT_TYPES.get(Path(path).suffix.lower(), DEFAULT_CONTENT_TYPE)


def _parse_offset(value: str) -> int:
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        raise InvalidRangeError()
    return int(value)


def parse_range(header: str, size: int) -> ByteRange:
    """Parse a single ``bytes=<start>-<end>`` range against a file of ``size`` bytes.

    Either bound may be omitted, but not both: a missing start means 0 and a
    missing end means the last byte. Multiple ranges are rejected, as is any
    range not satisfying ``0 <= start <= end <= size - 1``.
    """
    unit, sep, byte_ranges = header.strip().partition("=")
    if not sep or unit.strip().lower() != "bytes":
        raise InvalidRangeError()
    if "," in byte_ranges:
        raise InvalidRangeError("Multiple ranges are not supported")

    first, sep, last = byte_ranges.partition("-")
    if not sep or (not first.strip() and not last.strip()):
        raise InvalidRangeError()

    start = _parse_offset(first) if first.strip() else 0
    end = _parse_offset(last) if last.strip() else size - 1

    if start > end or end > size - 1:
        raise InvalidRangeError()
    return ByteRange(start=start, end=end)
