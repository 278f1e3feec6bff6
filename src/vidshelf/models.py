"""Core vidshelf data models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

EntryKind = Literal["directory", "video"]


@dataclass(frozen=True, slots=True)
class SubtitleTrack:
    """Subtitle stream embedded in a video container."""

    language: str
    stream_index: int
    codec: str
    title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "language": self.language,
            "streamIndex": self.stream_index,
            "codec": self.codec,
        }
        if self.title:
            data["title"] = self.title
        return data


@dataclass(frozen=True, slots=True)
class MediaMetadata:
    """Probed technical description of a video file."""

    duration: float = 0.0
    width: int = 0
    height: int = 0
    bitrate: int = 0
    format: str = ""
    subtitles: tuple[SubtitleTrack, ...] = ()

    def find_subtitle(self, language: str) -> Optional[SubtitleTrack]:
        """Return the first track tagged with ``language``, if any."""
        for track in self.subtitles:
            if track.language == language:
                return track
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "duration": self.duration,
            "width": self.width,
            "height": self.height,
            "bitrate": self.bitrate,
            "format": self.format,
        }
        if self.subtitles:
            data["subtitles"] = [track.to_dict() for track in self.subtitles]
        return data


@dataclass(frozen=True, slots=True)
class Entry:
    """One row of a directory listing."""

    name: str
    path: str
    kind: EntryKind
    mtime: float
    size: int = 0
    duration: float = 0.0

    @property
    def is_directory(self) -> bool:
        return self.kind == "directory"

    @property
    def updated_at(self) -> str:
        return datetime.fromtimestamp(self.mtime, tz=timezone.utc).isoformat(timespec="seconds")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "type": self.kind,
            "updatedAt": self.updated_at,
        }
        if not self.is_directory:
            data["size"] = self.size
            data["duration"] = self.duration
        return data


@dataclass(frozen=True, slots=True)
class ByteRange:
    """Inclusive byte interval ``[start, end]`` of a file."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        return f"bytes {self.start}-{self.end}/{size}"
