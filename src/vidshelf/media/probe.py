"""Metadata extraction through ffprobe."""

from __future__ import annotations

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List

from pydantic import BaseModel, Field, ValidationError

from vidshelf.errors import ProbeFailure
from vidshelf.models import MediaMetadata, SubtitleTrack

LOGGER = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 3.0


class MediaProber(ABC):
    """Contract for the metadata probing tool."""

    @abstractmethod
    def probe(self, path: Path) -> MediaMetadata:
        """Describe the media file at ``path``.

        Raises:
            ProbeFailure: if the tool fails, times out or returns unusable output.
        """


class _StreamTags(BaseModel):
    language: str | None = None
    title: str | None = None


class _ProbeStream(BaseModel):
    index: int = 0
    codec_type: str | None = None
    codec_name: str | None = None
    width: int | None = None
    height: int | None = None
    tags: _StreamTags = Field(default_factory=_StreamTags)


class _ProbeFormat(BaseModel):
    format_name: str = ""
    duration: float | None = None
    bit_rate: int | None = None


class _ProbeOutput(BaseModel):
    streams: List[_ProbeStream] = Field(default_factory=list)
    format: _ProbeFormat = Field(default_factory=_ProbeFormat)


def parse_probe_output(data: dict[str, Any]) -> MediaMetadata:
    """Convert ffprobe ``-show_format -show_streams`` JSON into metadata.

    The first video stream provides the resolution; every subtitle stream
    becomes a track, tagged ``und`` when it carries no language.
    """
    try:
        output = _ProbeOutput.model_validate(data)
    except ValidationError as exc:
        raise ProbeFailure(f"Unexpected ffprobe output: {exc}") from exc

    width = height = 0
    subtitles: list[SubtitleTrack] = []
    for stream in output.streams:
        if stream.codec_type == "video" and not width:
            width = stream.width or 0
            height = stream.height or 0
        elif stream.codec_type == "subtitle":
            subtitles.append(
                SubtitleTrack(
                    language=stream.tags.language or "und",
                    title=stream.tags.title,
                    stream_index=stream.index,
                    codec=stream.codec_name or "",
                )
            )

    return MediaMetadata(
        duration=output.format.duration or 0.0,
        width=width,
        height=height,
        bitrate=output.format.bit_rate or 0,
        format=output.format.format_name,
        subtitles=tuple(subtitles),
    )


class FFprobeProber(MediaProber):
    """Runs ``ffprobe`` as a subprocess with a hard timeout."""

    def __init__(self, binary: str = "ffprobe", *, timeout: float = DEFAULT_PROBE_TIMEOUT) -> None:
        self.binary = binary
        self.timeout = timeout

    def command(self, path: Path) -> list[str]:
        return [
            self.binary,
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]

    def probe(self, path: Path) -> MediaMetadata:
        cmd = self.command(path)
        LOGGER.debug("Executing ffprobe: %s", " ".join(cmd))
        try:
            # subprocess.run kills the child when the timeout expires.
            result = subprocess.run(
                cmd,
                check=True,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ProbeFailure(f"ffprobe timed out after {self.timeout}s for {path}") from exc
        except subprocess.CalledProcessError as exc:
            error_message = exc.stderr.strip() if exc.stderr else "Unknown ffprobe error"
            raise ProbeFailure(f"ffprobe failed for {path}: {error_message}") from exc
        except OSError as exc:
            raise ProbeFailure(f"Unable to run {self.binary}: {exc}") from exc
        except ValueError as exc:
            raise ProbeFailure(f"Unreadable ffprobe output for {path}") from exc

        try:
            data = json.loads(result.stdout or "{}")
        except json.JSONDecodeError as exc:
            raise ProbeFailure(f"ffprobe returned invalid JSON for {path}") from exc
        return parse_probe_output(data)
