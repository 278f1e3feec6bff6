"""Shared fixtures: scripted stand-ins for ffprobe and ffmpeg."""

from __future__ import annotations

import os
import threading
import time
from pathlib import Path
from typing import Dict

import pytest

from vidshelf.errors import ExtractionFailure, ProbeFailure
from vidshelf.media.artifacts import ArtifactExtractor
from vidshelf.media.probe import MediaProber
from vidshelf.models import MediaMetadata, SubtitleTrack


class FakeProber(MediaProber):
    """Returns scripted metadata per file name, optionally failing or sleeping."""

    def __init__(self) -> None:
        self.results: Dict[str, MediaMetadata] = {}
        self.failures: set[str] = set()
        self.delays: Dict[str, float] = {}
        self.default = MediaMetadata(duration=60.0, width=1920, height=1080, format="mp4")
        self.calls: list[Path] = []
        self._lock = threading.Lock()

    def probe(self, path: Path) -> MediaMetadata:
        with self._lock:
            self.calls.append(path)
        delay = self.delays.get(path.name)
        if delay:
            time.sleep(delay)
        if path.name in self.failures:
            raise ProbeFailure(f"scripted failure for {path.name}")
        return self.results.get(path.name, self.default)


class FakeExtractor(ArtifactExtractor):
    """Writes small placeholder files instead of running ffmpeg."""

    def __init__(self) -> None:
        self.thumbnail_calls: list[tuple[Path, Path]] = []
        self.subtitle_calls: list[tuple[Path, int, Path]] = []
        self.fail = False
        self.write_empty = False

    def extract_thumbnail(self, video: Path, output: Path) -> None:
        self.thumbnail_calls.append((video, output))
        if self.fail:
            raise ExtractionFailure("scripted thumbnail failure")
        output.write_bytes(b"\xff\xd8jpeg")

    def extract_subtitle(self, video: Path, stream_index: int, output: Path) -> None:
        self.subtitle_calls.append((video, stream_index, output))
        if self.fail:
            output.write_bytes(b"")
            raise ExtractionFailure("scripted subtitle failure")
        output.write_text("" if self.write_empty else "WEBVTT\n\n00:00.000 --> 00:01.000\nHi\n")


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


SUBTITLED = MediaMetadata(
    duration=125.0,
    width=1280,
    height=720,
    bitrate=2_000_000,
    format="matroska,webm",
    subtitles=(
        SubtitleTrack(language="eng", stream_index=2, codec="subrip", title="English"),
        SubtitleTrack(language="fre", stream_index=3, codec="ass"),
    ),
)


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """An empty, symlink-free library root."""
    videos = tmp_path.resolve() / "videos"
    videos.mkdir()
    return videos


@pytest.fixture
def prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def latin1_failing_tool(tmp_path: Path) -> Path:
    """A stand-in for ffprobe/ffmpeg that exits 1 with Latin-1 bytes on stderr."""
    if os.name != "posix":
        pytest.skip("shell script stand-ins need a POSIX shell")
    script = tmp_path / "bin" / "failing-tool"
    script.parent.mkdir()
    script.write_bytes(b"#!/bin/sh\nprintf 'Invalid data found \\351t\\351\\n' >&2\nexit 1\n")
    script.chmod(0o755)
    return script
