"""Thumbnails and subtitle tracks generated on demand and kept on disk.

The filesystem is the cache: an artifact that exists is served as-is and is
never regenerated. Generation writes to a temporary sibling file and renames it
into place, so concurrent first requests may duplicate work but a reader never
observes a half-written artifact.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable

from vidshelf.errors import (
    ExtractionFailure,
    InvalidParameterError,
    NotFoundError,
    ProbeFailure,
    SubtitleNotFoundError,
)
from vidshelf.media.cache import MetadataCache

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_THUMBNAIL_URL = "/static/img/no-preview.svg"
THUMBNAILS_URL_PREFIX = "/thumbnails/"
SUBTITLES_URL_PREFIX = "/subtitles/"

_LANGUAGE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,32}$")


class ArtifactExtractor(ABC):
    """Contract for the media tool producing derived artifacts."""

    @abstractmethod
    def extract_thumbnail(self, video: Path, output: Path) -> None:
        """Write one scaled JPEG frame of ``video`` to ``output``.

        Raises:
            ExtractionFailure: if the tool fails.
        """

    @abstractmethod
    def extract_subtitle(self, video: Path, stream_index: int, output: Path) -> None:
        """Write stream ``stream_index`` of ``video`` to ``output`` as WebVTT.

        Raises:
            ExtractionFailure: if the tool fails.
        """


class FFmpegExtractor(ArtifactExtractor):
    """Concrete :class:`ArtifactExtractor` running ``ffmpeg``."""

    def __init__(
        self,
        binary: str = "ffmpeg",
        *,
        thumbnail_width: int = 320,
        thumbnail_offset: float = 10.0,
        timeout: float | None = 120.0,
    ) -> None:
        self.binary = binary
        self.thumbnail_width = thumbnail_width
        self.thumbnail_offset = thumbnail_offset
        self.timeout = timeout

    def thumbnail_command(self, video: Path, output: Path) -> list[str]:
        # -ss before -i seeks on the input, past the usual black leading frames.
        return [
            self.binary,
            "-v", "error",
            "-ss", str(self.thumbnail_offset),
            "-i", str(video),
            "-frames:v", "1",
            "-q:v", "2",
            "-vf", f"scale={self.thumbnail_width}:-1",
            # Single-image output; otherwise "%" in the name is a frame pattern.
            "-update", "1",
            "-y",
            str(output),
        ]

    def subtitle_command(self, video: Path, stream_index: int, output: Path) -> list[str]:
        return [
            self.binary,
            "-v", "error",
            "-i", str(video),
            "-map", f"0:{stream_index}",
            "-f", "webvtt",
            "-c:s", "webvtt",
            "-y",
            str(output),
        ]

    def extract_thumbnail(self, video: Path, output: Path) -> None:
        self._run(self.thumbnail_command(video, output))

    def extract_subtitle(self, video: Path, stream_index: int, output: Path) -> None:
        self._run(self.subtitle_command(video, stream_index, output))

    def _run(self, cmd: list[str]) -> None:
        LOGGER.info("Executing ffmpeg: %s", " ".join(cmd))
        try:
            subprocess.run(
                cmd,
                check=True,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as exc:
            error_message = exc.stderr.strip() if exc.stderr else "Unknown ffmpeg error"
            raise ExtractionFailure(f"ffmpeg failed: {error_message}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ExtractionFailure(f"ffmpeg timed out after {self.timeout}s") from exc
        except OSError as exc:
            raise ExtractionFailure(f"Unable to run {self.binary}: {exc}") from exc


def validate_language(language: str | None) -> str:
    """Return ``language`` if it is safe to embed in an artifact file name."""
    if not language or not _LANGUAGE_PATTERN.match(language):
        raise InvalidParameterError("Invalid subtitle language")
    return language


def _temporary_sibling(target: Path) -> Path:
    # Keep the suffix so ffmpeg can infer the output container.
    return target.with_name(f".{target.stem}.{uuid.uuid4().hex}.tmp{target.suffix}")


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        LOGGER.warning("Unable to remove %s: %s", path, exc)


class DerivedArtifactCache:
    """Resolves thumbnails and subtitles for library videos."""

    def __init__(
        self,
        extractor: ArtifactExtractor,
        metadata: MetadataCache,
        *,
        thumbnails_dir: Path,
        subtitles_dir: Path,
    ) -> None:
        self.extractor = extractor
        self.metadata = metadata
        self.thumbnails_dir = Path(thumbnails_dir)
        self.subtitles_dir = Path(subtitles_dir)

    def thumbnail_path(self, video: Path) -> Path:
        return self.thumbnails_dir / f"{video.name}.jpg"

    def subtitle_path(self, video: Path, language: str) -> Path:
        return self.subtitles_dir / f"{video.stem}_{language}.vtt"

    def ensure_thumbnail(self, video: Path) -> Path | None:
        """Return the thumbnail for ``video``, generating it on first use.

        Returns ``None`` when no thumbnail can be produced; callers serve the
        placeholder image instead.
        """
        target = self.thumbnail_path(video)
        if target.is_file():
            return target
        if not video.is_file():
            LOGGER.warning("Thumbnail requested for missing video %s", video)
            return None

        try:
            self._generate(target, lambda tmp: self.extractor.extract_thumbnail(video, tmp))
        except ExtractionFailure as exc:
            LOGGER.warning("Thumbnail generation failed for %s: %s", video, exc)
            return None
        return target

    def ensure_subtitle(self, video: Path, language: str) -> Path:
        """Return the WebVTT subtitle for ``video`` in ``language``.

        Raises:
            InvalidParameterError: if ``language`` is not a plain language tag.
            NotFoundError: if the video does not exist.
            SubtitleNotFoundError: if the video has no track in that language.
            ProbeFailure: if the video's tracks cannot be read.
            ExtractionFailure: if ffmpeg produces no usable output.
        """
        language = validate_language(language)
        target = self.subtitle_path(video, language)
        if target.is_file() and target.stat().st_size > 0:
            return target
        if not video.is_file():
            raise NotFoundError(f"Video not found: {video.name}")

        try:
            info = self.metadata.get_metadata(video)
        except ProbeFailure:
            LOGGER.error("Cannot read subtitle tracks of %s", video)
            raise
        track = info.find_subtitle(language)
        if track is None:
            raise SubtitleNotFoundError(f"No subtitle found for language {language}")

        self._generate(
            target, lambda tmp: self.extractor.extract_subtitle(video, track.stream_index, tmp)
        )
        return target

    def _generate(self, target: Path, produce: Callable[[Path], None]) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = _temporary_sibling(target)
        try:
            produce(tmp)
            if not tmp.is_file() or tmp.stat().st_size == 0:
                raise ExtractionFailure(f"Empty output while generating {target.name}")
            os.replace(tmp, target)
        except ExtractionFailure:
            _discard(tmp)
            raise
        except OSError as exc:
            _discard(tmp)
            raise ExtractionFailure(f"Unable to store {target.name}: {exc}") from exc
        LOGGER.info("Generated %s", target)
