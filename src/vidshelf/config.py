"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from vidshelf.errors import ConfigError

DEFAULT_PORT = 9999
DEFAULT_VIDEOS_DIR = "videos"
DEFAULT_GENERATED_DIR = "data"


def _get_default_videos_dir() -> Path:
    return Path.cwd() / DEFAULT_VIDEOS_DIR


def _parse_port(value: str | None) -> int:
    if not value:
        return DEFAULT_PORT
    try:
        return int(value)
    except ValueError:
        return DEFAULT_PORT


@dataclass(slots=True)
class AppConfig:
    videos_dir: Path | None = None
    generated_dir: Path = Path(DEFAULT_GENERATED_DIR)
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    ffprobe_binary: str = "ffprobe"
    ffmpeg_binary: str = "ffmpeg"
    probe_timeout: float = 3.0
    cache_ttl: float = 3600.0
    thumbnail_width: int = 320
    thumbnail_offset: float = 10.0
    max_workers: int = 8
    default_videos_dir: bool = False

    def __post_init__(self) -> None:
        if self.videos_dir is None:
            self.videos_dir = _get_default_videos_dir()
            self.default_videos_dir = True
        self.videos_dir = Path(self.videos_dir)
        self.generated_dir = Path(self.generated_dir)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "AppConfig":
        """Build a configuration from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        videos_dir = env.get("VIDEOS_DIR") or None
        return cls(
            videos_dir=Path(videos_dir) if videos_dir else None,
            generated_dir=Path(env.get("VIDSHELF_DATA_DIR") or DEFAULT_GENERATED_DIR),
            port=_parse_port(env.get("PORT")),
            ffmpeg_binary=env.get("FFMPEG_BINARY") or "ffmpeg",
            ffprobe_binary=env.get("FFPROBE_BINARY") or "ffprobe",
        )

    @property
    def thumbnails_dir(self) -> Path:
        return self.generated_dir / "thumbnails"

    @property
    def subtitles_dir(self) -> Path:
        return self.generated_dir / "subtitles"

    def resolve_videos_dir(self) -> Path:
        """Return the absolute library root with symlinks resolved."""
        return Path(os.path.realpath(os.path.abspath(self._require_videos_dir())))

    def ensure_directories(self) -> None:
        """Create the generated-artifact directories and the default library root."""
        videos_dir = self._require_videos_dir()
        if self.default_videos_dir:
            videos_dir.mkdir(parents=True, exist_ok=True)
        elif not videos_dir.is_dir():
            raise ConfigError(f"Videos directory does not exist: {videos_dir}")

        for directory in (self.thumbnails_dir, self.subtitles_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def _require_videos_dir(self) -> Path:
        if self.videos_dir is None:
            raise ConfigError("Videos directory is not configured")
        return self.videos_dir
