"""Directory listing with concurrent metadata enrichment."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List

from vidshelf.errors import NotADirectoryFound, NotFoundError, VidshelfError
from vidshelf.library.paths import is_within, relative_path, resolve_path
from vidshelf.media.cache import MetadataCache
from vidshelf.models import Entry

LOGGER = logging.getLogger(__name__)

VIDEO_EXTENSIONS = frozenset({".mp4", ".webm", ".mkv", ".avi", ".mov", ".m4v"})


def is_video(name: str | Path) -> bool:
    """Return True when the file extension is a recognised video type."""
    return Path(name).suffix.lower() in VIDEO_EXTENSIONS


def sort_key(entry: Entry) -> tuple[int, str]:
    """Directories first, then case-insensitive by name."""
    return (0 if entry.is_directory else 1, entry.name.lower())


@dataclass(frozen=True, slots=True)
class _VideoCandidate:
    name: str
    path: Path
    relative: str
    size: int
    mtime: float


class DirectoryLister:
    """Lists one library directory, probing video children in parallel."""

    def __init__(self, root: Path, cache: MetadataCache, *, max_workers: int = 8) -> None:
        self.root = root
        self.cache = cache
        self.max_workers = max(1, max_workers)

    def list(self, requested: str | None) -> List[Entry]:
        """Return the sorted entries of the directory at ``requested``.

        Raises:
            InvalidPathError: if ``requested`` escapes the library root.
            NotADirectoryFound: if the target is not a directory.
            NotFoundError: if the directory cannot be read.
        """
        LOGGER.debug("List: requested path: %r", requested)
        directory = resolve_path(self.root, requested)

        try:
            is_dir = directory.is_dir()
        except OSError as exc:
            raise NotFoundError(f"Cannot access {requested}") from exc
        if not is_dir:
            if directory.exists():
                raise NotADirectoryFound(f"Path is not a directory: {requested}")
            raise NotFoundError(f"Directory not found: {requested}")

        entries: List[Entry] = []
        videos: List[_VideoCandidate] = []
        try:
            with os.scandir(directory) as iterator:
                children = list(iterator)
        except OSError as exc:
            LOGGER.error("Unable to read directory %s: %s", directory, exc)
            raise NotFoundError(f"Cannot read directory: {requested}") from exc

        for child in children:
            if child.name.startswith("."):
                continue
            child_path = Path(child.path)
            if not is_within(self.root, os.path.realpath(child_path)):
                LOGGER.debug("Skipping %s: resolves outside library root", child_path)
                continue
            try:
                stat = child.stat()
                child_is_dir = child.is_dir()
            except OSError as exc:
                LOGGER.debug("Skipping %s: %s", child_path, exc)
                continue

            relative = relative_path(self.root, child_path)
            if child_is_dir:
                entries.append(
                    Entry(name=child.name, path=relative, kind="directory", mtime=stat.st_mtime)
                )
            elif is_video(child.name):
                videos.append(
                    _VideoCandidate(
                        name=child.name,
                        path=child_path,
                        relative=relative,
                        size=stat.st_size,
                        mtime=stat.st_mtime,
                    )
                )

        if videos:
            workers = min(self.max_workers, len(videos))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="vidshelf-probe") as pool:
                entries.extend(pool.map(self._video_entry, videos))

        entries.sort(key=sort_key)
        return entries

    def _video_entry(self, candidate: _VideoCandidate) -> Entry:
        duration = 0.0
        try:
            duration = self.cache.get_metadata(candidate.path).duration
        except VidshelfError as exc:
            LOGGER.warning("Metadata unavailable for %s: %s", candidate.path, exc)
        return Entry(
            name=candidate.name,
            path=candidate.relative,
            kind="video",
            mtime=candidate.mtime,
            size=candidate.size,
            duration=duration,
        )
