"""Full and partial-content responses for library videos."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Dict, Iterator

from vidshelf.errors import NotFoundError, StorageError
from vidshelf.library.lister import is_video
from vidshelf.library.paths import resolve_path
from vidshelf.streaming.ranges import content_type_for, parse_range

LOGGER = logging.getLogger(__name__)

CHUNK_SIZE = 1 << 20


@dataclass(slots=True)
class StreamPlan:
    """Status, headers and the open file slice for one stream request."""

    path: Path
    status_code: int
    headers: Dict[str, str]
    handle: BinaryIO
    start: int
    length: int
    closed: bool = field(default=False)

    def close(self) -> None:
        if not self.closed:
            self.handle.close()
            self.closed = True

    def iter_body(self, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
        """Yield exactly ``length`` bytes starting at ``start``, then close the file.

        Raises:
            StorageError: if the file ends early or cannot be read, so a
            truncated body is never reported as a complete response.
        """
        try:
            self.handle.seek(self.start)
            remaining = self.length
            while remaining > 0:
                data = self.handle.read(min(chunk_size, remaining))
                if not data:
                    raise StorageError(
                        f"{self.path.name} ended {remaining} bytes before the requested range"
                    )
                remaining -= len(data)
                yield data
        except OSError as exc:
            LOGGER.error("Read error while streaming %s: %s", self.path, exc)
            raise StorageError(f"Read error while streaming {self.path.name}") from exc
        finally:
            self.close()


class RangeStreamer:
    """Prepares byte-range responses for files inside the library root."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def prepare(self, requested: str, range_header: str | None = None) -> StreamPlan:
        """Validate ``requested``, open it and work out the response framing.

        The returned plan owns an open file handle; callers either consume
        :meth:`StreamPlan.iter_body` or call :meth:`StreamPlan.close`.

        Raises:
            InvalidPathError: if ``requested`` escapes the library root.
            NotFoundError: if the file is missing or is not a video.
            InvalidRangeError: if ``range_header`` is malformed or unsatisfiable.
            StorageError: if the file cannot be opened.
        """
        path = resolve_path(self.root, requested)
        if not is_video(path.name):
            raise NotFoundError(f"Not a video file: {requested}")

        try:
            handle = path.open("rb")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as exc:
            raise NotFoundError(f"File not found: {requested}") from exc
        except OSError as exc:
            LOGGER.error("Unable to open %s: %s", path, exc)
            raise StorageError(f"Unable to open {requested}") from exc

        try:
            size = _file_size(handle)
            headers = {
                "Content-Type": content_type_for(path),
                "Accept-Ranges": "bytes",
            }
            if not range_header:
                headers["Content-Length"] = str(size)
                return StreamPlan(path, 200, headers, handle, start=0, length=size)

            byte_range = parse_range(range_header, size)
            headers["Content-Range"] = byte_range.content_range(size)
            headers["Content-Length"] = str(byte_range.length)
            return StreamPlan(
                path, 206, headers, handle, start=byte_range.start, length=byte_range.length
            )
        except Exception:
            handle.close()
            raise


def _file_size(handle: BinaryIO) -> int:
    try:
        return os.fstat(handle.fileno()).st_size
    except OSError as exc:
        raise StorageError("Unable to stat file") from exc
