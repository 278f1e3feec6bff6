"""Containment checks for user supplied library paths."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from vidshelf.errors import InvalidPathError

LOGGER = logging.getLogger(__name__)

ROOT_MARKERS = ("", "/", ".")
SEPARATORS = os.sep + (os.altsep or "")


def resolve_path(root: Path, user_path: str | None) -> Path:
    """Resolve ``user_path`` relative to ``root`` and ensure it stays inside it.

    ``root`` must already be absolute and symlink-free. ``..`` and ``.``
    segments are collapsed, symlinks are followed, and the result must equal
    ``root`` or live beneath it on a path-separator boundary, so ``/videos-evil``
    never passes as a child of ``/videos``.

    Raises:
        InvalidPathError: if the path cannot be resolved or escapes ``root``.
    """
    LOGGER.debug("resolve_path: input path: %r", user_path)
    if user_path is None or user_path.strip() in ROOT_MARKERS:
        return root

    if "\0" in user_path:
        raise InvalidPathError()

    # Leading separators address the library root, not the filesystem root.
    # On POSIX a backslash is an ordinary file name character.
    relative = user_path.lstrip(SEPARATORS)
    try:
        candidate = os.path.normpath(os.path.join(str(root), relative))
        real_path = os.path.realpath(candidate)
    except (OSError, ValueError) as exc:
        raise InvalidPathError() from exc

    if not is_within(root, real_path):
        LOGGER.warning("Rejected path outside library root: %r", user_path)
        raise InvalidPathError()

    LOGGER.debug("resolve_path: sanitized path: %r", real_path)
    return Path(real_path)


def is_within(root: Path, path: str | Path) -> bool:
    """Return True if ``path`` is ``root`` itself or lies beneath it."""
    root_str = str(root).rstrip(os.sep) or os.sep
    path_str = str(path)
    if path_str == root_str:
        return True
    prefix = root_str if root_str.endswith(os.sep) else root_str + os.sep
    return path_str.startswith(prefix)


def relative_path(root: Path, path: Path) -> str:
    """Express ``path`` relative to ``root`` with forward slashes."""
    return path.relative_to(root).as_posix()
