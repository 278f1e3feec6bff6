"""Server-rendered listing fragment for progressive enhancement."""

from __future__ import annotations

import json
import posixpath
from html import escape
from pathlib import PurePosixPath
from typing import Iterable
from urllib.parse import quote

from vidshelf.models import Entry

UNKNOWN_DURATION = "⋯"


def display_name(name: str, *, strip_extension: bool = True) -> str:
    """Turn ``_`` and ``-`` into spaces, dropping a file extension."""
    stem = PurePosixPath(name).stem if strip_extension else name
    return stem.replace("_", " ").replace("-", " ")


def format_duration(seconds: float) -> str:
    if seconds <= 0:
        return UNKNOWN_DURATION
    whole = int(seconds)
    return f"{whole // 60:02d}:{whole % 60:02d}"


def parent_path(path: str) -> str:
    parent = posixpath.dirname(path.rstrip("/"))
    return parent if parent not in ("", ".") else "/"


def _browse_row(path: str, label: str) -> str:
    url = escape(f"/api/browse/html?path={quote(path)}")
    return (
        f'<li hx-get="{url}" hx-trigger="click" hx-target="#path-browser">'
        '<span class="material-symbols-rounded">folder</span>'
        f"<span>{escape(label)}</span>"
        "</li>"
    )


def _video_row(entry: Entry) -> str:
    quoted = quote(entry.path)
    play_arg = escape(json.dumps(entry.path), quote=True)
    return (
        f'<li onclick="playVideo({play_arg})">'
        '<span class="material-symbols-rounded video" data-hide-in-expanded="true">movie_info</span>'
        f'<img class="thumbnail" src="{escape(f"/api/video/thumbnail?path={quoted}")}" loading="lazy" alt="">'
        f'<span class="name">{escape(display_name(entry.name))}</span>'
        f'<span class="duration">{format_duration(entry.duration)}</span>'
        "</li>"
    )


def render_listing(path: str, entries: Iterable[Entry]) -> str:
    """Render ``entries`` as the ``<ul class="file-list">`` used by the browser pane."""
    rows = []
    if path not in ("", "/"):
        rows.append(_browse_row(parent_path(path), ".."))
    for entry in entries:
        if entry.is_directory:
            rows.append(_browse_row(entry.path, display_name(entry.name, strip_extension=False)))
        else:
            rows.append(_video_row(entry))
    return '<ul class="file-list">' + "".join(rows) + "</ul>"
