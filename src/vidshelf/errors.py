"""Error taxonomy shared by the library, media and streaming layers.

Every error carries the HTTP status the web layer reports for it, so handlers
never need to inspect messages to pick a status code.
"""

from __future__ import annotations


class VidshelfError(Exception):
    """Base class for all request-level failures."""

    status_code = 500
    public_message = "Internal server error"


class InvalidPathError(VidshelfError):
    """A user supplied path resolves outside of the library root."""

    status_code = 400

    def __init__(self, message: str = "Invalid path") -> None:
        super().__init__(message)


class InvalidParameterError(VidshelfError):
    """A required query parameter is missing or malformed."""

    status_code = 400


class InvalidRangeError(VidshelfError):
    """Malformed or unsatisfiable Range header."""

    status_code = 400

    def __init__(self, message: str = "Invalid range") -> None:
        super().__init__(message)


class NotFoundError(VidshelfError):
    status_code = 404


class NotADirectoryFound(NotFoundError):
    """The listing target exists but is not a directory."""


class SubtitleNotFoundError(NotFoundError):
    """No subtitle track matches the requested language."""


class ProbeFailure(VidshelfError):
    """The metadata probe failed, timed out or produced unreadable output."""

    public_message = "Error reading video info"


class ExtractionFailure(VidshelfError):
    """The media tool could not produce a derived artifact."""

    public_message = "Error generating media artifact"


class StorageError(VidshelfError):
    """Filesystem failure while reading library content."""


class ConfigError(Exception):
    """Invalid startup configuration."""
