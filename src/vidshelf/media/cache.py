"""Time-bounded cache of probed media metadata."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict

from vidshelf.media.probe import MediaProber
from vidshelf.models import MediaMetadata

LOGGER = logging.getLogger(__name__)

DEFAULT_TTL = 3600.0


@dataclass(frozen=True, slots=True)
class _CacheEntry:
    metadata: MediaMetadata
    stored_at: float


class MetadataCache:
    """Memoizes :class:`MediaProber` results per absolute path for ``ttl`` seconds.

    One instance is shared by every request handler. Failed probes are never
    stored, so a transient error is retried on the next access. Concurrent
    misses on the same key may each probe; the last write wins.
    """

    def __init__(
        self,
        prober: MediaProber,
        *,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.prober = prober
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    def get_metadata(self, path: Path) -> MediaMetadata:
        """Return cached metadata for ``path``, probing on miss or expiry.

        Raises:
            ProbeFailure: propagated from the prober; nothing is cached.
        """
        key = str(path)
        with self._lock:
            entry = self._entries.get(key)
        if entry is not None and self._clock() - entry.stored_at < self.ttl:
            return entry.metadata

        # Probe outside the lock so slow files never block other keys.
        metadata = self.prober.probe(path)
        with self._lock:
            self._entries[key] = _CacheEntry(metadata=metadata, stored_at=self._clock())
        LOGGER.debug("Cached metadata for %s", key)
        return metadata

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
