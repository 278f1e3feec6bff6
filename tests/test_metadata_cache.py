"""Tests for MetadataCache."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from vidshelf.errors import ProbeFailure
from vidshelf.media.cache import MetadataCache
from vidshelf.models import MediaMetadata

from conftest import FakeClock, FakeProber


@pytest.fixture
def cache(prober: FakeProber, clock: FakeClock) -> MetadataCache:
    return MetadataCache(prober, ttl=3600, clock=clock)


class TestMetadataCache:
    """TTL and failure behaviour."""

    def test_second_call_within_ttl_is_cached(
        self, cache: MetadataCache, prober: FakeProber, clock: FakeClock
    ) -> None:
        path = Path("/videos/a.mp4")
        first = cache.get_metadata(path)
        clock.advance(3599)
        second = cache.get_metadata(path)

        assert first is second
        assert len(prober.calls) == 1

    def test_expired_entry_is_probed_again(
        self, cache: MetadataCache, prober: FakeProber, clock: FakeClock
    ) -> None:
        path = Path("/videos/a.mp4")
        cache.get_metadata(path)
        clock.advance(3600)
        prober.results["a.mp4"] = MediaMetadata(duration=99.0)

        refreshed = cache.get_metadata(path)

        assert refreshed.duration == 99.0
        assert len(prober.calls) == 2

    def test_keys_are_independent(self, cache: MetadataCache, prober: FakeProber) -> None:
        prober.results["a.mp4"] = MediaMetadata(duration=1.0)
        prober.results["b.mp4"] = MediaMetadata(duration=2.0)

        assert cache.get_metadata(Path("/v/a.mp4")).duration == 1.0
        assert cache.get_metadata(Path("/v/b.mp4")).duration == 2.0
        assert len(cache) == 2

    def test_failures_are_not_cached(self, cache: MetadataCache, prober: FakeProber) -> None:
        """A transient failure is retried on the next access."""
        path = Path("/videos/flaky.mp4")
        prober.failures.add("flaky.mp4")
        with pytest.raises(ProbeFailure):
            cache.get_metadata(path)
        assert len(cache) == 0

        prober.failures.clear()
        assert cache.get_metadata(path) == prober.default
        assert len(prober.calls) == 2

    def test_fresh_instances_do_not_share_state(self, prober: FakeProber) -> None:
        path = Path("/videos/a.mp4")
        MetadataCache(prober).get_metadata(path)
        MetadataCache(prober).get_metadata(path)
        assert len(prober.calls) == 2

    def test_concurrent_access(self, cache: MetadataCache, prober: FakeProber) -> None:
        """Many threads hitting overlapping keys all get complete results."""
        paths = [Path(f"/videos/{i % 5}.mp4") for i in range(200)]
        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(cache.get_metadata, paths))

        assert all(result == prober.default for result in results)
        assert len(cache) == 5
        assert len(prober.calls) >= 5
