"""Tests for the frontend module."""

from __future__ import annotations

from vidshelf.web.frontend import _load_template


class TestLoadTemplate:
    """Tests for _load_template function."""

    def test_load_template_returns_string(self) -> None:
        """Template is loaded as a string."""
        result = _load_template()
        assert isinstance(result, str)
        assert "playVideo" in result
        assert "{{ version }}" not in result
