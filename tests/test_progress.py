"""
Tests for loading progress tracking.
"""

from __future__ import annotations

from addrindex.progress import LoadingIndicators


class TestLoadingIndicators:
    def test_set_and_get(self) -> None:
        indicators = LoadingIndicators()
        indicators.set_progress("address-a", 50)
        assert indicators.get_progress("address-a") == 50.0
        assert indicators.get_progress("address-b") is None

    def test_clamped(self) -> None:
        indicators = LoadingIndicators()
        indicators.set_progress("low", -5)
        indicators.set_progress("high", 120)
        assert indicators.get_progress("low") == 0.0
        assert indicators.get_progress("high") == 100.0

    def test_rounded(self) -> None:
        """Fractions of a page are reported with two decimals."""
        indicators = LoadingIndicators()
        indicators.set_progress("key", 1 / 3 * 100)
        assert indicators.get_progress("key") == 33.33

    def test_get_all_is_a_copy(self) -> None:
        indicators = LoadingIndicators()
        indicators.set_progress("key", 10)
        snapshot = indicators.get_all()
        snapshot["key"] = 99
        assert indicators.get_progress("key") == 10.0

    def test_clear(self) -> None:
        indicators = LoadingIndicators()
        indicators.set_progress("key", 10)
        indicators.clear("key")
        indicators.clear("missing")
        assert indicators.get_all() == {}
