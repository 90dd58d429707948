"""
Tests for settings loading.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from addrindex.config import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        monkeypatch.chdir(tmp_path)
        settings = Settings()

        assert settings.network == "mainnet"
        assert settings.electrum_host == "127.0.0.1"
        assert settings.electrum_port == 50001
        assert settings.electrum_tls_enabled is False
        assert settings.cache_ttl == 2.0
        assert settings.page_size == 10
        assert settings.http_port == 8999

    def test_environment_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("ELECTRUM_HOST", "electrum.example.org")
        monkeypatch.setenv("ELECTRUM_PORT", "50002")
        monkeypatch.setenv("ELECTRUM_TLS_ENABLED", "true")
        monkeypatch.setenv("network", "signet")

        settings = Settings()

        assert settings.electrum_host == "electrum.example.org"
        assert settings.electrum_port == 50002
        assert settings.electrum_tls_enabled is True
        assert settings.network == "signet"

    def test_env_file(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("CACHE_TTL=5\nPAGE_SIZE=5\n")

        settings = Settings()

        assert settings.cache_ttl == 5.0
        assert settings.page_size == 5

    def test_unknown_network_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(network="litecoin")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"electrum_port": 0},
            {"electrum_port": 70000},
            {"cache_ttl": -1},
            {"page_size": 0},
            {"page_size": 11},
            {"page_size": 25},
            {"electrum_request_timeout": 0},
        ],
    )
    def test_out_of_range_rejected(self, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            Settings(**overrides)

    def test_page_size_above_ten_from_environment(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path
    ) -> None:
        """A page can never be configured larger than 10 transactions."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("PAGE_SIZE", "25")

        with pytest.raises(ValidationError):
            Settings()
