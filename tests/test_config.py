"""Tests for configuration parsing helpers and defaults."""

import pytest
from pydantic import ValidationError

from lookup_gateway.core.config import AppSettings, UpstreamSettings, parse_csv_set


class TestParseCsvSet:
    def test_parse_multiple_values(self) -> None:
        assert parse_csv_set("127.0.0.1,192.168.1.1") == {"127.0.0.1", "192.168.1.1"}

    def test_whitespace_and_empty_entries_dropped(self) -> None:
        assert parse_csv_set(" a , ,b ,, ") == {"a", "b"}

    def test_none_and_empty_return_empty_set(self) -> None:
        assert parse_csv_set(None) == set()
        assert parse_csv_set("") == set()


class TestDefaults:
    def test_rate_limit_defaults(self, monkeypatch) -> None:
        monkeypatch.delenv("APP_RATE_LIMIT_MAX_REQUESTS", raising=False)
        monkeypatch.delenv("APP_RATE_LIMIT_COOLDOWN_SECONDS", raising=False)
        app = AppSettings()

        assert app.rate_limit_max_requests == 100
        assert app.rate_limit_cooldown_seconds == 15
        assert app.rate_limit_enabled is True

    def test_upstream_defaults(self, monkeypatch) -> None:
        for name in ("RDAP_PRIMARY_BASE_URL", "RDAP_FALLBACK_BASE_URL", "RDAP_FALLBACK_CATEGORIES"):
            monkeypatch.delenv(name, raising=False)
        upstream = UpstreamSettings()

        assert upstream.primary_base_url == "https://rdap.org"
        assert upstream.fallback_base_url == "https://rdap.iana.org"
        assert upstream.fallback_categories == "domain"

    def test_env_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("APP_RATE_LIMIT_MAX_REQUESTS", "5")
        monkeypatch.setenv("APP_TRUST_PROXY", "false")

        app = AppSettings()

        assert app.rate_limit_max_requests == 5
        assert app.trust_proxy is False

    def test_invalid_quota_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AppSettings(rate_limit_max_requests=0)
