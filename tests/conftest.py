"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before any import of lookup_gateway so the
global settings object is built from them.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("APP_ADMIN_KEY", "test-admin-key")
os.environ.setdefault("APP_TRUST_PROXY", "true")
os.environ.setdefault("APP_ALLOWLIST", "")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from lookup_gateway.core.config import AppSettings, LogSettings, Settings, UpstreamSettings


@pytest.fixture
def make_settings():
    """Build isolated Settings with overrides for the app section."""

    def _make(**app_overrides) -> Settings:
        app_values = {
            "admin_key": "test-admin-key",
            "allowlist": "",
            "trust_proxy": True,
            "fallback_client_id": "127.0.0.1",
        }
        app_values.update(app_overrides)
        return Settings(
            app=AppSettings(**app_values),
            upstream=UpstreamSettings(
                primary_base_url="https://rdap.test",
                fallback_base_url="https://fallback.rdap.test",
            ),
            log=LogSettings(level="WARNING"),
        )

    return _make
