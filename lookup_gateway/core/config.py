"""Gateway configuration built on pydantic-settings.

Settings are grouped by concern, each group reading its own env prefix:

- ``APP_``: admission control, admin bypass, client identity
- ``RDAP_``: upstream RDAP sources and HTTP client behaviour
- ``LOG_``: log level, format and destination

``APP_ENV`` (development, testing, staging, production) selects an optional
``.env.<APP_ENV>`` file at the project root whose values are loaded into the
process environment before any group is read.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}


def _resolve_env_file(app_env: str) -> Path | None:
    candidate = PROJECT_ROOT / ENV_FILE_MAP.get(app_env, ENV_FILE_MAP["development"])
    return candidate if candidate.is_file() else None


# Nested BaseSettings do not share an env_file, so populate os.environ once
_env_file = _resolve_env_file(APP_ENV)
if _env_file is not None:
    load_dotenv(_env_file, override=True)


def parse_csv_set(values: str | None) -> set[str]:
    """Parse a comma-separated setting into a set.

    Args:
        values: Comma-separated string, or None.

    Returns:
        Set of trimmed, non-empty entries.

    Examples:
        >>> parse_csv_set(" 127.0.0.1 ,, ")
        {'127.0.0.1'}
        >>> parse_csv_set(None)
        set()
    """
    if not values:
        return set()

    return {value.strip() for value in values.split(",") if value.strip()}


class AppSettings(BaseSettings):
    """Admission control and client identification settings."""

    admin_key: str | None = Field(
        None,
        description="Shared secret accepted in X-Admin-Key to bypass rate limiting (unset disables bypass)",
    )
    allowlist: str | None = Field(
        None,
        description="Comma-separated client identifiers exempt from rate limiting",
    )
    trust_proxy: bool = Field(
        False,
        description="Derive the client identifier from X-Forwarded-For / X-Real-IP (only behind a trusted proxy)",
    )
    fallback_client_id: str = Field(
        "127.0.0.1",
        description="Client identifier used when no address can be determined",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client quota and cooldown checks",
    )
    rate_limit_max_requests: int = Field(
        100,
        description="Maximum number of counted lookups per client for the process lifetime",
        ge=1,
    )
    rate_limit_cooldown_seconds: int = Field(
        15,
        description="Minimum number of seconds between two counted lookups of a client",
        ge=0,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include Retry-After header when a client is inside its cooldown",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class UpstreamSettings(BaseSettings):
    """RDAP upstream sources."""

    primary_base_url: str = Field(
        "https://rdap.org",
        description="Primary RDAP service queried for every category",
    )
    fallback_base_url: str = Field(
        "https://rdap.iana.org",
        description="Authoritative RDAP service queried when the primary fails",
    )
    fallback_categories: str = Field(
        "domain",
        description="Comma-separated categories for which the fallback source is tried",
    )
    timeout_seconds: float = Field(
        20.0,
        description="Timeout applied to each upstream request in seconds",
        gt=0,
    )
    user_agent: str = Field(
        "rdap-lookup-gateway/0.1",
        description="User-Agent sent to upstream RDAP services",
    )

    model_config = SettingsConfigDict(
        env_prefix="RDAP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


def _build_app_settings() -> AppSettings:
    """Build app settings from environment.

    BaseSettings populates fields from environment variables; static type
    checkers still treat fields as constructor arguments.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_upstream_settings() -> UpstreamSettings:
    return UpstreamSettings()  # type: ignore[call-arg]


def _build_log_settings() -> LogSettings:
    return LogSettings()  # type: ignore[call-arg]


class Settings(BaseSettings):
    """All settings groups. Invalid values fail at startup."""

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    upstream: UpstreamSettings = Field(default_factory=_build_upstream_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
