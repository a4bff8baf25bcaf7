"""Factory for building the RDAP fetcher from settings."""

from lookup_gateway.adapters.rdap.base import AbstractRdapFetcher
from lookup_gateway.adapters.rdap.fallback import FallbackRdapFetcher, RdapSource, any_category
from lookup_gateway.core.config import UpstreamSettings, parse_csv_set, settings
from lookup_gateway.core.errors import ValidationAppError


def create_rdap_fetcher(upstream: UpstreamSettings | None = None) -> AbstractRdapFetcher:
    """Build the primary/fallback source chain described by configuration.

    The primary source serves every category. The fallback source is only
    consulted for the categories listed in RDAP_FALLBACK_CATEGORIES
    ("domain" by default, matched case-sensitively) and is omitted when its
    URL is empty.

    Args:
        upstream: Upstream settings; defaults to the global settings.

    Returns:
        AbstractRdapFetcher: Configured fetcher instance.

    Raises:
        ValidationAppError: If no primary URL is configured.
    """
    cfg = upstream or settings.upstream

    if not cfg.primary_base_url:
        raise ValidationAppError(
            code="rdap_missing_primary_url",
            message="RDAP_PRIMARY_BASE_URL must not be empty",
        )

    sources = [RdapSource(name="primary", base_url=cfg.primary_base_url, applies_to=any_category)]

    fallback_categories = frozenset(parse_csv_set(cfg.fallback_categories))
    if cfg.fallback_base_url and fallback_categories:
        sources.append(
            RdapSource(
                name="fallback",
                base_url=cfg.fallback_base_url,
                applies_to=lambda category: category in fallback_categories,
            )
        )

    return FallbackRdapFetcher(
        sources,
        timeout_seconds=cfg.timeout_seconds,
        user_agent=cfg.user_agent,
    )
