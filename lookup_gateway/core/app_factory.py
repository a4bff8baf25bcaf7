from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, state, middleware, handlers, routers)
so tests can build isolated apps with their own settings and rate limit state.
"""

import logging

from fastapi import FastAPI

from lookup_gateway import __version__
from lookup_gateway.adapters.rate_limit.in_memory import InMemoryRateLimitStore
from lookup_gateway.adapters.rdap.factory import create_rdap_fetcher
from lookup_gateway.api.routes import health_router, lookup_router
from lookup_gateway.core.auth import INSECURE_ADMIN_KEY
from lookup_gateway.core.client_identity import build_client_resolver
from lookup_gateway.core.config import Settings, parse_csv_set, settings as default_settings
from lookup_gateway.core.exception_handlers import setup_exception_handlers
from lookup_gateway.core.logging import configure_logging
from lookup_gateway.core.middleware import request_id_middleware
from lookup_gateway.core.openapi import apply_openapi_customizations
from lookup_gateway.services.admission_service import AdmissionController

logger = logging.getLogger(__name__)


def build_admission_controller(app_settings: Settings) -> AdmissionController:
    """Create an admission controller with its own empty store."""
    return AdmissionController(
        InMemoryRateLimitStore(),
        allowlist=parse_csv_set(app_settings.app.allowlist),
        max_requests=app_settings.app.rate_limit_max_requests,
        cooldown_seconds=app_settings.app.rate_limit_cooldown_seconds,
    )


def _warn_on_risky_configuration(app_settings: Settings) -> None:
    if app_settings.app.admin_key == INSECURE_ADMIN_KEY:
        logger.warning(
            "config.insecure_admin_key",
            extra={"hint": "The well-known default admin key is ignored; set APP_ADMIN_KEY to a random secret"},
        )
    if app_settings.app.trust_proxy:
        logger.info(
            "config.trust_proxy_enabled",
            extra={"hint": "Client identity comes from X-Forwarded-For/X-Real-IP; a trusted proxy must overwrite them"},
        )


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to use; defaults to the global settings.

    Returns:
        Configured FastAPI app with state, middleware, handlers and routers.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)
    _warn_on_risky_configuration(cfg)

    app = FastAPI(
        title="RDAP Lookup Gateway",
        description=(
            "Rate-limited proxy for RDAP lookups of domains, IP networks, ASNs and "
            "entities. Queries a primary RDAP service and, for domains, falls back "
            "to an authoritative service. Clients are limited to a lifetime quota "
            "and a cooldown between lookups."
        ),
        version=__version__,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Process-wide state, owned by this app instance
    app.state.settings = cfg
    app.state.admission_controller = build_admission_controller(cfg)
    app.state.client_resolver = build_client_resolver(cfg.app)
    app.state.rdap_fetcher = create_rdap_fetcher(cfg.upstream)

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(lookup_router, prefix="/api")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags)
    apply_openapi_customizations(app)

    return app
