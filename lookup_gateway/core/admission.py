"""Admission dependency for FastAPI routes.

This module wires client identification, the admin bypass and the admission
controller into the HTTP layer. Routes depend on ``enforce_admission`` only.

Order of evaluation:
1. Resolve the client identifier.
2. A valid X-Admin-Key bypasses everything below and is never counted.
3. The admission controller checks allow-list, quota and cooldown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Header, Request

from lookup_gateway.core.auth import is_admin_bypass
from lookup_gateway.core.config import Settings
from lookup_gateway.core.client_identity import ClientResolver
from lookup_gateway.core.errors import AdmissionDeniedError
from lookup_gateway.core.logging import fingerprint
from lookup_gateway.services.admission_service import AdmissionController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdmissionContext:
    """Admission outcome handed to the route.

    Attributes:
        client_id: Resolved client identifier.
        bypassed: True when a valid admin key was presented.
    """

    client_id: str
    bypassed: bool = False


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_admission_controller(request: Request) -> AdmissionController:
    """Return the admission controller owned by the running app."""
    return request.app.state.admission_controller


def get_client_resolver(request: Request) -> ClientResolver:
    return request.app.state.client_resolver


async def enforce_admission(
    request: Request,
    x_admin_key: Annotated[str | None, Header(alias="X-Admin-Key")] = None,
) -> AdmissionContext:
    """FastAPI dependency enforcing per-client admission.

    Args:
        request: FastAPI request.
        x_admin_key: Optional admin bypass key from the X-Admin-Key header.

    Returns:
        AdmissionContext for the route to record the lookup after success.

    Raises:
        AdmissionDeniedError: When the client exceeded its quota or is inside
            its cooldown (mapped to HTTP 429).
    """

    settings = get_settings(request)
    client_id = get_client_resolver(request)(request)
    client_hash = fingerprint(client_id)

    if is_admin_bypass(x_admin_key, settings.app.admin_key):
        logger.info("admission.bypass", extra={"client_hash": client_hash})
        return AdmissionContext(client_id=client_id, bypassed=True)

    if not settings.app.rate_limit_enabled:
        return AdmissionContext(client_id=client_id)

    decision = get_admission_controller(request).check(client_id)
    if decision.allowed:
        logger.debug("admission.allowed", extra={"client_hash": client_hash})
        return AdmissionContext(client_id=client_id)

    code = "cooldown_active" if decision.retry_after_seconds is not None else "quota_exceeded"
    logger.warning(
        "admission.denied",
        extra={
            "client_hash": client_hash,
            "reason_code": code,
            "retry_after_s": decision.retry_after_seconds,
        },
    )

    details = {"limit": settings.app.rate_limit_max_requests}
    if decision.retry_after_seconds is not None:
        details["retry_after"] = decision.retry_after_seconds

    raise AdmissionDeniedError(code=code, message=decision.reason, details=details)
