"""Client identifier resolution.

Rate limits are keyed by client identifier. Forwarding headers are supplied
by the caller and are trivially forged, so they are only honoured when the
deployment declares it runs behind a trusted reverse proxy
(APP_TRUST_PROXY=true) that overwrites them.
"""

from __future__ import annotations

from typing import Callable

from fastapi import Request

from lookup_gateway.core.config import AppSettings

ClientResolver = Callable[[Request], str]


def resolve_forwarded_client(request: Request, fallback: str) -> str:
    """Resolve the client from proxy headers.

    Order: first entry of X-Forwarded-For, then X-Real-IP, then fallback.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    return fallback


def resolve_peer_client(request: Request, fallback: str) -> str:
    """Resolve the client from the socket peer address."""
    if request.client and request.client.host:
        return request.client.host
    return fallback


def build_client_resolver(app_settings: AppSettings) -> ClientResolver:
    """Pick the resolution strategy declared by configuration.

    Args:
        app_settings: Application settings (trust_proxy, fallback_client_id).

    Returns:
        Callable mapping a request to its client identifier.
    """
    fallback = app_settings.fallback_client_id

    if app_settings.trust_proxy:
        return lambda request: resolve_forwarded_client(request, fallback)
    return lambda request: resolve_peer_client(request, fallback)
