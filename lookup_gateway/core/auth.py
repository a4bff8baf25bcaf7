"""Trusted-caller bypass.

Callers presenting the configured admin key in X-Admin-Key skip admission
control entirely and are not counted. The key is compared in constant time
and never logged; only a short hash of a rejected key is.
"""

from __future__ import annotations

import hmac
import logging

from lookup_gateway.core.logging import fingerprint

logger = logging.getLogger(__name__)

# Value shipped as the default by earlier deployments; never honoured.
INSECURE_ADMIN_KEY = "secret-admin-key"


def admin_key_is_usable(configured_key: str | None) -> bool:
    """Return True when configured_key may be used for bypass."""
    return bool(configured_key) and configured_key != INSECURE_ADMIN_KEY


def is_admin_bypass(provided_key: str | None, configured_key: str | None) -> bool:
    """Check whether the presented admin key grants a rate limit bypass.

    Args:
        provided_key: Value of the X-Admin-Key header, if any.
        configured_key: Admin key from settings.

    Returns:
        True if the keys match and bypass is enabled.
    """
    if not provided_key or not admin_key_is_usable(configured_key):
        return False

    matched = hmac.compare_digest(provided_key.encode(), configured_key.encode())
    if not matched:
        logger.warning(
            "auth.admin_key_rejected",
            extra={"admin_key_hash": fingerprint(provided_key)},
        )
    return matched
