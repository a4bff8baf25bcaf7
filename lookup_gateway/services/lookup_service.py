"""Lookup orchestration: payload validation, upstream fetch, accounting.

Admission has already run by the time this service is called. The service
handles the remaining steps of a lookup:
- Validate the payload shape
- Fetch the object through the RDAP fallback chain
- Count the lookup for the client, only after a successful fetch
"""

from __future__ import annotations

import json
import logging
from typing import Any

from lookup_gateway.adapters.rdap.base import AbstractRdapFetcher
from lookup_gateway.core.admission import AdmissionContext
from lookup_gateway.core.errors import ValidationAppError
from lookup_gateway.schemas.lookup import LookupRequest
from lookup_gateway.services.admission_service import AdmissionController

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = 'Please provide both "type" and "object".'


def _required_text(payload: dict[str, Any], field: str) -> str | None:
    # Numbers (an AS number sent unquoted) are forwarded as their decimal text
    value = payload.get(field)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value) if value else None
    if not isinstance(value, str) or not value:
        return None
    return value


def parse_lookup_payload(raw_body: bytes) -> LookupRequest:
    """Decode and validate a lookup request body.

    Args:
        raw_body: Raw HTTP request body.

    Returns:
        LookupRequest with type and object forwarded unchanged.

    Raises:
        ValidationAppError: If the body is not a JSON object or either field
            is missing, empty or neither a string nor an integer.
    """
    try:
        payload = json.loads(raw_body) if raw_body else None
    except ValueError as exc:
        raise ValidationAppError(
            code="lookup_invalid_body",
            message=MISSING_FIELDS_MESSAGE,
            details={"hint": "Request body must be a JSON object", "context": {"error": str(exc)}},
        ) from exc

    if not isinstance(payload, dict):
        raise ValidationAppError(
            code="lookup_invalid_body",
            message=MISSING_FIELDS_MESSAGE,
            details={"hint": "Request body must be a JSON object"},
        )

    object_type = _required_text(payload, "type")
    object_value = _required_text(payload, "object")
    if object_type is None or object_value is None:
        raise ValidationAppError(code="lookup_missing_fields", message=MISSING_FIELDS_MESSAGE)

    return LookupRequest(type=object_type, object=object_value)


class LookupService:
    """Service performing admitted RDAP lookups.

    Attributes:
        fetcher: RDAP fetcher implementing the primary/fallback chain.
        admission: Controller counting completed lookups.
    """

    def __init__(self, fetcher: AbstractRdapFetcher, admission: AdmissionController) -> None:
        self.fetcher = fetcher
        self.admission = admission

    async def lookup(self, raw_body: bytes, context: AdmissionContext) -> Any:
        """Run a lookup for an admitted client.

        Args:
            raw_body: Raw request body carrying "type" and "object".
            context: Admission outcome for the client.

        Returns:
            The upstream JSON body, unchanged.

        Raises:
            ValidationAppError: If the payload is invalid (nothing is fetched).
            UpstreamAppError: If the fetch failed (nothing is recorded).
        """
        # Step 1: Validate payload
        request = parse_lookup_payload(raw_body)

        # Step 2: Fetch through the source chain
        data = await self.fetcher.fetch_object(request.type, request.object)

        # Step 3: Count the lookup unless the caller bypassed admission
        if not context.bypassed:
            self.admission.record(context.client_id)

        logger.info(
            "lookup.completed",
            extra={"category": request.type, "bypassed": context.bypassed},
        )
        return data
