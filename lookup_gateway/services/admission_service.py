"""Per-client admission control for RDAP lookups.

A client identifier is admitted when it is allow-listed, or when it has not
used up its lifetime quota and its last counted lookup is older than the
cooldown. Quota is checked before cooldown, so a client at the ceiling always
sees the quota message.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from lookup_gateway.adapters.rate_limit.base import AbstractRateLimitStore, ClientRecord

logger = logging.getLogger(__name__)

QUOTA_REASON = "You have reached the maximum of {limit} queries for your IP address."
COOLDOWN_REASON = "Please wait at least {seconds} seconds before making another query."


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of an admission check.

    Attributes:
        allowed: Whether the lookup may proceed.
        reason: Human-readable denial reason ("" when allowed).
        retry_after_seconds: Seconds until the cooldown ends, for cooldown denials.
    """

    allowed: bool
    reason: str = ""
    retry_after_seconds: int | None = None


ALLOWED = AdmissionDecision(allowed=True)


class AdmissionController:
    """Decides whether a client may perform a lookup and counts completed ones.

    Attributes:
        store: Rate limit store owned by this controller.
        allowlist: Client identifiers exempt from quota and cooldown.
    """

    def __init__(
        self,
        store: AbstractRateLimitStore,
        *,
        allowlist: Iterable[str] = (),
        max_requests: int = 100,
        cooldown_seconds: int = 15,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the controller.

        Args:
            store: Store holding one ClientRecord per client identifier.
            allowlist: Client identifiers that are always admitted.
            max_requests: Lifetime quota of counted lookups per client.
            cooldown_seconds: Minimum spacing between counted lookups.
            clock: Time source returning seconds.

        Raises:
            ValueError: If max_requests or cooldown_seconds are invalid.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be >= 0")

        self.store = store
        self.allowlist = frozenset(allowlist)
        self._max_requests = max_requests
        self._cooldown_seconds = cooldown_seconds
        self._clock = clock

    def is_allowlisted(self, client_id: str) -> bool:
        return client_id in self.allowlist

    def check(self, client_id: str) -> AdmissionDecision:
        """Decide whether client_id may perform a lookup now.

        Does not count the lookup; call record() once it has completed.

        Args:
            client_id: Resolved client identifier.

        Returns:
            AdmissionDecision with the denial reason when not allowed.
        """
        if self.is_allowlisted(client_id):
            return ALLOWED

        record = self.store.get(client_id)

        if record.request_count >= self._max_requests:
            return AdmissionDecision(
                allowed=False,
                reason=QUOTA_REASON.format(limit=self._max_requests),
            )

        # A client without a counted lookup has no cooldown to wait out.
        if record.has_history:
            elapsed = self._clock() - record.last_request_at
            if elapsed < self._cooldown_seconds:
                return AdmissionDecision(
                    allowed=False,
                    reason=COOLDOWN_REASON.format(seconds=self._cooldown_seconds),
                    retry_after_seconds=max(1, math.ceil(self._cooldown_seconds - elapsed)),
                )

        return ALLOWED

    def record(self, client_id: str) -> ClientRecord | None:
        """Count one completed lookup for client_id.

        Allow-listed clients are not tracked.

        Returns:
            The updated record, or None for allow-listed clients.
        """
        if self.is_allowlisted(client_id):
            return None

        updated = self.store.record(client_id, now=self._clock())
        logger.debug(
            "admission.recorded",
            extra={
                "request_count": updated.request_count,
                "limit": self._max_requests,
            },
        )
        return updated
