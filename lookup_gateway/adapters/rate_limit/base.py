"""Rate limit store interfaces.

The admission controller depends on this abstraction (not the concrete
implementation) so the storage backend can be swapped later with minimal
changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ClientRecord:
    """Rate limit state of one client identifier.

    Attributes:
        request_count: Counted lookups since process start. Only increases.
        last_request_at: Clock reading of the last counted lookup, or None
            when the client has never completed one.
    """

    request_count: int = 0
    last_request_at: float | None = None

    @property
    def has_history(self) -> bool:
        return self.last_request_at is not None


class AbstractRateLimitStore(ABC):
    """Interface for per-client rate limit stores."""

    @abstractmethod
    def get(self, key: str) -> ClientRecord:
        """Return the record for key, creating an empty one on first access.

        Args:
            key: Client identifier.

        Returns:
            Snapshot of the client's record.
        """
        raise NotImplementedError

    @abstractmethod
    def record(self, key: str, *, now: float) -> ClientRecord:
        """Count one completed lookup for key.

        Args:
            key: Client identifier.
            now: Clock reading of the completed lookup.

        Returns:
            The updated record.
        """
        raise NotImplementedError
