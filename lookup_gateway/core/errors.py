"""Error types raised along the lookup path.

Each subclass knows the HTTP status it maps to and the message a client
sees, so the exception handlers stay a thin translation layer. ``details``
is for logs only and is never sent to clients.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured context attached to an error for observability."""

    hint: str
    limit: int
    retry_after: int
    source: str
    url: str
    status_code: int
    attempts: list[dict[str, Any]]
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for gateway failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for logs.
    """

    http_status: ClassVar[int] = 400

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)

    def client_message(self) -> str:
        return self.message


class ValidationAppError(AppError):
    """Raised when the lookup payload or a setting is missing or malformed."""


class AdmissionDeniedError(AppError):
    """Raised when a client exceeded its quota or is inside its cooldown."""

    http_status: ClassVar[int] = 429

    @property
    def retry_after(self) -> int | None:
        return (self.details or {}).get("retry_after")


class UpstreamAppError(AppError):
    """Raised when every RDAP source failed or returned unparsable data."""

    http_status: ClassVar[int] = 500

    def client_message(self) -> str:
        return f"An error occurred: {self.message}"
