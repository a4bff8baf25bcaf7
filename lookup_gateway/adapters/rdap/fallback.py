"""RDAP fetcher backed by an ordered chain of upstream sources.

Each source declares which categories it serves. For a lookup the applicable
sources are tried once each, in order, and the first 2xx answer wins. This is
a fallback chain, not a retry loop: there is no backoff and no repeated
attempt against the same source.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Sequence
from urllib.parse import quote

import httpx

from lookup_gateway.adapters.rdap.base import AbstractRdapFetcher
from lookup_gateway.core.errors import UpstreamAppError

logger = logging.getLogger(__name__)

RDAP_ACCEPT = "application/rdap+json, application/json;q=0.9, */*;q=0.1"


def any_category(category: str) -> bool:
    return True


@dataclass(frozen=True)
class RdapSource:
    """One upstream RDAP service.

    Attributes:
        name: Label used in logs and error details ("primary", "fallback").
        base_url: Service origin, e.g. "https://rdap.org".
        applies_to: Predicate selecting the categories this source serves.
    """

    name: str
    base_url: str
    applies_to: Callable[[str], bool] = any_category

    def build_url(self, category: str, value: str) -> str:
        # "/" and ":" stay literal so CIDR blocks and IPv6 addresses keep RDAP path syntax
        return f"{self.base_url.rstrip('/')}/{quote(category, safe='')}/{quote(value, safe='/:')}"


@dataclass(frozen=True)
class TierFailure:
    """A source that did not produce a usable answer."""

    source: str
    url: str
    status: str
    status_code: int | None = None


def reject_constant(name: str) -> Any:
    """Refuse NaN and Infinity, which cannot be sent back as strict JSON."""
    raise ValueError(f"non-finite number {name} is not allowed")


def finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number {text} overflows to a non-finite float")
    return value


def describe_status(response: httpx.Response) -> str:
    """Return the reason phrase of a response, or its code when the phrase is empty."""
    return response.reason_phrase or str(response.status_code)


class FallbackRdapFetcher(AbstractRdapFetcher):
    """Fetch RDAP objects, falling back along the configured source chain.

    Uses httpx with async support; one client is opened per lookup and shared
    by every tier of that lookup.
    """

    def __init__(
        self,
        sources: Sequence[RdapSource],
        *,
        timeout_seconds: float = 20.0,
        user_agent: str | None = None,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            sources: Ordered source chain; the first applicable source is the primary.
            timeout_seconds: Timeout applied to each upstream request.
            user_agent: Optional User-Agent header value.
            client_factory: Builds the httpx client used for one lookup.

        Raises:
            ValueError: If no source is given.
        """
        if not sources:
            raise ValueError("at least one RDAP source is required")

        self.sources = tuple(sources)
        self.timeout_seconds = timeout_seconds
        self._headers = {"Accept": RDAP_ACCEPT}
        if user_agent:
            self._headers["User-Agent"] = user_agent
        self._client_factory = client_factory or self._default_client

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout_seconds,
            headers=self._headers,
            follow_redirects=True,
        )

    def sources_for(self, category: str) -> list[RdapSource]:
        """Return the sources to try for category, in order."""
        return [source for source in self.sources if source.applies_to(category)]

    async def fetch_object(self, category: str, value: str) -> Any:
        """Fetch an RDAP object from the first source that answers with 2xx.

        Args:
            category: RDAP object category.
            value: Object identifier.

        Returns:
            Any: Parsed JSON body from the answering source.

        Raises:
            UpstreamAppError: If every applicable source failed, or the
                answering source returned a body that is not valid JSON.
        """
        chain = self.sources_for(category)
        if not chain:
            raise UpstreamAppError(
                code="rdap_no_source",
                message=f"No RDAP source configured for category '{category}'",
            )

        failures: list[TierFailure] = []

        async with self._client_factory() as client:
            for source in chain:
                url = source.build_url(category, value)
                try:
                    response = await client.get(url)
                except httpx.HTTPError as exc:
                    failure = TierFailure(
                        source=source.name,
                        url=url,
                        status=str(exc) or type(exc).__name__,
                    )
                else:
                    if response.is_success:
                        logger.info(
                            "rdap.fetch_succeeded",
                            extra={
                                "source": source.name,
                                "category": category,
                                "status_code": response.status_code,
                                "tier": len(failures) + 1,
                            },
                        )
                        return self._parse_body(source, url, response)

                    failure = TierFailure(
                        source=source.name,
                        url=url,
                        status=describe_status(response),
                        status_code=response.status_code,
                    )

                failures.append(failure)
                logger.warning(
                    "rdap.fetch_failed",
                    extra={
                        "source": failure.source,
                        "category": category,
                        "url": failure.url,
                        "status_code": failure.status_code,
                        "upstream_status": failure.status,
                    },
                )

        raise self._exhausted(failures)

    @staticmethod
    def _parse_body(source: RdapSource, url: str, response: httpx.Response) -> Any:
        try:
            return json.loads(
                response.content, parse_constant=reject_constant, parse_float=finite_float
            )
        except ValueError as exc:
            raise UpstreamAppError(
                code="rdap_invalid_json",
                message=f"Invalid JSON from {source.name} source: {exc}",
                details={"source": source.name, "url": url},
            ) from exc

    @staticmethod
    def _exhausted(failures: list[TierFailure]) -> UpstreamAppError:
        last = failures[-1]
        if len(failures) == 1:
            message = f"Primary request failed: {last.status}"
        else:
            message = f"Primary and fallback requests failed. Fallback status: {last.status}"

        return UpstreamAppError(
            code="rdap_upstream_failed",
            message=message,
            details={
                "attempts": [
                    {"source": f.source, "url": f.url, "status": f.status, "status_code": f.status_code}
                    for f in failures
                ]
            },
        )
