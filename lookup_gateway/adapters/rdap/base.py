from abc import ABC, abstractmethod
from typing import Any


class AbstractRdapFetcher(ABC):
	"""Interface for clients that resolve RDAP objects to parsed JSON."""

	@abstractmethod
	async def fetch_object(self, category: str, value: str) -> Any:
		"""Fetch one RDAP object.

		Args:
			category: RDAP object category (e.g., "domain", "ip", "entity").
			value: Object identifier (e.g., "example.com", "192.0.2.1").

		Returns:
			Any: Parsed JSON body returned by the upstream service.

		Raises:
			UpstreamAppError: If no source answered successfully or the body is not valid JSON.
		"""
		...
