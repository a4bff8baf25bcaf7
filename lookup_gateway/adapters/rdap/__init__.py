"""RDAP adapter layer - upstream sources and the fallback chain."""

from lookup_gateway.adapters.rdap.base import AbstractRdapFetcher
from lookup_gateway.adapters.rdap.factory import create_rdap_fetcher
from lookup_gateway.adapters.rdap.fallback import FallbackRdapFetcher, RdapSource

__all__ = [
    "AbstractRdapFetcher",
    "FallbackRdapFetcher",
    "RdapSource",
    "create_rdap_fetcher",
]
