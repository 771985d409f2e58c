"""HTTP clients for remote annotation services."""

from methtracks.api_clients.base import CachedAPIClient
from methtracks.api_clients.ucsc import UCSC_API_URL, UCSCClient, UCSCError

__all__ = ["CachedAPIClient", "UCSCClient", "UCSCError", "UCSC_API_URL"]
