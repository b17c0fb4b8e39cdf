"""
Error types raised while resolving a geocode query.

Only CacheUnavailableError is recoverable: the gateway treats it as a miss.
Everything else aborts the request and surfaces as a bare 500.
"""

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Base exception for the geocode gateway."""

    code = "GATEWAY_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class CacheUnavailableError(GatewayError):
    """Transport failure while reading from the cache store."""

    code = "CACHE_UNAVAILABLE"


class CacheCorruptError(GatewayError):
    """A cached value could not be decoded."""

    code = "CACHE_CORRUPT"


class CacheWriteError(GatewayError):
    """Write-back to the cache store failed."""

    code = "CACHE_WRITE_FAILED"


class UpstreamUnavailableError(GatewayError):
    """Network failure, timeout or error status from the provider."""

    code = "UPSTREAM_UNAVAILABLE"


class UpstreamMalformedError(GatewayError):
    """Provider response body is not a list of place records."""

    code = "UPSTREAM_MALFORMED"
