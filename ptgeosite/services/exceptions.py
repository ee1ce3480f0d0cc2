"""
Typed Exception Hierarchy for pt-geosite

This module defines the error taxonomy used while collecting tracker domains
from torrent-client backends and writing the GeoSite artifact.

Exception Hierarchy:
    GeoSiteError (base)
    ├── ConfigurationError          (whole run, raised before any fetch)
    ├── BackendError                (one backend)
    │   ├── AuthenticationFailure   (bad credentials, missing cookie/token)
    │   ├── TransportFailure        (network/connection error)
    │   └── DecodeFailure           (malformed JSON or payload shape)
    ├── EncodingFailure             (artifact serialization, whole run)
    └── WriteFailure                (filesystem error, whole run)

Backend errors are fatal to the backend that raised them only. The
orchestrator records them and suppresses the artifact write, but keeps
visiting the remaining backends. There is no generic retry: the only resend
in the system is the Transmission session-token exchange.
"""

from typing import Optional


# ============================================================================
# Exception Hierarchy
# ============================================================================

class GeoSiteError(Exception):
    """Base exception for every pt-geosite failure."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.message}"


class ConfigurationError(GeoSiteError):
    """Malformed endpoint specification or an empty backend list."""
    pass


class BackendError(GeoSiteError):
    """
    Base exception for failures talking to one torrent-client backend.

    Args:
        message: Human-readable error description
        endpoint: Endpoint identity (never includes the password)
        status_code: HTTP status code if applicable
    """

    def __init__(self, message: str, endpoint: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code

    def __str__(self) -> str:
        where = f" [{self.endpoint}]" if self.endpoint else ""
        if self.status_code:
            return f"{self.__class__.__name__}{where} (HTTP {self.status_code}): {self.message}"
        return f"{self.__class__.__name__}{where}: {self.message}"


class AuthenticationFailure(BackendError):
    """Bad credentials, missing session cookie/token, or non-200 auth response."""
    pass


class TransportFailure(BackendError):
    """
    Network-level failure (connection refused, DNS, timeout).

    Args:
        message: Human-readable error description
        endpoint: Endpoint identity
        original_exception: The httpx exception that triggered this error
    """

    def __init__(self, message: str, endpoint: Optional[str] = None, original_exception: Optional[Exception] = None):
        super().__init__(message, endpoint=endpoint)
        self.original_exception = original_exception


class DecodeFailure(BackendError):
    """Response body is not valid JSON or does not have the expected shape."""
    pass


class EncodingFailure(GeoSiteError):
    """The GeoSite list could not be serialized."""
    pass


class WriteFailure(GeoSiteError):
    """The artifact could not be written to disk."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


# ============================================================================
# Convenience Functions
# ============================================================================

def classify_http_status(status_code: int, message: str, endpoint: Optional[str] = None) -> BackendError:
    """
    Classify an unexpected HTTP status into the backend error taxonomy.

    Args:
        status_code: HTTP status code
        message: Error message
        endpoint: Endpoint identity

    Returns:
        AuthenticationFailure for 401/403, BackendError otherwise
    """
    if status_code in (401, 403):
        return AuthenticationFailure(message, endpoint=endpoint, status_code=status_code)

    return BackendError(message, endpoint=endpoint, status_code=status_code)
