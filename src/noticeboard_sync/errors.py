"""Error taxonomy for the reconciliation subsystem."""

from typing import Any, Optional

__all__ = [
    "SyncError",
    "AuthFailure",
    "TransportFailure",
    "RemoteError",
    "ValidationFailure",
    "ConfigurationFailure",
    "RetryExhausted",
]


class SyncError(Exception):
    """Base class for all sync errors."""

    pass


class AuthFailure(SyncError):
    """Credentials rejected or session token expired."""

    pass


class TransportFailure(SyncError):
    """Timeout, DNS failure, refused connection or server-side (5xx) error."""

    pass


class RemoteError(SyncError):
    """The server answered with a non-auth client error."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ValidationFailure(SyncError):
    """A single record was rejected by the remote store."""

    pass


class ConfigurationFailure(SyncError):
    """Required configuration (e.g. credentials) is missing."""

    pass


class RetryExhausted(SyncError):
    """Connectivity retries exhausted."""

    def __init__(self, attempts: int, last_error: Optional[Exception] = None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Max retries reached after {attempts} attempts")
