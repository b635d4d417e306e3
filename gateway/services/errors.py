"""
Gateway error taxonomy.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories callers can tell apart."""

    BACKEND_UNAVAILABLE = "backend_unavailable"
    EMPTY_RESULT = "empty_result"
    INVALID_SECRET = "invalid_secret"
    PARTIAL_FAILURE = "partial_failure"


class GatewayError(Exception):
    """Base exception for gateway errors."""

    kind: ErrorKind = ErrorKind.BACKEND_UNAVAILABLE

    def __init__(self, message: str, service_id: str | None = None):
        self.service_id = service_id
        super().__init__(message)


class BackendUnavailableError(GatewayError):
    """Origin could not be reached or answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        service_id: str | None = None,
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, service_id=service_id)


class RequestTimeoutError(BackendUnavailableError):
    """Origin request timed out."""

    def __init__(self, service_id: str, timeout: float):
        self.timeout = timeout
        super().__init__(
            f"Request to service '{service_id}' timed out after {timeout}s",
            service_id=service_id,
        )


class InvalidSecretError(GatewayError):
    """Revalidation secret missing, unconfigured or wrong."""

    kind = ErrorKind.INVALID_SECRET

    def __init__(self, message: str = "Invalid revalidation secret."):
        super().__init__(message)
