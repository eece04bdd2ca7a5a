"""Core exceptions for the proxy."""

from typing import Optional


class ProxyError(Exception):
    """Base exception for proxy errors."""

    status_code = 500
    error_type = "api_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(ProxyError):
    """Raised when there's an issue with the configuration."""
    pass


class InvalidRequestError(ProxyError):
    """Raised when an incoming request is invalid."""

    status_code = 400
    error_type = "invalid_request_error"

    def __init__(self, message: str, code: str = "invalid_request") -> None:
        super().__init__(message)
        self.code = code


class CredentialUnavailableError(ProxyError):
    """Raised when the credential store has no active, valid token."""

    status_code = 401
    error_type = "authentication_error"

    def __init__(self, message: str = "No valid upstream token available") -> None:
        super().__init__(message)


class CredentialConflictError(ProxyError):
    """Raised when adding a token that is already stored."""

    status_code = 409
    error_type = "conflict_error"


class UpstreamError(ProxyError):
    """Raised when the upstream call fails or returns a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body
