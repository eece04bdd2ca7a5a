"""Core proxy functionality.

`Gateway` lives in `tagproxy.core.gateway` and is imported from there; it
depends on the conversation package, which itself imports these exceptions.
"""

from .exceptions import (
    ConfigurationError,
    CredentialConflictError,
    CredentialUnavailableError,
    InvalidRequestError,
    ProxyError,
    UpstreamError,
)
from .drivers import DriverCall, DriverResolver, infer_provider
from .upstream import UpstreamClient, UpstreamSettings
from .registry import get_gateway, set_gateway

__all__ = [
    "ConfigurationError",
    "CredentialConflictError",
    "CredentialUnavailableError",
    "DriverCall",
    "DriverResolver",
    "InvalidRequestError",
    "ProxyError",
    "UpstreamClient",
    "UpstreamError",
    "UpstreamSettings",
    "get_gateway",
    "infer_provider",
    "set_gateway",
]
