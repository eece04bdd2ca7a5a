"""Per-host httpx transport overrides for in-process upstreams."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlparse

import httpx

logger = logging.getLogger("tagproxy")

_TRANSPORTS: dict[str, httpx.AsyncBaseTransport] = {}


def _host_of(url: str) -> str:
    return urlparse(url).netloc.strip().lower()


def register_upstream_transport(url: str, transport: httpx.AsyncBaseTransport) -> None:
    """Route every upstream request to the URL's host through `transport`."""
    host = _host_of(url)
    if not host:
        raise ValueError(f"URL has no host: {url!r}")
    _TRANSPORTS[host] = transport
    logger.debug(f"Registered upstream transport for host '{host}'")


def unregister_upstream_transport(url: str) -> None:
    _TRANSPORTS.pop(_host_of(url), None)


def clear_upstream_transports() -> None:
    _TRANSPORTS.clear()


def get_upstream_transport(url: str) -> Optional[httpx.AsyncBaseTransport]:
    """Return the transport registered for the URL's host, if any."""
    if not url:
        return None
    return _TRANSPORTS.get(_host_of(url))
