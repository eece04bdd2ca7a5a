"""FastAPI application factory for tagproxy."""

import logging
import os
from typing import Any, Mapping, Optional

from fastapi import FastAPI

from .api import register_routes
from .config_loader import load_config
from .core.gateway import Gateway
from .core.registry import set_gateway
from .credentials import CredentialStore
from .database import get_database
from .logging import setup_logging

logger = logging.getLogger("tagproxy")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8081


def resolve_server_address(config: Mapping[str, Any]) -> tuple[str, int]:
    """Return (host, port); TAGPROXY_HOST / TAGPROXY_PORT override the config."""
    proxy_settings = config.get("proxy_settings") or {}
    server_cfg = proxy_settings.get("server") or {}

    host = os.getenv("TAGPROXY_HOST") or str(server_cfg.get("host", DEFAULT_HOST))

    port_value = os.getenv("TAGPROXY_PORT") or server_cfg.get("port", DEFAULT_PORT)
    try:
        port = int(port_value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid port {port_value!r}; using {DEFAULT_PORT}")
        port = DEFAULT_PORT
    return host, port


def build_gateway(config: Mapping[str, Any]) -> Gateway:
    """Create the credential store and gateway described by `config`."""
    database = get_database(config.get("database"))
    credentials = CredentialStore(database)
    return Gateway.from_config(config, credentials)


def create_app(config: Optional[Mapping[str, Any]] = None) -> FastAPI:
    """Build the application.

    Args:
        config: Parsed configuration. Loaded from disk when omitted.

    Returns:
        The FastAPI app with every route registered and the gateway set.
    """
    if config is None:
        config = load_config()

    logging_cfg = (config.get("proxy_settings") or {}).get("logging") or {}
    setup_logging(logging_cfg.get("level", "INFO"))

    gateway = build_gateway(config)
    set_gateway(gateway)
    logger.info(
        f"Gateway ready: upstream={gateway.upstream.settings.api_url}, "
        f"default_model={gateway.default_model}, models={len(gateway.models)}, "
        f"context_budget={gateway.max_context_chars} chars"
    )

    app = FastAPI(title="tagproxy")
    register_routes(app)
    return app


__all__ = ["build_gateway", "create_app", "resolve_server_address"]
