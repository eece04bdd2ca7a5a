"""API module for the proxy."""

from .routes import register_routes

__all__ = ["register_routes"]
