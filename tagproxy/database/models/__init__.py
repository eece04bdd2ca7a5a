"""Database models for tagproxy."""

from .token import CredentialToken

__all__ = ["CredentialToken"]
