"""Upstream credential storage and parsing."""

from .store import Credential, CredentialStore, mask_token
from .token_parser import parse_curl, parse_token

__all__ = ["Credential", "CredentialStore", "mask_token", "parse_curl", "parse_token"]
