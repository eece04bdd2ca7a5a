"""Extract an upstream auth token from pasted text.

Accepted inputs:
- a bare JWT (``eyJ...``)
- any text with a JWT embedded in it
- a ``curl`` command copied from browser dev tools; the token is looked up in
  the ``puter_auth_token`` cookie, then the ``auth_token`` field of the
  request body, then an ``Authorization: Bearer`` header, then any JWT
"""

import json
import re
from typing import Optional

from ..core.exceptions import InvalidRequestError

JWT_PATTERN = re.compile(r"eyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")

_COOKIE_PATTERNS = (
    re.compile(r"""-H\s+['"]Cookie:\s*([^'"]+)['"]""", re.I),
    re.compile(r"""--cookie\s+['"]([^'"]+)['"]""", re.I),
    re.compile(r"""-b\s+['"]([^'"]+)['"]""", re.I),
)
_COOKIE_TOKEN = re.compile(r"puter_auth_token=([^;\s]+)")

_BODY_PATTERNS = (
    re.compile(r"""--data-raw\s+(['"])(.+?)\1(?:\s|$)""", re.I | re.S),
    re.compile(r"""--data-binary\s+(['"])(.+?)\1(?:\s|$)""", re.I | re.S),
    re.compile(r"""--data\s+(['"])(.+?)\1(?:\s|$)""", re.I | re.S),
    re.compile(r"""-d\s+(['"])(.+?)\1(?:\s|$)""", re.I | re.S),
)
_BODY_TOKEN = re.compile(r'"auth_token"\s*:\s*"([^"]+)"')

_BEARER = re.compile(r"""-H\s+['"]Authorization:\s*Bearer\s+([^'"]+)['"]""", re.I)


def _from_cookie(command: str) -> Optional[str]:
    for pattern in _COOKIE_PATTERNS:
        match = pattern.search(command)
        if match:
            token = _COOKIE_TOKEN.search(match.group(1))
            if token:
                return token.group(1).strip()
    return None


def _from_body(command: str) -> Optional[str]:
    for pattern in _BODY_PATTERNS:
        match = pattern.search(command)
        if not match:
            continue
        body = match.group(2)
        try:
            data = json.loads(body)
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict) and isinstance(data.get("auth_token"), str):
            return data["auth_token"]
        token = _BODY_TOKEN.search(body)
        if token:
            return token.group(1)
    return None


def _from_bearer(command: str) -> Optional[str]:
    match = _BEARER.search(command)
    return match.group(1).strip() if match else None


def _from_jwt(text: str) -> Optional[str]:
    match = JWT_PATTERN.search(text)
    return match.group(0) if match else None


def parse_curl(command: str) -> str:
    """Extract the auth token from a curl command.

    Raises:
        InvalidRequestError: If no token can be found.
    """
    for extractor in (_from_cookie, _from_body, _from_bearer, _from_jwt):
        token = extractor(command)
        if token:
            return token
    raise InvalidRequestError("no auth token found in curl command", code="invalid_token")


def parse_token(raw: str) -> str:
    """Extract an auth token from a raw token, JWT-bearing text or curl command.

    Raises:
        InvalidRequestError: If the input is empty or holds no token.
    """
    text = (raw or "").strip()
    if not text:
        raise InvalidRequestError("empty input", code="invalid_token")

    if text.lower().startswith("curl "):
        return parse_curl(text)

    if text.startswith("eyJ") and text.count(".") == 2:
        return text

    token = _from_jwt(text)
    if token:
        return token
    raise InvalidRequestError("invalid token format", code="invalid_token")
