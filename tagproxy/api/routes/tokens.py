"""Admin endpoints for upstream token management."""

import asyncio
import json
import logging
from typing import Any

from fastapi import HTTPException, Request

from ...core.exceptions import CredentialConflictError, InvalidRequestError
from ...core.registry import get_gateway
from ...credentials import Credential, parse_token

logger = logging.getLogger("tagproxy")


async def _json_object(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail="Invalid JSON body") from exc
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return payload


async def _probe(credential: Credential) -> tuple[bool, str]:
    gateway = get_gateway()
    driver = gateway.resolver.resolve(gateway.upstream.settings.probe_model)
    is_valid, message = await gateway.upstream.probe(credential.token, driver)
    await asyncio.to_thread(gateway.credentials.mark_valid, credential.id, is_valid)
    logger.info(
        f"Probed token {credential.id} ({credential.name or 'unnamed'}): {message}"
    )
    return is_valid, message


async def _get_or_404(token_id: int) -> Credential:
    credential = await asyncio.to_thread(get_gateway().credentials.get, token_id)
    if credential is None:
        raise HTTPException(status_code=404, detail="token not found")
    return credential


async def list_tokens() -> dict[str, Any]:
    """List stored tokens with the token text masked.

    GET /api/tokens
    """
    credentials = await asyncio.to_thread(get_gateway().credentials.list_all)
    return {"tokens": [c.to_public_dict() for c in credentials]}


async def add_token(request: Request) -> dict[str, Any]:
    """Add a token.

    POST /api/tokens

    Request body:
        - name: Optional display name
        - input: A raw token, text containing a JWT, or a curl command
    """
    payload = await _json_object(request)
    name = payload.get("name") or ""
    raw_input = payload.get("input")
    if not isinstance(name, str) or not isinstance(raw_input, str):
        raise HTTPException(status_code=400, detail="'name' and 'input' must be strings")

    try:
        token = parse_token(raw_input)
    except InvalidRequestError as exc:
        raise HTTPException(status_code=400, detail=f"failed to parse token: {exc.message}") from exc

    try:
        credential = await asyncio.to_thread(get_gateway().credentials.add, name, token)
    except CredentialConflictError as exc:
        raise HTTPException(status_code=409, detail=exc.message) from exc

    public = credential.to_public_dict()
    return {
        "message": "token added successfully",
        "id": public["id"],
        "name": public["name"],
        "token": public["token"],
    }


async def delete_token(token_id: int) -> dict[str, Any]:
    """DELETE /api/tokens/{token_id}"""
    deleted = await asyncio.to_thread(get_gateway().credentials.delete, token_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="token not found")
    return {"message": "token deleted"}


async def rename_token(token_id: int, request: Request) -> dict[str, Any]:
    """PUT /api/tokens/{token_id} with body {"name": ...}"""
    payload = await _json_object(request)
    name = payload.get("name")
    if not isinstance(name, str):
        raise HTTPException(status_code=400, detail="'name' must be a string")
    updated = await asyncio.to_thread(get_gateway().credentials.rename, token_id, name)
    if not updated:
        raise HTTPException(status_code=404, detail="token not found")
    return {"message": "token updated"}


async def toggle_token(token_id: int, request: Request) -> dict[str, Any]:
    """PUT /api/tokens/{token_id}/toggle with body {"is_active": bool}"""
    payload = await _json_object(request)
    is_active = payload.get("is_active")
    if not isinstance(is_active, bool):
        raise HTTPException(status_code=400, detail="'is_active' must be a boolean")
    updated = await asyncio.to_thread(get_gateway().credentials.set_active, token_id, is_active)
    if not updated:
        raise HTTPException(status_code=404, detail="token not found")
    return {"message": "token updated"}


async def probe_token(token_id: int) -> dict[str, Any]:
    """Probe the upstream with one token and record the result.

    POST /api/tokens/{token_id}/test
    """
    credential = await _get_or_404(token_id)
    is_valid, message = await _probe(credential)
    return {"is_valid": is_valid, "message": message}


async def probe_all_tokens() -> dict[str, Any]:
    """Probe every stored token, one after another.

    POST /api/tokens/test-all
    """
    credentials = await asyncio.to_thread(get_gateway().credentials.list_all)
    results = []
    for credential in credentials:
        is_valid, message = await _probe(credential)
        results.append(
            {
                "id": credential.id,
                "name": credential.name,
                "is_valid": is_valid,
                "message": message,
            }
        )
    return {"results": results}
