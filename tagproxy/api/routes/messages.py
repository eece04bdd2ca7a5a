"""Anthropic-compatible Messages API endpoint."""

import json
import logging
import time
import uuid
from typing import Any, AsyncIterator, Iterable, Mapping, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from ...core.exceptions import InvalidRequestError, ProxyError
from ...core.registry import get_gateway
from ...messages import build_message, encode_message_events, generate_message_id

logger = logging.getLogger("tagproxy")

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def _anthropic_error_response(
    message: str,
    *,
    error_type: str = "invalid_request_error",
    status_code: int = 400,
    error_code: Optional[str] = None,
) -> JSONResponse:
    error: dict[str, Any] = {"type": error_type, "message": message}
    if error_code:
        error["code"] = error_code
    return JSONResponse({"type": "error", "error": error}, status_code=status_code)


async def _aiter(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


async def messages_endpoint(request: Request) -> Response:
    """POST /v1/messages - Anthropic Messages API compatible endpoint."""
    # Generate request ID for log correlation
    req_id = uuid.uuid4().hex[:8]
    start_time = time.perf_counter()

    try:
        body = await request.body()
        payload = json.loads(body or b"{}")
    except json.JSONDecodeError as exc:
        logger.warning(f"[{req_id}] Invalid JSON payload: {exc}")
        return _anthropic_error_response("Invalid JSON payload", error_code="invalid_json")

    if logger.isEnabledFor(logging.DEBUG):
        client_host = request.client.host if request.client else "unknown"
        logger.debug(f"[{req_id}] Messages body from {client_host}: {len(body)} bytes")

    if not isinstance(payload, Mapping):
        return _anthropic_error_response(
            "Request body must be a JSON object",
            error_code="invalid_json_shape",
        )

    gateway = get_gateway()
    try:
        prepared = gateway.prepare_messages(payload)
    except InvalidRequestError as exc:
        logger.warning(f"[{req_id}] Rejected Messages request: {exc.message}")
        return _anthropic_error_response(exc.message, error_code=exc.code)

    logger.info(
        f"[{req_id}] Messages request: model={prepared.model}, stream={prepared.stream}, "
        f"messages={prepared.original_turn_count}, sent={len(prepared.turns)}, "
        f"tools={prepared.has_tools}"
    )

    try:
        completion = await gateway.complete(prepared, req_id=req_id)
    except ProxyError as exc:
        logger.error(f"[{req_id}] Messages request failed: {exc.message}")
        return _anthropic_error_response(
            exc.message,
            error_type=exc.error_type,
            status_code=exc.status_code,
        )

    elapsed = time.perf_counter() - start_time
    logger.info(
        f"[{req_id}] Completed in {elapsed:.2f}s: {len(completion.raw_text)} chars, "
        f"{len(completion.tool_calls)} tool call(s)"
    )

    message_id = generate_message_id()
    if not prepared.stream:
        return JSONResponse(
            build_message(completion, message_id=message_id, model=prepared.model)
        )

    events = encode_message_events(completion, message_id=message_id, model=prepared.model)
    return StreamingResponse(
        _aiter(events),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
