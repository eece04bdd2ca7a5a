"""OpenAI-compatible chat completions endpoint."""

import json
import logging
import time
import uuid
from typing import Any, AsyncIterator, Iterable, Mapping

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from ...chat import build_chat_completion, encode_chat_completion_chunks, generate_completion_id
from ...core.exceptions import InvalidRequestError, ProxyError
from ...core.registry import get_gateway

logger = logging.getLogger("tagproxy")

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def _openai_error_response(
    message: str,
    *,
    error_type: str = "invalid_request_error",
    status_code: int = 400,
    code: str = "invalid_request",
) -> JSONResponse:
    payload: dict[str, Any] = {
        "error": {"message": message, "type": error_type, "code": code}
    }
    return JSONResponse(payload, status_code=status_code)


async def _aiter(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


async def chat_completions(request: Request) -> Response:
    """POST /v1/chat/completions - OpenAI chat completions compatible endpoint."""
    req_id = uuid.uuid4().hex[:8]
    start_time = time.perf_counter()

    try:
        body = await request.body()
        payload = json.loads(body or b"{}")
    except json.JSONDecodeError as exc:
        logger.warning(f"[{req_id}] Invalid JSON payload: {exc}")
        return _openai_error_response(f"Invalid JSON payload: {exc}", code="invalid_json")

    if logger.isEnabledFor(logging.DEBUG):
        client_host = request.client.host if request.client else "unknown"
        logger.debug(f"[{req_id}] Chat body from {client_host}: {len(body)} bytes")

    if not isinstance(payload, Mapping):
        return _openai_error_response(
            "Request body must be a JSON object", code="invalid_json_shape"
        )

    gateway = get_gateway()
    try:
        prepared = gateway.prepare_chat(payload)
    except InvalidRequestError as exc:
        logger.warning(f"[{req_id}] Rejected chat request: {exc.message}")
        return _openai_error_response(exc.message, code=exc.code)

    logger.info(
        f"[{req_id}] Chat request: model={prepared.model}, stream={prepared.stream}, "
        f"messages={prepared.original_turn_count}, sent={len(prepared.turns)}, "
        f"tools={prepared.has_tools}"
    )

    try:
        completion = await gateway.complete(prepared, req_id=req_id)
    except ProxyError as exc:
        logger.error(f"[{req_id}] Chat request failed: {exc.message}")
        return _openai_error_response(
            exc.message,
            error_type=exc.error_type,
            status_code=exc.status_code,
            code=exc.error_type,
        )

    elapsed = time.perf_counter() - start_time
    logger.info(
        f"[{req_id}] Completed in {elapsed:.2f}s: {len(completion.raw_text)} chars, "
        f"{len(completion.tool_calls)} tool call(s)"
    )

    completion_id = generate_completion_id()
    if not prepared.stream:
        return JSONResponse(
            build_chat_completion(
                completion, completion_id=completion_id, model=prepared.model
            )
        )

    chunks = encode_chat_completion_chunks(
        completion,
        completion_id=completion_id,
        model=prepared.model,
        chunk_size=gateway.chat_chunk_size,
    )
    return StreamingResponse(
        _aiter(chunks),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
