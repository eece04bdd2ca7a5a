"""SSE (Server-Sent Events) encoding helpers."""

import json
from typing import Any

SSE_DONE = b"data: [DONE]\n\n"


def format_sse_event(event_type: str, data: dict[str, Any]) -> bytes:
    """Encode a named event: `event: <type>` plus one JSON data line."""
    json_str = json.dumps(data, ensure_ascii=False)
    return f"event: {event_type}\ndata: {json_str}\n\n".encode("utf-8")


def format_sse_data(data: dict[str, Any]) -> bytes:
    """Encode an unnamed event carrying one JSON data line."""
    json_str = json.dumps(data, ensure_ascii=False)
    return f"data: {json_str}\n\n".encode("utf-8")
