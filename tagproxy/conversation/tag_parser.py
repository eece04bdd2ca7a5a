"""Recover structured tool calls from free-form model output."""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Optional

from .types import ToolCall

logger = logging.getLogger("tagproxy")

TOOL_CALL_PATTERN = re.compile(r"<tool_call>\s*(\{.*?\})\s*</tool_call>", re.S)


def generate_tool_call_id(ordinal: int) -> str:
    return f"toolu_{time.time_ns()}_{ordinal}"


def _decode_tool_call(body: str, ordinal: int) -> Optional[ToolCall]:
    try:
        data: Any = json.loads(body)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    name = data.get("name")
    if not isinstance(name, str):
        return None
    call_id = data.get("id")
    if call_id is not None and not isinstance(call_id, str):
        return None
    tool_input = data.get("input")
    if tool_input is None:
        tool_input = {}
    return ToolCall(
        id=call_id or generate_tool_call_id(ordinal),
        name=name,
        input=tool_input,
    )


def parse_tool_calls(text: str) -> tuple[list[ToolCall], str]:
    """Extract every `<tool_call>` tag from text.

    Args:
        text: Raw upstream output.

    Returns:
        The decoded tool calls in order of appearance and the remaining
        prose with all matched tags removed and surrounding whitespace
        stripped. Tags whose body fails to decode are removed but produce
        no call.
    """
    calls: list[ToolCall] = []
    for ordinal, match in enumerate(TOOL_CALL_PATTERN.finditer(text)):
        call = _decode_tool_call(match.group(1), ordinal)
        if call is None:
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"Dropping malformed tool_call tag: {match.group(1)[:200]}")
            continue
        calls.append(call)

    residual = TOOL_CALL_PATTERN.sub("", text).strip()
    return calls, residual
