"""Flatten message content into a single plain-text string.

Tool invocations and tool results are embedded inline as tags the upstream
model can read back:

    <tool_call>
    {"name": "get_weather", "id": "toolu_1", "input": {"city": "Paris"}}
    </tool_call>

    <tool_result id="toolu_1">
    sunny
    </tool_result>
"""

from __future__ import annotations

import html
import json
from typing import Any

from .types import (
    TextSegment,
    ToolInvocationSegment,
    ToolResultSegment,
    decode_segment,
)


def _compact_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def render_tool_call_tag(name: str, call_id: str, tool_input: Any) -> str:
    """Render one tool invocation as an inline `<tool_call>` tag."""
    if tool_input is None:
        tool_input = {}
    body = (
        f'{{"name": {json.dumps(name, ensure_ascii=False)}, '
        f'"id": {json.dumps(call_id, ensure_ascii=False)}, '
        f'"input": {_compact_json(tool_input)}}}'
    )
    return f"\n<tool_call>\n{body}\n</tool_call>\n"


def render_tool_result_tag(tool_use_id: str, content: Any) -> str:
    """Render one tool result as an inline `<tool_result>` tag.

    A null result renders as an empty body. The id is attribute-escaped.
    """
    if content is None:
        content = ""
    body = content if isinstance(content, str) else _compact_json(content)
    attr = html.escape(tool_use_id, quote=True)
    return f'\n<tool_result id="{attr}">\n{body}\n</tool_result>\n'


def normalize_content(content: Any) -> str:
    """Flatten a message's content to text.

    Args:
        content: Either a plain string or a list of typed segments
            (`text`, `tool_use`, `tool_result`).

    Returns:
        The concatenated text. Unknown segment types are skipped and content
        of any other shape yields an empty string.
    """
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""

    parts: list[str] = []
    for raw in content:
        segment = decode_segment(raw)
        if isinstance(segment, TextSegment):
            parts.append(segment.text)
        elif isinstance(segment, ToolInvocationSegment):
            parts.append(render_tool_call_tag(segment.name, segment.id, segment.input))
        elif isinstance(segment, ToolResultSegment):
            parts.append(render_tool_result_tag(segment.tool_use_id, segment.content))
    return "".join(parts)
