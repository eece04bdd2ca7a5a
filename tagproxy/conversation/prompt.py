"""System prompt synthesis: original instruction plus a tag-syntax tools section."""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional

from .types import ToolDeclaration

TOOLS_PREAMBLE = (
    "\n\n# Tools\n\n"
    "You have access to the following tools. When you need to use a tool, "
    "output it in this EXACT format:\n\n"
    "<tool_call>\n"
    '{"name": "tool_name", "input": {"param": "value"}}\n'
    "</tool_call>\n\n"
    "Available tools:\n\n"
)


def system_instruction_text(system: Any) -> str:
    """Return the instruction text of a `system` field.

    A plain string is used verbatim. A list of `text` segments contributes
    each segment's text followed by a newline. Anything else is empty.
    """
    if isinstance(system, str):
        return system
    if not isinstance(system, list):
        return ""
    parts: list[str] = []
    for block in system:
        if isinstance(block, dict) and block.get("type") == "text":
            text = block.get("text")
            if isinstance(text, str):
                parts.append(text + "\n")
    return "".join(parts)


def render_tool_section(tool: ToolDeclaration) -> str:
    lines = [f"## {tool.name}\n"]
    if tool.description:
        lines.append(f"{tool.description}\n")
    if tool.input_schema is not None:
        lines.append(f"Input schema: {json.dumps(tool.input_schema, ensure_ascii=False)}\n")
    lines.append("\n")
    return "".join(lines)


def build_system_prompt(
    instruction: str = "",
    tools: Optional[Iterable[ToolDeclaration]] = None,
) -> str:
    """Combine the original instruction with the tools section.

    Args:
        instruction: Already-flattened system instruction (may be empty).
        tools: Tool declarations in request order.

    Returns:
        The instruction unchanged when there are no tools, otherwise the
        instruction followed by the preamble and one section per tool.
    """
    declared = list(tools or [])
    if not declared:
        return instruction
    return instruction + TOOLS_PREAMBLE + "".join(render_tool_section(t) for t in declared)
