"""Translate inbound request bodies into a system prompt and canonical turns.

Both dialects end up in the same place: one flattened text per turn, with
tool traffic from earlier rounds embedded as inline tags, and a system
prompt that carries the tool declarations.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from ..core.exceptions import InvalidRequestError
from .normalizer import normalize_content, render_tool_call_tag, render_tool_result_tag
from .prompt import build_system_prompt, system_instruction_text
from .types import Role, ToolDeclaration, Turn

MESSAGES_ROLES = {"user": Role.USER, "assistant": Role.ASSISTANT}
CHAT_SYSTEM_ROLES = {"system", "developer"}


def _require_message(raw: Any, position: int) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise InvalidRequestError(
            f"messages[{position}] must be an object", code="invalid_messages"
        )
    return raw


def _tool_list(payload: Mapping[str, Any]) -> list[Any]:
    tools = payload.get("tools")
    if tools is None:
        return []
    if not isinstance(tools, list):
        raise InvalidRequestError("'tools' must be a list", code="invalid_tools")
    return [tool for tool in tools if isinstance(tool, Mapping)]


def messages_request_to_conversation(
    payload: Mapping[str, Any],
) -> tuple[str, list[Turn]]:
    """Translate a Messages-style request.

    Args:
        payload: Parsed request body.

    Returns:
        (system prompt, turns oldest first)

    Raises:
        InvalidRequestError: If `messages` is not a list or a message has an
            unsupported role.
    """
    messages = payload.get("messages")
    if not isinstance(messages, list):
        raise InvalidRequestError("'messages' must be a list", code="invalid_messages")

    tools = [ToolDeclaration.from_messages_tool(t) for t in _tool_list(payload)]
    system_prompt = build_system_prompt(
        system_instruction_text(payload.get("system")), tools
    )

    turns: list[Turn] = []
    for position, raw in enumerate(messages):
        message = _require_message(raw, position)
        raw_role = message.get("role")
        role = MESSAGES_ROLES.get(raw_role) if isinstance(raw_role, str) else None
        if role is None:
            raise InvalidRequestError(
                f"messages[{position}].role must be 'user' or 'assistant'",
                code="invalid_role",
            )
        turns.append(Turn(role, normalize_content(message.get("content"))))
    return system_prompt, turns


def _decode_arguments(arguments: Any) -> Any:
    if isinstance(arguments, (dict, list)):
        return arguments
    if not isinstance(arguments, str) or not arguments.strip():
        return {}
    try:
        return json.loads(arguments)
    except json.JSONDecodeError:
        return {"raw": arguments}


def _assistant_chat_text(message: Mapping[str, Any]) -> str:
    text = normalize_content(message.get("content"))
    tool_calls = message.get("tool_calls")
    if not isinstance(tool_calls, list):
        return text
    parts = [text]
    for tool_call in tool_calls:
        if not isinstance(tool_call, Mapping):
            continue
        function = tool_call.get("function")
        if not isinstance(function, Mapping):
            continue
        parts.append(
            render_tool_call_tag(
                str(function.get("name") or ""),
                str(tool_call.get("id") or ""),
                _decode_arguments(function.get("arguments")),
            )
        )
    return "".join(parts)


def chat_request_to_conversation(
    payload: Mapping[str, Any],
) -> tuple[str, list[Turn]]:
    """Translate a chat-completions request.

    System and developer messages are joined in order with newlines and
    placed ahead of the tools section. Tool messages become user turns
    carrying a `<tool_result>` tag; assistant tool calls become
    `<tool_call>` tags after the assistant text.

    Raises:
        InvalidRequestError: If `messages` is missing or empty, or a message
            has an unsupported role.
    """
    messages = payload.get("messages")
    if not isinstance(messages, list) or not messages:
        raise InvalidRequestError(
            "'messages' must be a non-empty list", code="invalid_messages"
        )

    instructions: list[str] = []
    turns: list[Turn] = []
    for position, raw in enumerate(messages):
        message = _require_message(raw, position)
        role = message.get("role")
        if not isinstance(role, str):
            raise InvalidRequestError(
                f"messages[{position}].role must be a string", code="invalid_role"
            )
        if role in CHAT_SYSTEM_ROLES:
            instructions.append(normalize_content(message.get("content")))
        elif role == "user":
            turns.append(Turn(Role.USER, normalize_content(message.get("content"))))
        elif role == "assistant":
            turns.append(Turn(Role.ASSISTANT, _assistant_chat_text(message)))
        elif role == "tool":
            result = render_tool_result_tag(
                str(message.get("tool_call_id") or ""),
                normalize_content(message.get("content")),
            )
            turns.append(Turn(Role.USER, result))
        else:
            raise InvalidRequestError(
                f"messages[{position}].role '{role}' is not supported",
                code="invalid_role",
            )

    tools = [ToolDeclaration.from_chat_tool(t) for t in _tool_list(payload)]
    system_prompt = build_system_prompt("\n".join(instructions), tools)
    return system_prompt, turns
