"""Conversation normalization, prompt synthesis, trimming and tag parsing."""

from .normalizer import normalize_content, render_tool_call_tag, render_tool_result_tag
from .prompt import TOOLS_PREAMBLE, build_system_prompt, system_instruction_text
from .requests import chat_request_to_conversation, messages_request_to_conversation
from .tag_parser import parse_tool_calls
from .trimmer import DEFAULT_MAX_CONTEXT_CHARS, ContextBudget, trim_turns
from .types import Completion, Role, ToolCall, ToolDeclaration, Turn

__all__ = [
    "Completion",
    "ContextBudget",
    "DEFAULT_MAX_CONTEXT_CHARS",
    "Role",
    "TOOLS_PREAMBLE",
    "ToolCall",
    "ToolDeclaration",
    "Turn",
    "build_system_prompt",
    "chat_request_to_conversation",
    "messages_request_to_conversation",
    "normalize_content",
    "parse_tool_calls",
    "render_tool_call_tag",
    "render_tool_result_tag",
    "system_instruction_text",
    "trim_turns",
]
