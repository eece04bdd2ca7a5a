"""Canonical conversation types shared by both inbound dialects."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

if TYPE_CHECKING:
    from ..types import UpstreamMessage


class Role(str, Enum):
    """Speaker of a canonical turn."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class Turn:
    """One flattened conversation turn as delivered upstream."""

    role: Role
    text: str

    @classmethod
    def user(cls, text: str) -> "Turn":
        return cls(Role.USER, text)

    def to_upstream(self) -> "UpstreamMessage":
        return {"role": self.role.value, "content": self.text}


@dataclass(frozen=True)
class ToolDeclaration:
    """A tool the client offers to the model."""

    name: str
    description: Optional[str] = None
    input_schema: Any = None

    @classmethod
    def from_messages_tool(cls, tool: Mapping[str, Any]) -> "ToolDeclaration":
        """Build from a Messages-style `{name, description, input_schema}` entry."""
        return cls(
            name=str(tool.get("name") or ""),
            description=tool.get("description") or None,
            input_schema=tool.get("input_schema"),
        )

    @classmethod
    def from_chat_tool(cls, tool: Mapping[str, Any]) -> "ToolDeclaration":
        """Build from a chat-style `{type: "function", function: {...}}` entry."""
        function = tool.get("function")
        if not isinstance(function, Mapping):
            function = tool
        return cls(
            name=str(function.get("name") or ""),
            description=function.get("description") or None,
            input_schema=function.get("parameters"),
        )


@dataclass
class ToolCall:
    """A structured tool invocation recovered from model text."""

    id: str
    name: str
    input: Any = field(default_factory=dict)

    def arguments_json(self) -> str:
        """Serialize the input the same way for every outbound dialect."""
        return json.dumps(self.input, ensure_ascii=False)


@dataclass(frozen=True)
class TextSegment:
    text: str


@dataclass(frozen=True)
class ToolInvocationSegment:
    id: str
    name: str
    input: Any


@dataclass(frozen=True)
class ToolResultSegment:
    tool_use_id: str
    content: Any


Segment = Union[TextSegment, ToolInvocationSegment, ToolResultSegment]


def decode_segment(raw: Any) -> Optional[Segment]:
    """Decode one content entry by its `type` field.

    Returns None for entries that are not objects or carry an unknown type.
    """
    if not isinstance(raw, Mapping):
        return None
    kind = raw.get("type")
    if kind == "text":
        text = raw.get("text")
        return TextSegment(text if isinstance(text, str) else "")
    if kind == "tool_use":
        return ToolInvocationSegment(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            input=raw.get("input") if raw.get("input") is not None else {},
        )
    if kind == "tool_result":
        return ToolResultSegment(
            tool_use_id=str(raw.get("tool_use_id") or ""),
            content=raw.get("content", ""),
        )
    return None


@dataclass
class Completion:
    """Parsed upstream reply handed to the response synthesizers."""

    text: str
    tool_calls: list[ToolCall]
    raw_text: str

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)
