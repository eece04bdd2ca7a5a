"""Wire shapes for the upstream driver call and the chat completion output.

These describe JSON bodies only; the canonical in-memory conversation types
live in `tagproxy.conversation.types`.
"""

from typing import Any
from typing_extensions import TypedDict


# =============================================================================
# Upstream driver call
# =============================================================================


class UpstreamMessage(TypedDict):
    """One flattened turn sent upstream.

    Attributes:
        role: "system", "user" or "assistant".
        content: The turn text, with tool traffic embedded as tags.
    """
    role: str
    content: str


class UpstreamArgs(TypedDict):
    messages: list[UpstreamMessage]
    model: str
    stream: bool


class DriverCallPayload(TypedDict):
    """Body POSTed to the driver endpoint.

    Attributes:
        interface: Driver interface, e.g. "puter-chat-completion".
        driver: Provider driver selected from the model id.
        test_mode: Always False.
        method: Driver method, e.g. "complete".
        args: Conversation, model and stream flag.
        auth_token: Upstream credential.
    """
    interface: str
    driver: str
    test_mode: bool
    method: str
    args: UpstreamArgs
    auth_token: str


class TextChunk(TypedDict, total=False):
    """One NDJSON line of the upstream reply stream."""
    type: str
    text: str


# =============================================================================
# Chat completion output
# =============================================================================


class FunctionCall(TypedDict, total=False):
    """Function part of a chat tool call.

    Attributes:
        name: Tool name. Omitted on streamed argument chunks.
        arguments: JSON text of the tool input, or a piece of it when
            streamed.
    """
    name: str
    arguments: str


class ChatToolCall(TypedDict, total=False):
    """A tool call in a chat completion message or chunk delta.

    Attributes:
        index: Position in the tool_calls array (streamed chunks only).
        id: Tool call id.
        type: Always "function".
        function: Name and arguments.
    """
    index: int
    id: str
    type: str
    function: FunctionCall


class ChatChoice(TypedDict, total=False):
    index: int
    message: dict[str, Any]
    delta: dict[str, Any]
    finish_reason: str | None
    logprobs: None


class ChatUsage(TypedDict):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
