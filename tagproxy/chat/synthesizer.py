"""Chat completion synthesis from a parsed upstream completion.

Non-streaming replies are a single `chat.completion` object. Streaming
replies are `chat.completion.chunk` objects sent as SSE data lines:

    data: {"choices":[{"delta":{"role":"assistant"},"index":0}]}
    data: {"choices":[{"delta":{"content":"Hello"},"index":0}]}
    data: {"choices":[{"delta":{"tool_calls":[{"index":0,"id":"...","type":"function","function":{"name":"...","arguments":""}}]},"index":0}]}
    data: {"choices":[{"delta":{"tool_calls":[{"index":0,"function":{"arguments":"{...}"}}]},"index":0}]}
    data: {"choices":[{"delta":{},"finish_reason":"tool_calls","index":0}]}
    data: [DONE]
"""

import time
from typing import Any, Iterator, Optional

from ..conversation.types import Completion
from ..core.sse import SSE_DONE, format_sse_data
from ..types import ChatChoice, ChatToolCall, ChatUsage


def generate_completion_id() -> str:
    return f"chatcmpl-{time.time_ns()}"


def finish_reason_for(completion: Completion) -> str:
    return "tool_calls" if completion.has_tool_calls else "stop"


def _split(text: str, chunk_size: int) -> list[str]:
    if chunk_size <= 0 or len(text) <= chunk_size:
        return [text]
    return [text[i:i + chunk_size] for i in range(0, len(text), chunk_size)]


def build_chat_completion(
    completion: Completion,
    *,
    completion_id: str,
    model: str,
    created: Optional[int] = None,
) -> dict[str, Any]:
    """Build the non-streaming chat.completion object.

    `content` is present only when the residual text is non-empty and
    `tool_calls` only when there are calls. Usage is approximated from the
    residual text length.
    """
    message: dict[str, Any] = {"role": "assistant"}
    if completion.text:
        message["content"] = completion.text
    if completion.has_tool_calls:
        tool_calls: list[ChatToolCall] = [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": call.arguments_json()},
            }
            for call in completion.tool_calls
        ]
        message["tool_calls"] = tool_calls

    text_length = len(completion.text)
    usage: ChatUsage = {
        "prompt_tokens": 0,
        "completion_tokens": text_length,
        "total_tokens": text_length,
    }
    choice: ChatChoice = {
        "index": 0,
        "message": message,
        "finish_reason": finish_reason_for(completion),
        "logprobs": None,
    }
    return {
        "id": completion_id,
        "object": "chat.completion",
        "created": created if created is not None else int(time.time()),
        "model": model,
        "choices": [choice],
        "usage": usage,
    }


def iter_chat_completion_chunks(
    completion: Completion,
    *,
    completion_id: str,
    model: str,
    created: Optional[int] = None,
    chunk_size: int = 0,
) -> Iterator[dict[str, Any]]:
    """Yield the chat.completion.chunk sequence for a completion.

    Args:
        completion: Parsed upstream reply
        completion_id: Shared id for every chunk
        model: Model name
        created: Shared creation timestamp (defaults to now)
        chunk_size: Maximum characters per content or argument chunk;
            0 sends each piece of text in one chunk

    Yields:
        Chunk objects, ending with the finish_reason chunk (the `[DONE]`
        sentinel is added by `encode_chat_completion_chunks`)
    """
    if created is None:
        created = int(time.time())

    def chunk(delta: dict[str, Any], finish_reason: Optional[str] = None) -> dict[str, Any]:
        return {
            "id": completion_id,
            "object": "chat.completion.chunk",
            "created": created,
            "model": model,
            "choices": [
                {
                    "index": 0,
                    "delta": delta,
                    "finish_reason": finish_reason,
                    "logprobs": None,
                }
            ],
        }

    yield chunk({"role": "assistant"})

    if completion.text:
        for piece in _split(completion.text, chunk_size):
            yield chunk({"content": piece})

    for index, call in enumerate(completion.tool_calls):
        yield chunk(
            {
                "tool_calls": [
                    {
                        "index": index,
                        "id": call.id,
                        "type": "function",
                        "function": {"name": call.name, "arguments": ""},
                    }
                ]
            }
        )
        for piece in _split(call.arguments_json(), chunk_size):
            yield chunk(
                {"tool_calls": [{"index": index, "function": {"arguments": piece}}]}
            )

    yield chunk({}, finish_reason_for(completion))


def encode_chat_completion_chunks(
    completion: Completion,
    *,
    completion_id: str,
    model: str,
    created: Optional[int] = None,
    chunk_size: int = 0,
) -> Iterator[bytes]:
    """SSE-encode the chunk sequence and terminate it with `[DONE]`."""
    for item in iter_chat_completion_chunks(
        completion,
        completion_id=completion_id,
        model=model,
        created=created,
        chunk_size=chunk_size,
    ):
        yield format_sse_data(item)
    yield SSE_DONE
