"""Messages API event synthesis from a parsed upstream completion.

The full reply is known before the first event is written, so every block
is emitted as a complete start/delta/stop triplet:

    event: message_start
    data: {"type":"message_start","message":{...,"content":[]}}

    event: content_block_start
    data: {"type":"content_block_start","index":0,"content_block":{"type":"text","text":""}}

    event: content_block_delta
    data: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"..."}}

    event: content_block_stop
    data: {"type":"content_block_stop","index":0}

    event: content_block_start
    data: {"type":"content_block_start","index":1,"content_block":{"type":"tool_use",...}}

    event: content_block_delta
    data: {"type":"content_block_delta","index":1,"delta":{"type":"input_json_delta","partial_json":"..."}}

    event: content_block_stop
    data: {"type":"content_block_stop","index":1}

    event: message_delta
    data: {"type":"message_delta","delta":{"stop_reason":"tool_use"},"usage":{"output_tokens":42}}

    event: message_stop
    data: {"type":"message_stop"}
"""

import logging
import time
from typing import Any, Iterator, Optional

from ..conversation.types import Completion, ToolCall
from ..core.sse import format_sse_event

logger = logging.getLogger("tagproxy")

# The upstream reports no usage; message_start carries a fixed figure.
NOMINAL_INPUT_TOKENS = 100


def generate_message_id() -> str:
    return f"msg_{time.time_ns()}"


def stop_reason_for(completion: Completion) -> str:
    return "tool_use" if completion.has_tool_calls else "end_turn"


class MessageEventStream:
    """Strict start/delta/stop state machine for one assistant message.

    Exactly one content block may be open at a time and indices are handed
    out in emission order. Calling a method out of order raises
    RuntimeError instead of producing an invalid event sequence.
    """

    def __init__(self, message_id: str, model: str) -> None:
        """Initialize the event stream.

        Args:
            message_id: The message ID to use (e.g., "msg_xxx")
            model: Model name echoed in message_start
        """
        self.message_id = message_id
        self.model = model
        self.next_index = 0
        self.open_index: Optional[int] = None
        self.started = False
        self.finished = False
        self.delta_sent = False

    def _require_started(self) -> None:
        if not self.started:
            raise RuntimeError("message_start has not been emitted")
        if self.finished:
            raise RuntimeError("message_stop has already been emitted")

    def _require_open(self) -> int:
        self._require_started()
        if self.open_index is None:
            raise RuntimeError("no content block is open")
        return self.open_index

    def _open_block(self, content_block: dict[str, Any]) -> dict[str, Any]:
        self._require_started()
        if self.delta_sent:
            raise RuntimeError("cannot open a content block after message_delta")
        if self.open_index is not None:
            raise RuntimeError(f"content block {self.open_index} is still open")
        self.open_index = self.next_index
        self.next_index += 1
        return {
            "type": "content_block_start",
            "index": self.open_index,
            "content_block": content_block,
        }

    def message_start(self) -> dict[str, Any]:
        """Return the message_start event.

        Returns:
            Event payload with an empty content list
        """
        if self.started:
            raise RuntimeError("message_start has already been emitted")
        self.started = True
        message = {
            "id": self.message_id,
            "type": "message",
            "role": "assistant",
            "content": [],
            "model": self.model,
            "stop_reason": None,
            "stop_sequence": None,
            "usage": {"input_tokens": NOMINAL_INPUT_TOKENS, "output_tokens": 0},
        }
        return {"type": "message_start", "message": message}

    def start_text_block(self) -> dict[str, Any]:
        return self._open_block({"type": "text", "text": ""})

    def start_tool_use_block(self, call: ToolCall) -> dict[str, Any]:
        return self._open_block(
            {"type": "tool_use", "id": call.id, "name": call.name, "input": {}}
        )

    def text_delta(self, text: str) -> dict[str, Any]:
        index = self._require_open()
        return {
            "type": "content_block_delta",
            "index": index,
            "delta": {"type": "text_delta", "text": text},
        }

    def input_json_delta(self, partial_json: str) -> dict[str, Any]:
        index = self._require_open()
        return {
            "type": "content_block_delta",
            "index": index,
            "delta": {"type": "input_json_delta", "partial_json": partial_json},
        }

    def stop_block(self) -> dict[str, Any]:
        index = self._require_open()
        self.open_index = None
        return {"type": "content_block_stop", "index": index}

    def message_delta(self, stop_reason: str, output_tokens: int) -> dict[str, Any]:
        """Return the message_delta event.

        Args:
            stop_reason: "end_turn" or "tool_use"
            output_tokens: Approximate output size reported in usage

        Returns:
            Event payload
        """
        self._require_started()
        if self.open_index is not None:
            raise RuntimeError(f"content block {self.open_index} is still open")
        if self.delta_sent:
            raise RuntimeError("message_delta has already been emitted")
        self.delta_sent = True
        return {
            "type": "message_delta",
            "delta": {"stop_reason": stop_reason, "stop_sequence": None},
            "usage": {"output_tokens": output_tokens},
        }

    def message_stop(self) -> dict[str, Any]:
        self._require_started()
        if not self.delta_sent:
            raise RuntimeError("message_delta has not been emitted")
        self.finished = True
        return {"type": "message_stop"}


def iter_message_events(
    completion: Completion,
    *,
    message_id: str,
    model: str,
) -> Iterator[dict[str, Any]]:
    """Yield the full event sequence for a completion.

    A text block is emitted whenever there is text or there are no tool
    calls, so the message always has at least one content block.

    Args:
        completion: Parsed upstream reply
        message_id: Message ID for the response
        model: Model name

    Yields:
        Event payloads; each carries its event name under "type"
    """
    stream = MessageEventStream(message_id, model)
    yield stream.message_start()

    if completion.text or not completion.has_tool_calls:
        yield stream.start_text_block()
        if completion.text:
            yield stream.text_delta(completion.text)
        yield stream.stop_block()

    for call in completion.tool_calls:
        yield stream.start_tool_use_block(call)
        yield stream.input_json_delta(call.arguments_json())
        yield stream.stop_block()

    yield stream.message_delta(stop_reason_for(completion), len(completion.raw_text))
    yield stream.message_stop()


def encode_message_events(
    completion: Completion,
    *,
    message_id: str,
    model: str,
) -> Iterator[bytes]:
    """SSE-encode `iter_message_events`, one chunk per event."""
    for event in iter_message_events(completion, message_id=message_id, model=model):
        yield format_sse_event(event["type"], event)


def build_message(
    completion: Completion,
    *,
    message_id: str,
    model: str,
) -> dict[str, Any]:
    """Build the non-streaming message object.

    Content blocks follow the same rules as the event sequence.

    Returns:
        Complete message object
    """
    content: list[dict[str, Any]] = []
    if completion.text or not completion.has_tool_calls:
        content.append({"type": "text", "text": completion.text})
    for call in completion.tool_calls:
        content.append(
            {"type": "tool_use", "id": call.id, "name": call.name, "input": call.input}
        )

    return {
        "id": message_id,
        "type": "message",
        "role": "assistant",
        "content": content,
        "model": model,
        "stop_reason": stop_reason_for(completion),
        "stop_sequence": None,
        "usage": {
            "input_tokens": NOMINAL_INPUT_TOKENS,
            "output_tokens": len(completion.raw_text),
        },
    }
