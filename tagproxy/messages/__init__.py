"""Messages API response synthesis."""

from .events import (
    MessageEventStream,
    build_message,
    encode_message_events,
    generate_message_id,
    iter_message_events,
)

__all__ = [
    "MessageEventStream",
    "build_message",
    "encode_message_events",
    "generate_message_id",
    "iter_message_events",
]
