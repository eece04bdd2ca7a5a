"""Type schemas for request and response bodies."""

from .wire import (
    ChatChoice,
    ChatToolCall,
    ChatUsage,
    DriverCallPayload,
    FunctionCall,
    TextChunk,
    UpstreamArgs,
    UpstreamMessage,
)

__all__ = [
    "ChatChoice",
    "ChatToolCall",
    "ChatUsage",
    "DriverCallPayload",
    "FunctionCall",
    "TextChunk",
    "UpstreamArgs",
    "UpstreamMessage",
]
