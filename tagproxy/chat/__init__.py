"""Chat completions response synthesis."""

from .synthesizer import (
    build_chat_completion,
    encode_chat_completion_chunks,
    generate_completion_id,
    iter_chat_completion_chunks,
)

__all__ = [
    "build_chat_completion",
    "encode_chat_completion_chunks",
    "generate_completion_id",
    "iter_chat_completion_chunks",
]
