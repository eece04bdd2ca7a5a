"""In-process test helpers: fake driver endpoint, proxy harness, assertions."""

from .assertions import (
    assert_chat_completion_valid,
    assert_message_events_valid,
    assert_message_valid,
    parse_data_sse,
    parse_named_sse,
    reassemble_chat_chunks,
)
from .fake_upstream import FakeUpstream, UpstreamReply, text_chunks
from .proxy_harness import TEST_API_URL, ProxyHarness, build_test_config

__all__ = [
    "FakeUpstream",
    "ProxyHarness",
    "TEST_API_URL",
    "UpstreamReply",
    "assert_chat_completion_valid",
    "assert_message_events_valid",
    "assert_message_valid",
    "build_test_config",
    "parse_data_sse",
    "parse_named_sse",
    "reassemble_chat_chunks",
    "text_chunks",
]
