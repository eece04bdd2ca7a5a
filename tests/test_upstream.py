"""Tests for the upstream driver client against an in-process fake."""

import httpx
import pytest

from tagproxy.conversation.types import Role, Turn
from tagproxy.core.drivers import DriverCall
from tagproxy.core.exceptions import ConfigurationError, UpstreamError
from tagproxy.core.upstream import (
    DEFAULT_HEADERS,
    UPSTREAM_CONTENT_TYPE,
    UpstreamClient,
    UpstreamSettings,
    detect_stream_error,
    format_httpx_error,
)
from tagproxy.core.upstream_transport import (
    get_upstream_transport,
    register_upstream_transport,
    unregister_upstream_transport,
)
from tagproxy.testing import TEST_API_URL, FakeUpstream, UpstreamReply

DRIVER = DriverCall("puter-chat-completion", "claude", "complete")
TURNS = [Turn(Role.SYSTEM, "Be brief."), Turn(Role.USER, "Hi")]


@pytest.fixture
def client(upstream: FakeUpstream) -> UpstreamClient:
    register_upstream_transport(TEST_API_URL, httpx.ASGITransport(app=upstream.app))
    return UpstreamClient(UpstreamSettings(api_url=TEST_API_URL))


class TestComplete:
    """Tests for UpstreamClient.complete."""

    @pytest.mark.asyncio
    async def test_concatenates_text_chunks(self, client, upstream):
        upstream.enqueue_text("Hello there, how can I help?", chunk_size=4)

        text = await client.complete(TURNS, "claude-opus-4-5", DRIVER, "tok-1")

        assert text == "Hello there, how can I help?"

    @pytest.mark.asyncio
    async def test_sends_driver_call_payload(self, client, upstream):
        upstream.enqueue_text("ok")

        await client.complete(TURNS, "claude-opus-4-5", DRIVER, "tok-1")

        assert upstream.last_payload == {
            "interface": "puter-chat-completion",
            "driver": "claude",
            "test_mode": False,
            "method": "complete",
            "args": {
                "messages": [
                    {"role": "system", "content": "Be brief."},
                    {"role": "user", "content": "Hi"},
                ],
                "model": "claude-opus-4-5",
                "stream": True,
            },
            "auth_token": "tok-1",
        }
        headers = upstream.received[-1]["headers"]
        assert headers["content-type"] == UPSTREAM_CONTENT_TYPE
        assert headers["origin"] == DEFAULT_HEADERS["origin"]

    @pytest.mark.asyncio
    async def test_skips_non_text_and_non_json_lines(self, client, upstream):
        upstream.enqueue(
            UpstreamReply(
                chunks=[
                    {"type": "text", "text": "a"},
                    {"type": "usage", "usage": {"input_tokens": 3}},
                    {"type": "text", "text": ""},
                    {"type": "text", "text": "b"},
                ]
            )
        )
        assert await client.complete(TURNS, "m", DRIVER, "tok") == "ab"

    @pytest.mark.asyncio
    async def test_non_200_raises_with_body(self, client, upstream):
        upstream.enqueue_error(401, '{"error": "bad token"}')

        with pytest.raises(UpstreamError) as exc_info:
            await client.complete(TURNS, "m", DRIVER, "tok")

        assert exc_info.value.status == 401
        assert exc_info.value.body == '{"error": "bad token"}'
        assert "bad token" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_stream_error_raises(self, client, upstream):
        upstream.enqueue_stream_error("model overloaded", after_text="partial")

        with pytest.raises(UpstreamError) as exc_info:
            await client.complete(TURNS, "m", DRIVER, "tok")

        assert "model overloaded" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_transport_failure_raises(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        register_upstream_transport(TEST_API_URL, httpx.MockTransport(refuse))
        client = UpstreamClient(UpstreamSettings(api_url=TEST_API_URL))

        with pytest.raises(UpstreamError) as exc_info:
            await client.complete(TURNS, "m", DRIVER, "tok")

        assert "ConnectError" in exc_info.value.message
        assert exc_info.value.status is None


class TestProbe:
    """Tests for UpstreamClient.probe."""

    @pytest.mark.asyncio
    async def test_valid_token(self, client, upstream):
        upstream.enqueue_text("Hello!")

        is_valid, message = await client.probe("tok", DRIVER)

        assert is_valid
        assert message == "Token is valid"
        payload = upstream.last_payload
        assert payload["args"]["stream"] is False
        assert payload["args"]["messages"] == [{"role": "user", "content": "Hi"}]
        assert payload["args"]["model"] == client.settings.probe_model

    @pytest.mark.asyncio
    async def test_rejected_token(self, client, upstream):
        upstream.enqueue_error(401, "unauthorized")

        is_valid, message = await client.probe("tok", DRIVER)

        assert not is_valid
        assert message == "Upstream returned status 401"

    @pytest.mark.asyncio
    async def test_empty_body(self, client, upstream):
        upstream.enqueue_error(200, "")

        assert await client.probe("tok", DRIVER) == (False, "No response received")


class TestUpstreamSettings:
    """Tests for UpstreamSettings.from_config."""

    def test_defaults(self):
        settings = UpstreamSettings.from_config(None)
        assert settings == UpstreamSettings()

    def test_overrides(self):
        settings = UpstreamSettings.from_config(
            {
                "api_url": "http://example.test/call",
                "timeout": "12",
                "http2": True,
                "headers": {"Origin": "https://example.test"},
            }
        )
        assert settings.api_url == "http://example.test/call"
        assert settings.timeout == 12.0
        assert settings.http2 is True
        assert settings.headers["origin"] == "https://example.test"
        assert settings.headers["accept"] == DEFAULT_HEADERS["accept"]

    def test_invalid_timeout(self):
        with pytest.raises(ConfigurationError):
            UpstreamSettings.from_config({"timeout": "soon"})

    def test_invalid_headers(self):
        with pytest.raises(ConfigurationError):
            UpstreamSettings.from_config({"headers": ["x"]})


class TestDetectStreamError:
    """Tests for detect_stream_error."""

    def test_plain_text_chunk(self):
        assert detect_stream_error({"type": "text", "text": "hi"}) is None
        assert detect_stream_error(["not", "a", "dict"]) is None

    def test_success_false(self):
        assert detect_stream_error({"success": False, "error": {"message": "nope"}}) == "nope"

    def test_error_type(self):
        assert detect_stream_error({"type": "error", "message": "boom"}) == "boom"

    def test_error_string(self):
        assert detect_stream_error({"error": "boom"}) == "boom"


class TestTransportRegistry:
    """Tests for the per-host transport registry."""

    def test_lookup_by_host(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200))
        register_upstream_transport("http://Upstream.Local/a", transport)

        assert get_upstream_transport("http://upstream.local/b") is transport
        assert get_upstream_transport("http://other.local/") is None
        assert get_upstream_transport("") is None

        unregister_upstream_transport("http://upstream.local/")
        assert get_upstream_transport("http://upstream.local/a") is None

    def test_rejects_url_without_host(self):
        with pytest.raises(ValueError):
            register_upstream_transport("not-a-url", httpx.MockTransport(lambda r: httpx.Response(200)))


def test_format_httpx_error_includes_timeout():
    request = httpx.Request("POST", "http://x.test/")
    exc = httpx.ReadTimeout("timed out", request=request)
    message = format_httpx_error(exc, "http://x.test/", 5.0)
    assert message == "ReadTimeout; timed out; url=http://x.test/; timeout=5.0s"
