"""Single upstream call: POST a driver call and drain its NDJSON text stream."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

import httpx

from ..conversation.types import Turn
from ..types import DriverCallPayload, TextChunk
from .drivers import DriverCall
from .exceptions import ConfigurationError, UpstreamError
from .upstream_transport import get_upstream_transport

logger = logging.getLogger("tagproxy")

DEFAULT_API_URL = "https://api.puter.com/drivers/call"
DEFAULT_TIMEOUT = 300.0
DEFAULT_PROBE_TIMEOUT = 30.0
DEFAULT_PROBE_MODEL = "claude-sonnet-4-5-20250514"
UPSTREAM_CONTENT_TYPE = "text/plain;actually=json"

DEFAULT_HEADERS = {
    "accept": "*/*",
    "cache-control": "no-cache",
    "origin": "https://docs.puter.com",
    "referer": "https://docs.puter.com/",
}


@dataclass
class UpstreamSettings:
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    probe_model: str = DEFAULT_PROBE_MODEL
    http2: bool = False
    headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]]) -> "UpstreamSettings":
        """Build from the `upstream` config section."""
        config = config or {}
        headers = dict(DEFAULT_HEADERS)
        extra_headers = config.get("headers") or {}
        if not isinstance(extra_headers, Mapping):
            raise ConfigurationError("upstream.headers must be a mapping")
        headers.update({str(k).lower(): str(v) for k, v in extra_headers.items()})
        try:
            timeout = float(config.get("timeout", DEFAULT_TIMEOUT))
            probe_timeout = float(config.get("probe_timeout", DEFAULT_PROBE_TIMEOUT))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid upstream timeout: {exc}") from exc
        return cls(
            api_url=str(config.get("api_url") or DEFAULT_API_URL),
            timeout=timeout,
            probe_timeout=probe_timeout,
            probe_model=str(config.get("probe_model") or DEFAULT_PROBE_MODEL),
            http2=bool(config.get("http2", False)),
            headers=headers,
        )


def format_httpx_error(exc: Exception, url: str, timeout: Optional[float] = None) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)
    parts.append(f"url={url}")
    if isinstance(exc, httpx.TimeoutException) and timeout is not None:
        parts.append(f"timeout={timeout}s")
    return "; ".join(parts)


def detect_stream_error(chunk: Any) -> Optional[str]:
    """Return an error message if an NDJSON chunk reports a failure.

    Detects:
    - {"success": false, "error": {...}}
    - {"type": "error", ...}
    - {"error": {...}} or {"error": "..."}
    """
    if not isinstance(chunk, dict):
        return None
    error = chunk.get("error")
    if chunk.get("type") == "error" or chunk.get("success") is False or error:
        if isinstance(error, dict):
            return str(error.get("message") or error)
        if error:
            return str(error)
        return str(chunk.get("message") or chunk)
    return None


class UpstreamClient:
    """Calls the driver endpoint and returns the complete generated text."""

    def __init__(self, settings: Optional[UpstreamSettings] = None) -> None:
        self.settings = settings or UpstreamSettings()

    def build_payload(
        self,
        turns: Sequence[Turn],
        model: str,
        driver: DriverCall,
        auth_token: str,
        *,
        stream: bool = True,
    ) -> DriverCallPayload:
        return {
            "interface": driver.interface,
            "driver": driver.driver,
            "test_mode": False,
            "method": driver.method,
            "args": {
                "messages": [turn.to_upstream() for turn in turns],
                "model": model,
                "stream": stream,
            },
            "auth_token": auth_token,
        }

    def _headers(self) -> dict[str, str]:
        headers = dict(self.settings.headers)
        headers["content-type"] = UPSTREAM_CONTENT_TYPE
        return headers

    def _client(self, timeout: float) -> httpx.AsyncClient:
        url = self.settings.api_url
        return httpx.AsyncClient(
            timeout=timeout,
            http2=self.settings.http2,
            transport=get_upstream_transport(url),
            follow_redirects=True,
        )

    async def complete(
        self,
        turns: Sequence[Turn],
        model: str,
        driver: DriverCall,
        auth_token: str,
        *,
        req_id: str = "-",
    ) -> str:
        """Send the conversation and return the concatenated reply text.

        Args:
            turns: Trimmed turns, system prompt first when present.
            model: Model id passed through to the driver.
            driver: Resolved driver call shape.
            auth_token: Upstream bearer credential.
            req_id: Request id for log correlation.

        Returns:
            Every non-empty `text` field of the NDJSON stream, concatenated.

        Raises:
            UpstreamError: On transport failure, a non-200 status, or an
                error object inside the stream.
        """
        url = self.settings.api_url
        payload = self.build_payload(turns, model, driver, auth_token)
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        logger.info(
            f"[{req_id}] Calling upstream driver={driver.driver} model={model} "
            f"messages={len(turns)} bytes={len(body)}"
        )

        parts: list[str] = []
        try:
            async with self._client(self.settings.timeout) as client:
                request = client.build_request("POST", url, headers=self._headers(), content=body)
                resp = await client.send(request, stream=True)
                try:
                    if resp.status_code != 200:
                        data = await resp.aread()
                        text = data.decode("utf-8", errors="replace")
                        logger.warning(
                            f"[{req_id}] Upstream returned status {resp.status_code}: {text[:500]}"
                        )
                        raise UpstreamError(
                            f"upstream error: status={resp.status_code}, body={text}",
                            status=resp.status_code,
                            body=text,
                        )
                    async for line in resp.aiter_lines():
                        line = line.strip()
                        if not line:
                            continue
                        try:
                            chunk: TextChunk = json.loads(line)
                        except json.JSONDecodeError:
                            logger.debug(f"[{req_id}] Skipping non-JSON upstream line: {line[:100]}")
                            continue
                        error_message = detect_stream_error(chunk)
                        if error_message is not None:
                            logger.warning(f"[{req_id}] Upstream stream error: {error_message}")
                            raise UpstreamError(
                                f"upstream stream error: {error_message}",
                                status=resp.status_code,
                                body=line,
                            )
                        if isinstance(chunk, dict):
                            text = chunk.get("text")
                            if isinstance(text, str) and text:
                                parts.append(text)
                finally:
                    await resp.aclose()
        except httpx.HTTPError as exc:
            detail = format_httpx_error(exc, url, self.settings.timeout)
            logger.error(f"[{req_id}] Upstream request failed: {detail}")
            raise UpstreamError(f"upstream request failed: {detail}") from exc

        response_text = "".join(parts)
        logger.info(f"[{req_id}] Upstream reply: {len(response_text)} chars")
        return response_text

    async def probe(self, auth_token: str, driver: DriverCall) -> tuple[bool, str]:
        """Check whether a credential can complete a tiny non-streaming call.

        Returns:
            (is_valid, human-readable result)
        """
        url = self.settings.api_url
        payload = self.build_payload(
            [Turn.user("Hi")],
            self.settings.probe_model,
            driver,
            auth_token,
            stream=False,
        )
        try:
            async with self._client(self.settings.probe_timeout) as client:
                resp = await client.post(
                    url,
                    headers=self._headers(),
                    content=json.dumps(payload).encode("utf-8"),
                )
        except httpx.HTTPError as exc:
            return False, "Error: " + format_httpx_error(exc, url, self.settings.probe_timeout)

        if resp.status_code != 200:
            return False, f"Upstream returned status {resp.status_code}"
        if not resp.content:
            return False, "No response received"
        return True, "Token is valid"
