"""Request pipeline: normalize, trim, call upstream once, parse tool calls."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..conversation import (
    DEFAULT_MAX_CONTEXT_CHARS,
    Completion,
    Turn,
    chat_request_to_conversation,
    messages_request_to_conversation,
    parse_tool_calls,
    trim_turns,
)
from ..credentials import CredentialStore
from .drivers import DriverResolver
from .exceptions import ConfigurationError, InvalidRequestError
from .upstream import UpstreamClient, UpstreamSettings

logger = logging.getLogger("tagproxy")

DEFAULT_MODEL = "claude-opus-4-5"


@dataclass
class PreparedRequest:
    """An inbound request reduced to what the upstream call needs."""

    model: str
    stream: bool
    system_prompt: str
    turns: list[Turn]
    original_turn_count: int
    has_tools: bool


class Gateway:
    """Per-process wiring of the upstream client, driver table and credentials."""

    def __init__(
        self,
        credentials: CredentialStore,
        *,
        upstream: Optional[UpstreamClient] = None,
        resolver: Optional[DriverResolver] = None,
        default_model: str = DEFAULT_MODEL,
        models: Optional[list[str]] = None,
        max_context_chars: int = DEFAULT_MAX_CONTEXT_CHARS,
        chat_chunk_size: int = 0,
    ) -> None:
        self.credentials = credentials
        self.upstream = upstream or UpstreamClient()
        self.resolver = resolver or DriverResolver()
        self.default_model = default_model
        self.models = list(models) if models else [default_model]
        self.max_context_chars = max_context_chars
        self.chat_chunk_size = chat_chunk_size

    @classmethod
    def from_config(cls, config: Mapping[str, Any], credentials: CredentialStore) -> "Gateway":
        """Build a gateway from the loaded configuration."""
        upstream_cfg = config.get("upstream") or {}
        context_cfg = config.get("context") or {}
        chat_cfg = config.get("chat") or {}

        models = config.get("models") or []
        if not isinstance(models, list) or not all(isinstance(m, str) for m in models):
            raise ConfigurationError("'models' must be a list of model ids")

        try:
            max_chars = int(context_cfg.get("max_chars", DEFAULT_MAX_CONTEXT_CHARS))
            chunk_size = int(chat_cfg.get("stream_chunk_size", 0))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc
        if max_chars <= 0:
            raise ConfigurationError("context.max_chars must be positive")

        return cls(
            credentials,
            upstream=UpstreamClient(UpstreamSettings.from_config(upstream_cfg)),
            resolver=DriverResolver.from_config(config.get("drivers")),
            default_model=str(upstream_cfg.get("default_model") or DEFAULT_MODEL),
            models=models,
            max_context_chars=max_chars,
            chat_chunk_size=max(chunk_size, 0),
        )

    def _model_for(self, payload: Mapping[str, Any]) -> str:
        model = payload.get("model")
        if model is None or model == "":
            return self.default_model
        if not isinstance(model, str):
            raise InvalidRequestError("'model' must be a string", code="invalid_model")
        return model

    def _prepare(
        self,
        payload: Mapping[str, Any],
        system_prompt: str,
        turns: list[Turn],
        stream: bool,
    ) -> PreparedRequest:
        trimmed = trim_turns(system_prompt, turns, self.max_context_chars)
        return PreparedRequest(
            model=self._model_for(payload),
            stream=stream,
            system_prompt=system_prompt,
            turns=trimmed,
            original_turn_count=len(turns),
            has_tools=bool(payload.get("tools")),
        )

    def prepare_messages(self, payload: Mapping[str, Any]) -> PreparedRequest:
        """Prepare a Messages request. Streams unless `stream` is false."""
        system_prompt, turns = messages_request_to_conversation(payload)
        return self._prepare(payload, system_prompt, turns, payload.get("stream") is not False)

    def prepare_chat(self, payload: Mapping[str, Any]) -> PreparedRequest:
        """Prepare a chat-completions request. Streams only if `stream` is true."""
        system_prompt, turns = chat_request_to_conversation(payload)
        return self._prepare(payload, system_prompt, turns, bool(payload.get("stream")))

    async def complete(self, prepared: PreparedRequest, *, req_id: str = "-") -> Completion:
        """Run the single upstream call and parse the reply.

        Raises:
            CredentialUnavailableError: If no usable credential exists.
            UpstreamError: If the upstream call fails.
        """
        credential = await asyncio.to_thread(self.credentials.acquire)
        driver = self.resolver.resolve(prepared.model)
        raw_text = await self.upstream.complete(
            prepared.turns,
            prepared.model,
            driver,
            credential.token,
            req_id=req_id,
        )
        tool_calls, text = parse_tool_calls(raw_text)
        if tool_calls:
            logger.info(
                f"[{req_id}] Parsed {len(tool_calls)} tool call(s): "
                f"{', '.join(call.name for call in tool_calls)}"
            )
        return Completion(text=text, tool_calls=tool_calls, raw_text=raw_text)
