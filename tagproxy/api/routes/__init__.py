"""API routes for the proxy."""

from fastapi import FastAPI

from .chat import chat_completions
from .messages import messages_endpoint
from .models import list_models
from .tokens import (
    add_token,
    delete_token,
    list_tokens,
    rename_token,
    probe_all_tokens,
    probe_token,
    toggle_token,
)


def register_routes(app: FastAPI) -> None:
    """Attach every proxy and admin route to `app`."""
    app.post("/v1/messages")(messages_endpoint)
    app.post("/messages")(messages_endpoint)
    app.post("/v1/chat/completions")(chat_completions)
    app.get("/v1/models")(list_models)

    app.get("/api/tokens")(list_tokens)
    app.post("/api/tokens")(add_token)
    app.post("/api/tokens/test-all")(probe_all_tokens)
    app.delete("/api/tokens/{token_id}")(delete_token)
    app.put("/api/tokens/{token_id}")(rename_token)
    app.put("/api/tokens/{token_id}/toggle")(toggle_token)
    app.post("/api/tokens/{token_id}/test")(probe_token)


__all__ = [
    "add_token",
    "chat_completions",
    "delete_token",
    "list_models",
    "list_tokens",
    "messages_endpoint",
    "register_routes",
    "rename_token",
    "probe_all_tokens",
    "probe_token",
    "toggle_token",
]
