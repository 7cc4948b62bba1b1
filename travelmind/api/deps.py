"""Shared FastAPI dependencies."""

from fastapi import Request

from travelmind.config import get_settings
from travelmind.llm.client import ChatClient, build_chat_client


def get_chat_client(request: Request) -> ChatClient:
    """The process chat client (built at startup), or a fresh default chain."""
    client = getattr(request.app.state, "chat_client", None)
    if client is None:
        client = build_chat_client(get_settings())
        request.app.state.chat_client = client
    return client
