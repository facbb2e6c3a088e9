"""
Shared pytest fixtures.

Tests never touch the network: the chat provider is either a mock or an
OpenRouterProvider whose SDK client has been patched.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from providers.base import ChatProvider  # noqa: E402

CHAT_URL = "https://openrouter.ai/api/v1/chat/completions"


def status_error(status: int, message: str = "error") -> openai.APIStatusError:
    """Build the SDK exception the client raises for a given HTTP status."""
    response = httpx.Response(status, request=httpx.Request("POST", CHAT_URL))
    if status == 429:
        return openai.RateLimitError(message, response=response, body=None)
    if status >= 500:
        return openai.InternalServerError(message, response=response, body=None)
    return openai.APIStatusError(message, response=response, body=None)


def connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=httpx.Request("POST", CHAT_URL))


class FakeProvider(ChatProvider):
    """
    Chat provider scripted per model id. Each value is either a content
    string or an exception instance to raise. Unscripted ids raise.
    """

    def __init__(self, script: dict[str, object]):
        self.name   = "fake"
        self.script = script
        self.calls: list[str] = []
        self.requests: list[dict] = []

    async def complete(self, model_id, messages, max_tokens, temperature) -> str:
        self.calls.append(model_id)
        self.requests.append({
            "model":       model_id,
            "messages":    messages,
            "max_tokens":  max_tokens,
            "temperature": temperature,
        })
        outcome: Optional[object] = self.script.get(model_id)
        if outcome is None:
            raise AssertionError(f"unexpected call to {model_id}")
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def fake_provider():
    """Factory fixture: fake_provider({"model-a": "...", "model-b": exc})."""
    return FakeProvider


@pytest.fixture
def mock_provider():
    p = AsyncMock(spec=ChatProvider)
    p.name = "mock"
    return p
