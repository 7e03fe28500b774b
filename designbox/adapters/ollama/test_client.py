"""
Tests for the Ollama provider.
"""

from __future__ import annotations

import json

import httpx
import pytest

from designbox.adapters.llm.models import ChatMessage, ChatOptions, ChatRole, RetryPolicy
from designbox.config.errors import ProviderNetworkError, ProviderResponseError

from .client import OllamaConfig, OllamaProvider


def make_provider(handler) -> OllamaProvider:  # type: ignore[no-untyped-def]
    client = httpx.AsyncClient(base_url="http://ollama.test", transport=httpx.MockTransport(handler))
    return OllamaProvider(
        OllamaConfig(retry=RetryPolicy(max_attempts=2, min_wait=0, max_wait=0)),
        client=client,
    )


MESSAGES = [ChatMessage(role=ChatRole.USER, content="推荐图标库")]


async def test_complete() -> None:
    """Test chat completion payload and response parsing."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.url.path == "/api/chat"
        assert body["stream"] is False
        assert body["options"] == {"temperature": 0.2, "num_predict": 300}
        return httpx.Response(
            200,
            json={
                "model": "qwen2.5",
                "message": {"role": "assistant", "content": "试试 Iconify"},
                "done_reason": "stop",
                "prompt_eval_count": 8,
                "eval_count": 4,
            },
        )

    response = await make_provider(handler).complete(MESSAGES, ChatOptions(max_tokens=300, temperature=0.2))
    assert response.content == "试试 Iconify"
    assert response.usage is not None and response.usage.total_tokens == 12


async def test_complete_server_error_retried() -> None:
    """Test 5xx responses are retried then surfaced as network errors."""
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503, text="loading model")

    with pytest.raises(ProviderNetworkError):
        await make_provider(handler).complete(MESSAGES)
    assert calls == 2


async def test_stream_ndjson() -> None:
    """Test newline-delimited JSON stream parsing."""
    lines = [
        {"message": {"content": "试试"}, "done": False},
        {"message": {"content": " Iconify"}, "done": False},
        {"message": {"content": ""}, "done": True, "done_reason": "length"},
    ]
    body = "\n".join(json.dumps(line, ensure_ascii=False) for line in lines) + "\n"

    provider = make_provider(lambda request: httpx.Response(200, content=body.encode("utf-8")))
    chunks = [chunk async for chunk in provider.stream(MESSAGES)]

    assert "".join(c.content for c in chunks) == "试试 Iconify"
    assert chunks[-1].is_complete
    assert chunks[-1].finish_reason == "length"


async def test_embed_batch() -> None:
    """Test embeddings come back one per input."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content)["input"] == ["a", "b"]
        return httpx.Response(200, json={"embeddings": [[1.0, 2.0], [3.0, 4.0]]})

    assert await make_provider(handler).embed_batch(["a", "b"]) == [[1.0, 2.0], [3.0, 4.0]]


async def test_embed_batch_missing_vectors() -> None:
    """Test an embedding payload without vectors is rejected."""
    provider = make_provider(lambda request: httpx.Response(200, json={}))
    with pytest.raises(ProviderResponseError):
        await provider.embed("a")
