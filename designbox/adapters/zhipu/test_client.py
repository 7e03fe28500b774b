"""
Tests for the Zhipu AI provider over a mocked HTTP transport.
"""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from designbox.adapters.llm.models import ChatMessage, ChatOptions, ChatRole, RetryPolicy
from designbox.config.errors import (
    ProviderAuthError,
    ProviderNetworkError,
    ProviderRequestError,
    ProviderResponseError,
)

from .client import ZhipuConfig, ZhipuProvider

BASE_URL = "https://open.bigmodel.cn/api/paas/v4"


def make_provider(
    handler: Callable[[httpx.Request], httpx.Response],
    api_key: str = "test-key",
) -> ZhipuProvider:
    """Build a provider whose HTTP traffic goes to ``handler``."""
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    config = ZhipuConfig(api_key=api_key, retry=RetryPolicy(max_attempts=3, min_wait=0, max_wait=0))
    return ZhipuProvider(config, client=client)


@pytest.fixture
def messages() -> list[ChatMessage]:
    return [
        ChatMessage(role=ChatRole.SYSTEM, content="你是设计资源助手"),
        ChatMessage(role=ChatRole.USER, content="推荐配色工具"),
    ]


def completion_body(content: str = "推荐 Coolors", finish_reason: str = "stop") -> dict:
    return {
        "model": "glm-4-plus",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": finish_reason}],
        "usage": {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17},
    }


# --- Chat Completion Tests ---


async def test_complete_success(messages: list[ChatMessage]) -> None:
    """Test a completion is parsed and the request is well formed."""
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion_body())

    provider = make_provider(handler)
    response = await provider.complete(messages, ChatOptions(max_tokens=500, temperature=0.3))

    assert response.content == "推荐 Coolors"
    assert response.finish_reason == "stop"
    assert response.usage is not None and response.usage.total_tokens == 17
    assert seen["path"].endswith("/chat/completions")
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "glm-4-plus"
    assert seen["body"]["max_tokens"] == 500
    assert seen["body"]["messages"][0] == {"role": "system", "content": "你是设计资源助手"}


async def test_complete_maps_sensitive_finish_reason(messages: list[ChatMessage]) -> None:
    """Test provider-specific finish reasons are normalized."""
    provider = make_provider(lambda request: httpx.Response(200, json=completion_body(finish_reason="sensitive")))
    response = await provider.complete(messages)
    assert response.finish_reason == "content_filter"


async def test_complete_retries_rate_limit(messages: list[ChatMessage]) -> None:
    """Test 429 responses are retried."""
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        if calls == 1:
            return httpx.Response(429, json={"error": {"message": "rate limited"}})
        return httpx.Response(200, json=completion_body("好的"))

    response = await make_provider(handler).complete(messages)
    assert response.content == "好的"
    assert calls == 2


async def test_complete_does_not_retry_auth_failure(messages: list[ChatMessage]) -> None:
    """Test 401 responses surface immediately."""
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(401, json={"error": {"message": "invalid api key"}})

    with pytest.raises(ProviderAuthError):
        await make_provider(handler).complete(messages)
    assert calls == 1


async def test_complete_network_failure_exhausts_retries(messages: list[ChatMessage]) -> None:
    """Test connection errors are retried then surfaced as network errors."""
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderNetworkError):
        await make_provider(handler).complete(messages)
    assert calls == 3


async def test_complete_without_api_key(messages: list[ChatMessage]) -> None:
    """Test a missing key fails before any request is sent."""
    provider = make_provider(lambda request: httpx.Response(200, json=completion_body()), api_key="")
    with pytest.raises(ProviderAuthError):
        await provider.complete(messages)


async def test_complete_rejects_excess_max_tokens(messages: list[ChatMessage]) -> None:
    """Test max_tokens above the provider limit is a validation error."""
    provider = make_provider(lambda request: httpx.Response(200, json=completion_body()))
    with pytest.raises(ProviderRequestError):
        await provider.complete(messages, ChatOptions(max_tokens=9000))


async def test_complete_malformed_payload(messages: list[ChatMessage]) -> None:
    """Test a payload without choices is reported as an invalid response."""
    provider = make_provider(lambda request: httpx.Response(200, json={"choices": []}))
    with pytest.raises(ProviderResponseError):
        await provider.complete(messages)


# --- Streaming Tests ---


async def test_stream_parses_server_sent_events(messages: list[ChatMessage]) -> None:
    """Test SSE deltas become chunks followed by a completion marker."""
    events = [
        {"choices": [{"delta": {"content": "推荐"}}]},
        {"choices": [{"delta": {"content": "Coolors"}}]},
        {"choices": [{"delta": {}, "finish_reason": "stop"}]},
    ]
    body = "".join(f"data: {json.dumps(e, ensure_ascii=False)}\n\n" for e in events) + "data: [DONE]\n\n"

    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content)["stream"] is True
        return httpx.Response(200, content=body.encode("utf-8"), headers={"content-type": "text/event-stream"})

    chunks = [chunk async for chunk in make_provider(handler).stream(messages)]

    assert [c.content for c in chunks[:-1]] == ["推荐", "Coolors"]
    assert chunks[-1].is_complete is True
    assert chunks[-1].finish_reason == "stop"


async def test_stream_open_failure_is_mapped(messages: list[ChatMessage]) -> None:
    """Test an error status when opening the stream raises the mapped error."""
    provider = make_provider(lambda request: httpx.Response(403, json={"error": "forbidden"}))
    with pytest.raises(ProviderAuthError):
        async for _ in provider.stream(messages):
            pass


# --- Embedding Tests ---


async def test_embed_batch_orders_by_index() -> None:
    """Test embeddings are returned in input order even if the payload is not."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert body["model"] == "embedding-2"
        assert body["input"] == ["配色", "字体"]
        return httpx.Response(
            200,
            json={"data": [{"index": 1, "embedding": [0.0, 1.0]}, {"index": 0, "embedding": [1.0, 0.0]}]},
        )

    vectors = await make_provider(handler).embed_batch(["配色", "字体"])
    assert vectors == [[1.0, 0.0], [0.0, 1.0]]


async def test_embed_single() -> None:
    """Test single-text embedding."""
    provider = make_provider(
        lambda request: httpx.Response(200, json={"data": [{"index": 0, "embedding": [0.5, 0.5]}]})
    )
    assert await provider.embed("图标") == [0.5, 0.5]


async def test_embed_batch_size_mismatch() -> None:
    """Test a short embedding payload is rejected."""
    provider = make_provider(lambda request: httpx.Response(200, json={"data": []}))
    with pytest.raises(ProviderResponseError):
        await provider.embed_batch(["a", "b"])
