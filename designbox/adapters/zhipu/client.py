"""
Zhipu AI Provider - GLM chat and embeddings over the OpenAI-compatible REST API.

Features:
- Async HTTP client (lazily created, reusable)
- Server-sent-event streaming
- Batched embeddings
- Bounded retries on throttling and transient failures
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx
from pydantic import BaseModel, Field

from designbox.adapters.llm.models import (
    ChatChunk,
    ChatMessage,
    ChatOptions,
    ChatResponse,
    ProviderCapabilities,
    RetryPolicy,
    TokenUsage,
)
from designbox.adapters.llm.retry import (
    build_retrying,
    network_error,
    raise_for_provider_status,
    validate_chat_request,
)
from designbox.config.errors import ProviderAuthError, ProviderResponseError

logger = logging.getLogger(__name__)

__all__ = ["ZhipuConfig", "ZhipuProvider"]

_FINISH_REASONS = {
    "stop": "stop",
    "length": "length",
    "sensitive": "content_filter",
    "network_error": "error",
    "tool_calls": "stop",
}


class ZhipuConfig(BaseModel):
    """Zhipu AI client configuration."""

    api_key: str = ""
    base_url: str = "https://open.bigmodel.cn/api/paas/v4"
    model: str = "glm-4-plus"
    embedding_model: str = "embedding-2"
    embedding_batch_size: int = Field(default=16, ge=1, le=64)
    timeout: float = 30.0
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    model_config = {"frozen": True}


class ZhipuProvider:
    """
    Zhipu AI chat + embedding provider.

    Example:
        >>> provider = ZhipuProvider(ZhipuConfig(api_key="..."))
        >>> response = await provider.complete([ChatMessage(role="user", content="你好")])
        >>> vector = await provider.embed("配色工具")
    """

    name = "zhipu"
    capabilities = ProviderCapabilities(
        chat=True,
        streaming=True,
        embedding=True,
        max_tokens=8192,
        languages=["zh", "en"],
    )

    def __init__(
        self,
        config: ZhipuConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize provider.

        Args:
            config: API key, models and retry policy
            client: Pre-built HTTP client (tests inject a MockTransport here)
        """
        self.config = config or ZhipuConfig()
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url.rstrip("/"),
                timeout=self.config.timeout,
            )
        return self._client

    def _headers(self) -> dict[str, str]:
        if not self.config.api_key:
            raise ProviderAuthError("Zhipu API key is not configured", self.name)
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    def _chat_payload(
        self,
        messages: list[ChatMessage],
        options: ChatOptions,
        stream: bool,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.config.model,
            "messages": [{"role": m.role.value, "content": m.content} for m in messages],
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "stream": stream,
        }
        if options.top_p is not None:
            payload["top_p"] = options.top_p
        return payload

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST with retries; returns the decoded JSON body."""
        headers = self._headers()
        client = await self._get_client()

        async for attempt in build_retrying(self.config.retry):
            with attempt:
                try:
                    response = await client.post(path, json=payload, headers=headers)
                except httpx.HTTPError as e:
                    raise network_error(e, self.name) from e
                raise_for_provider_status(response, self.name)

        try:
            data: dict[str, Any] = response.json()
        except ValueError as e:
            raise ProviderResponseError(f"Invalid JSON from {path}", self.name) from e
        return data

    async def complete(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        """
        Chat completion.

        Args:
            messages: Transcript (system prompt first)
            options: Generation options

        Returns:
            ChatResponse with normalized finish reason and usage

        Raises:
            ProviderError: After retries, or immediately for auth/validation failures
        """
        options = options or ChatOptions()
        validate_chat_request(messages, options, self.capabilities, self.name)

        data = await self._post("/chat/completions", self._chat_payload(messages, options, stream=False))

        try:
            choice = data["choices"][0]
            content = choice["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderResponseError("Missing choices in chat completion", self.name) from e

        usage = data.get("usage")
        return ChatResponse(
            content=content,
            usage=TokenUsage(**usage) if isinstance(usage, dict) else None,
            finish_reason=_FINISH_REASONS.get(choice.get("finish_reason") or "", choice.get("finish_reason")),
            provider=self.name,
            model=data.get("model", self.config.model),
        )

    async def stream(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[ChatChunk]:
        """
        Stream a chat completion.

        Only opening the connection is retried; a failure after the first
        chunk surfaces as ProviderNetworkError.

        Yields:
            Content chunks, then one chunk with is_complete=True
        """
        options = options or ChatOptions()
        validate_chat_request(messages, options, self.capabilities, self.name)
        headers = self._headers()
        client = await self._get_client()
        payload = self._chat_payload(messages, options, stream=True)

        async for attempt in build_retrying(self.config.retry):
            with attempt:
                request = client.build_request("POST", "/chat/completions", json=payload, headers=headers)
                try:
                    response = await client.send(request, stream=True)
                except httpx.HTTPError as e:
                    raise network_error(e, self.name) from e
                if response.status_code >= 400:
                    await response.aread()
                    await response.aclose()
                    raise_for_provider_status(response, self.name)

        finish_reason: str | None = None
        try:
            async for line in response.aiter_lines():
                if not line.startswith("data:"):
                    continue
                data = line[len("data:"):].strip()
                if data == "[DONE]":
                    break
                try:
                    event = json.loads(data)
                except json.JSONDecodeError:
                    logger.debug("Skipping malformed stream event: %s", data[:80])
                    continue
                choice = (event.get("choices") or [{}])[0]
                raw_reason = choice.get("finish_reason")
                if raw_reason:
                    finish_reason = _FINISH_REASONS.get(raw_reason, raw_reason)
                content = (choice.get("delta") or {}).get("content")
                if content:
                    yield ChatChunk(content=content)
        except httpx.HTTPError as e:
            raise network_error(e, self.name) from e
        finally:
            await response.aclose()

        yield ChatChunk(is_complete=True, finish_reason=finish_reason or "stop")

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """
        Embed texts in provider-sized batches.

        Returns:
            One vector per input text, in input order
        """
        vectors: list[list[float]] = []
        size = self.config.embedding_batch_size
        for start in range(0, len(texts), size):
            batch = texts[start:start + size]
            data = await self._post(
                "/embeddings",
                {"model": self.config.embedding_model, "input": batch},
            )
            items = data.get("data")
            if not isinstance(items, list) or len(items) != len(batch):
                raise ProviderResponseError(
                    "Embedding response size mismatch",
                    self.name,
                    {"expected": len(batch), "received": len(items) if isinstance(items, list) else 0},
                )
            ordered = sorted(items, key=lambda item: item.get("index", 0))
            vectors.extend([list(map(float, item["embedding"])) for item in ordered])

        logger.debug("Embedded %d texts with %s", len(texts), self.config.embedding_model)
        return vectors

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
