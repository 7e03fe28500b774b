"""
Ollama Provider - Local models for chat fallback and offline embeddings.

Features:
- Async HTTP client
- Streaming support (newline-delimited JSON)
- Batched embeddings via /api/embed
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
from designbox.config.errors import ProviderResponseError

logger = logging.getLogger(__name__)

__all__ = ["OllamaConfig", "OllamaProvider"]


class OllamaConfig(BaseModel):
    """Ollama server configuration."""

    base_url: str = "http://localhost:11434"
    model: str = "qwen2.5"
    embedding_model: str = "nomic-embed-text"
    timeout: float = 120.0
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    model_config = {"frozen": True}


class OllamaProvider:
    """
    Ollama local LLM provider.

    Example:
        >>> provider = OllamaProvider(OllamaConfig(model="qwen2.5"))
        >>> response = await provider.complete([ChatMessage(role="user", content="推荐字体")])
    """

    name = "ollama"
    capabilities = ProviderCapabilities(
        chat=True,
        streaming=True,
        embedding=True,
        max_tokens=8192,
        languages=["zh", "en"],
    )

    def __init__(
        self,
        config: OllamaConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize Ollama provider.

        Args:
            config: Server URL, models, timeout
            client: Pre-built HTTP client
        """
        self.config = config or OllamaConfig()
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url.rstrip("/"),
                timeout=self.config.timeout,
            )
        return self._client

    def _chat_payload(
        self,
        messages: list[ChatMessage],
        options: ChatOptions,
        stream: bool,
    ) -> dict[str, Any]:
        generation: dict[str, Any] = {
            "temperature": options.temperature,
            "num_predict": options.max_tokens,
        }
        if options.top_p is not None:
            generation["top_p"] = options.top_p
        return {
            "model": self.config.model,
            "messages": [{"role": m.role.value, "content": m.content} for m in messages],
            "stream": stream,
            "options": generation,
        }

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        client = await self._get_client()
        async for attempt in build_retrying(self.config.retry):
            with attempt:
                try:
                    response = await client.post(path, json=payload)
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
            messages: Transcript
            options: Generation options

        Returns:
            Assistant response
        """
        options = options or ChatOptions()
        validate_chat_request(messages, options, self.capabilities, self.name)

        data = await self._post("/api/chat", self._chat_payload(messages, options, stream=False))
        message = data.get("message")
        if not isinstance(message, dict):
            raise ProviderResponseError("Missing message in Ollama response", self.name)

        prompt_tokens = int(data.get("prompt_eval_count", 0))
        completion_tokens = int(data.get("eval_count", 0))
        return ChatResponse(
            content=message.get("content", ""),
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            finish_reason=data.get("done_reason", "stop"),
            provider=self.name,
            model=data.get("model", self.config.model),
        )

    async def stream(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[ChatChunk]:
        """
        Stream chat completion.

        Yields:
            Text chunks, then a completion marker
        """
        options = options or ChatOptions()
        validate_chat_request(messages, options, self.capabilities, self.name)
        client = await self._get_client()
        payload = self._chat_payload(messages, options, stream=True)

        async for attempt in build_retrying(self.config.retry):
            with attempt:
                request = client.build_request("POST", "/api/chat", json=payload)
                try:
                    response = await client.send(request, stream=True)
                except httpx.HTTPError as e:
                    raise network_error(e, self.name) from e
                if response.status_code >= 400:
                    await response.aread()
                    await response.aclose()
                    raise_for_provider_status(response, self.name)

        finish_reason = "stop"
        try:
            async for line in response.aiter_lines():
                if not line:
                    continue
                data = json.loads(line)
                content = (data.get("message") or {}).get("content")
                if content:
                    yield ChatChunk(content=content)
                if data.get("done"):
                    finish_reason = data.get("done_reason", finish_reason)
                    break
        except httpx.HTTPError as e:
            raise network_error(e, self.name) from e
        except json.JSONDecodeError as e:
            raise ProviderResponseError("Malformed stream line from Ollama", self.name) from e
        finally:
            await response.aclose()

        yield ChatChunk(is_complete=True, finish_reason=finish_reason)

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed texts in one request."""
        if not texts:
            return []
        data = await self._post("/api/embed", {"model": self.config.embedding_model, "input": texts})
        embeddings = data.get("embeddings")
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise ProviderResponseError("Embedding response size mismatch", self.name)
        return [list(map(float, vector)) for vector in embeddings]

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
