"""
Gemini Provider - Google Gemini chat and embeddings.

Features:
- Blocking SDK calls moved off the event loop
- Rate limiting (60 RPM default)
- Automatic retries with exponential backoff
- Response streaming support
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from typing import Any

import google.generativeai as genai

from designbox.adapters.llm.models import (
    ChatChunk,
    ChatMessage,
    ChatOptions,
    ChatResponse,
    ChatRole,
    ProviderCapabilities,
    TokenUsage,
)
from designbox.adapters.llm.retry import build_retrying, validate_chat_request
from designbox.config.errors import (
    ProviderAuthError,
    ProviderError,
    ProviderNetworkError,
    ProviderRateLimitError,
    ProviderRequestError,
    ProviderResponseError,
)

from .models import GeminiConfig

logger = logging.getLogger(__name__)

__all__ = ["GeminiProvider"]

_FINISH_REASONS = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
    "SAFETY": "content_filter",
    "RECITATION": "content_filter",
}


class GeminiProvider:
    """
    Gemini chat + embedding provider.

    Example:
        >>> provider = GeminiProvider(GeminiConfig(api_key="..."))
        >>> response = await provider.complete([ChatMessage(role="user", content="推荐图标库")])
        >>> print(response.content)
    """

    name = "gemini"
    capabilities = ProviderCapabilities(
        chat=True,
        streaming=True,
        embedding=True,
        max_tokens=8192,
        languages=["zh", "en"],
    )

    def __init__(self, config: GeminiConfig | None = None) -> None:
        """
        Initialize Gemini provider.

        Args:
            config: Client configuration. Uses defaults if None.
        """
        self.config = config or GeminiConfig()
        if self.config.api_key:
            genai.configure(api_key=self.config.api_key)

        # Rate limiting state
        self._request_times: list[float] = []
        self._rate_lock = asyncio.Lock()

        logger.info("GeminiProvider initialized: model=%s", self.config.model)

    async def _check_rate_limit(self) -> None:
        """Enforce rate limiting."""
        async with self._rate_lock:
            now = time.time()
            # Remove requests older than 1 minute
            self._request_times = [t for t in self._request_times if now - t < 60]

            if len(self._request_times) >= self.config.rate_limit_rpm:
                wait_time = 60 - (now - self._request_times[0])
                if wait_time > 0:
                    logger.warning("Rate limit reached, waiting %.1fs", wait_time)
                    await asyncio.sleep(wait_time)

            self._request_times.append(now)

    def _map_error(self, exc: Exception) -> ProviderError:
        """Translate SDK exceptions into the provider taxonomy."""
        message = str(exc)
        lowered = message.lower()
        if "429" in lowered or "rate limit" in lowered or "quota" in lowered or "exhausted" in lowered:
            return ProviderRateLimitError(f"Gemini rate limit: {message}", self.name)
        if "401" in lowered or "403" in lowered or "api key" in lowered or "permission" in lowered:
            return ProviderAuthError(f"Gemini authentication failed: {message}", self.name)
        if "400" in lowered or "invalid" in lowered:
            return ProviderRequestError(f"Gemini rejected request: {message}", self.name)
        return ProviderNetworkError(f"Gemini API error: {message}", self.name)

    def _build_model(
        self,
        messages: list[ChatMessage],
        options: ChatOptions,
    ) -> tuple[genai.GenerativeModel, list[dict[str, Any]]]:
        """Split the transcript into a system instruction and Gemini contents."""
        system_parts = [m.content for m in messages if m.role == ChatRole.SYSTEM]
        contents = [
            {
                "role": "model" if m.role == ChatRole.ASSISTANT else "user",
                "parts": [m.content],
            }
            for m in messages
            if m.role != ChatRole.SYSTEM
        ]
        generation_config: dict[str, Any] = {
            "temperature": options.temperature,
            "max_output_tokens": options.max_tokens,
        }
        if options.top_p is not None:
            generation_config["top_p"] = options.top_p

        model = genai.GenerativeModel(
            model_name=self.config.model,
            generation_config=generation_config,
            system_instruction="\n\n".join(system_parts) or None,
        )
        return model, contents

    async def complete(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        """
        Generate a chat completion.

        Args:
            messages: Transcript (system messages become the system instruction)
            options: Generation options

        Returns:
            ChatResponse with generated text

        Raises:
            ProviderError: API call failed after retries
        """
        options = options or ChatOptions()
        validate_chat_request(messages, options, self.capabilities, self.name)
        model, contents = self._build_model(messages, options)

        async for attempt in build_retrying(self.config.retry):
            with attempt:
                await self._check_rate_limit()
                try:
                    response = await asyncio.to_thread(
                        model.generate_content,
                        contents,
                        request_options={"timeout": self.config.timeout_seconds},
                    )
                except Exception as e:
                    raise self._map_error(e) from e

        try:
            text = response.text
        except ValueError as e:
            # Raised by the SDK when the candidate was blocked
            raise ProviderResponseError(f"Gemini returned no text: {e}", self.name) from e

        usage = getattr(response, "usage_metadata", None)
        prompt_tokens = getattr(usage, "prompt_token_count", 0) if usage else 0
        completion_tokens = getattr(usage, "candidates_token_count", 0) if usage else 0

        return ChatResponse(
            content=text,
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            finish_reason="stop",
            provider=self.name,
            model=self.config.model,
        )

    async def stream(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[ChatChunk]:
        """
        Stream generated text.

        Yields:
            Text chunks as they're generated, then a completion marker
        """
        options = options or ChatOptions()
        validate_chat_request(messages, options, self.capabilities, self.name)
        model, contents = self._build_model(messages, options)

        async for attempt in build_retrying(self.config.retry):
            with attempt:
                await self._check_rate_limit()
                try:
                    response = await asyncio.to_thread(
                        model.generate_content,
                        contents,
                        stream=True,
                        request_options={"timeout": self.config.timeout_seconds},
                    )
                except Exception as e:
                    raise self._map_error(e) from e

        iterator = iter(response)
        finish_reason = "stop"
        while True:
            try:
                chunk = await asyncio.to_thread(next, iterator, None)
            except Exception as e:
                raise self._map_error(e) from e
            if chunk is None:
                break
            text = getattr(chunk, "text", "")
            if text:
                yield ChatChunk(content=text)
            candidates = getattr(chunk, "candidates", None) or []
            reason = getattr(getattr(candidates[0], "finish_reason", None), "name", None) if candidates else None
            if reason in _FINISH_REASONS:
                finish_reason = _FINISH_REASONS[reason]

        yield ChatChunk(is_complete=True, finish_reason=finish_reason)

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """
        Embed texts with the configured embedding model.

        Returns:
            One vector per text, in input order
        """
        if not texts:
            return []

        async for attempt in build_retrying(self.config.retry):
            with attempt:
                await self._check_rate_limit()
                try:
                    result = await asyncio.to_thread(
                        genai.embed_content,
                        model=self.config.embedding_model,
                        content=texts,
                        task_type="retrieval_document",
                    )
                except Exception as e:
                    raise self._map_error(e) from e

        embeddings = result.get("embedding") if isinstance(result, dict) else None
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise ProviderResponseError("Embedding response size mismatch", self.name)
        return [list(map(float, vector)) for vector in embeddings]
