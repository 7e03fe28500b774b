"""
LLM Service - Chat completion with ordered provider failover.

Architecture:
    Primary provider (retried with backoff inside the provider)
    → next provider on any ProviderError
    → last error re-raised when every provider failed

Embeddings never fail over: vectors from different models are not comparable.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence

from designbox.config.errors import ProviderError

from .contracts import ChatProvider
from .models import ChatChunk, ChatMessage, ChatOptions, ChatResponse, ProviderCapabilities

logger = logging.getLogger(__name__)

__all__ = ["LLMService"]


class LLMService:
    """
    Chat provider that tries several providers in order.

    Example:
        >>> llm = LLMService([zhipu, ollama])
        >>> response = await llm.complete(messages)
        >>> response.provider
        'ollama'  # if zhipu was down
    """

    name = "failover"

    def __init__(self, providers: Sequence[ChatProvider]) -> None:
        """
        Initialize LLM service.

        Args:
            providers: Chat providers, most preferred first
        """
        if not providers:
            raise ValueError("LLMService needs at least one chat provider")
        self._providers = list(providers)
        self.capabilities = ProviderCapabilities(
            chat=True,
            streaming=any(p.capabilities.streaming for p in self._providers),
            max_tokens=min(p.capabilities.max_tokens for p in self._providers),
            languages=sorted({lang for p in self._providers for lang in p.capabilities.languages}),
        )

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self._providers]

    async def complete(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        """
        Complete with the first provider that succeeds.

        Raises:
            ProviderError: The last provider's error when all of them failed
        """
        last_error: ProviderError | None = None
        for provider in self._providers:
            try:
                return await provider.complete(messages, options)
            except ProviderError as e:
                logger.warning("Provider %s failed, trying next: %s", provider.name, e)
                last_error = e
        assert last_error is not None
        raise last_error

    async def stream(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[ChatChunk]:
        """
        Stream from the first provider that starts producing output.

        Failover only happens before the first chunk; a failure mid-stream
        is re-raised so callers never receive text from two providers.
        """
        last_error: ProviderError | None = None
        for provider in self._providers:
            if not provider.capabilities.streaming:
                continue
            started = False
            try:
                async for chunk in provider.stream(messages, options):
                    started = True
                    yield chunk
                return
            except ProviderError as e:
                if started:
                    raise
                logger.warning("Provider %s failed to stream, trying next: %s", provider.name, e)
                last_error = e
        if last_error is None:
            raise ProviderError("No streaming-capable chat provider configured", self.name)
        raise last_error
