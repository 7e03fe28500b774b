"""
Provider Contracts - Capability interfaces for embedding and chat providers.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from .models import ChatChunk, ChatMessage, ChatOptions, ChatResponse, ProviderCapabilities


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Contract for text embedding providers."""

    name: str
    capabilities: ProviderCapabilities

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed many texts, preserving order."""
        ...


@runtime_checkable
class ChatProvider(Protocol):
    """Contract for chat completion providers."""

    name: str
    capabilities: ProviderCapabilities

    async def complete(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResponse:
        """Return a full completion."""
        ...

    def stream(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> AsyncIterator[ChatChunk]:
        """Stream a completion; the final chunk has is_complete=True."""
        ...
