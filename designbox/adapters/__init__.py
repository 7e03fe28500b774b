"""
Adapters - External service integrations.

All provider and index calls are wrapped here to isolate domains from
third-party changes. Concrete providers live in their own subpackages
(zhipu, gemini, ollama, local, faiss) and are constructed by
``designbox.adapters.llm.create_provider``.
"""

from .llm import (
    ChatProvider,
    EmbeddingProvider,
    LLMService,
    ProviderRegistry,
    build_registry,
    create_provider,
)

__all__ = [
    "ChatProvider",
    "EmbeddingProvider",
    "LLMService",
    "ProviderRegistry",
    "build_registry",
    "create_provider",
]
