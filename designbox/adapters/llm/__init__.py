"""
LLM Adapter - Provider-neutral chat and embedding interface.

Supports:
- Zhipu AI (default), Gemini and Ollama for chat and embeddings
- Local sentence-transformers for embeddings
- Ordered chat failover across providers

Usage:
    from designbox.adapters.llm import LLMService, build_registry

    registry = build_registry(settings)
    llm = LLMService(registry.select(ProviderCapability.CHAT, [settings.llm_provider]))
    response = await llm.complete([ChatMessage(role="user", content="推荐字体")])
"""

from .contracts import ChatProvider, EmbeddingProvider
from .models import (
    ChatChunk,
    ChatMessage,
    ChatOptions,
    ChatResponse,
    ChatRole,
    ProviderCapabilities,
    ProviderCapability,
    RetryPolicy,
    TokenUsage,
)
from .registry import SUPPORTED_PROVIDERS, ProviderRegistry, build_registry, create_provider
from .retry import build_retrying, error_for_status, validate_chat_request
from .service import LLMService

__all__ = [
    # Contracts
    "ChatProvider",
    "EmbeddingProvider",
    # Models
    "ChatRole",
    "ChatMessage",
    "ChatOptions",
    "ChatResponse",
    "ChatChunk",
    "TokenUsage",
    "ProviderCapability",
    "ProviderCapabilities",
    "RetryPolicy",
    # Resilience
    "build_retrying",
    "error_for_status",
    "validate_chat_request",
    # Registry / failover
    "ProviderRegistry",
    "create_provider",
    "build_registry",
    "SUPPORTED_PROVIDERS",
    "LLMService",
]
