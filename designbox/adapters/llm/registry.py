"""
Provider Registry - Named providers, capability lookup and construction from settings.

Usage:
    registry = build_registry(get_settings())
    chat = registry.get(settings.llm_provider)
    embedder = registry.get(settings.embedding_provider)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from designbox.config.errors import ProviderRequestError

from .models import ProviderCapability, RetryPolicy

if TYPE_CHECKING:
    from designbox.config.settings import Settings

logger = logging.getLogger(__name__)

__all__ = ["ProviderRegistry", "create_provider", "build_registry", "SUPPORTED_PROVIDERS"]

SUPPORTED_PROVIDERS = ("zhipu", "gemini", "ollama", "local")


class ProviderRegistry:
    """
    Registry of provider instances keyed by name.

    Example:
        >>> registry = ProviderRegistry()
        >>> registry.register(ZhipuProvider(config))
        >>> registry.by_capability(ProviderCapability.EMBEDDING)
    """

    def __init__(self) -> None:
        self._providers: dict[str, Any] = {}

    def register(self, provider: Any) -> None:
        """Register a provider under its ``name``; re-registering replaces it."""
        if provider.name in self._providers:
            logger.warning("Replacing registered provider: %s", provider.name)
        self._providers[provider.name] = provider
        logger.debug("Registered provider: %s", provider.name)

    def get(self, name: str) -> Any:
        """
        Look up a provider.

        Raises:
            ProviderRequestError: No provider registered under that name
        """
        try:
            return self._providers[name]
        except KeyError:
            raise ProviderRequestError(
                f"Provider not registered: {name}",
                name,
                {"registered": list(self._providers)},
            ) from None

    @property
    def names(self) -> list[str]:
        """Registered provider names in registration order."""
        return list(self._providers)

    def by_capability(self, capability: ProviderCapability) -> list[Any]:
        """Providers supporting a capability, in registration order."""
        return [p for p in self._providers.values() if p.capabilities.supports(capability)]

    def select(self, capability: ProviderCapability, preferred: list[str]) -> list[Any]:
        """
        Order capable providers for failover.

        Args:
            capability: Required capability
            preferred: Names to try first, in order; unknown names are ignored

        Returns:
            Preferred capable providers, then the remaining capable ones
        """
        capable = self.by_capability(capability)
        ordered = [p for name in preferred for p in capable if p.name == name]
        ordered.extend(p for p in capable if p not in ordered)
        return ordered

    async def close(self) -> None:
        """Close providers that hold network clients."""
        for provider in self._providers.values():
            close = getattr(provider, "close", None)
            if close is not None:
                await close()


def _retry_policy(settings: Settings) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.provider_max_retries,
        min_wait=settings.provider_retry_min_wait,
        max_wait=settings.provider_retry_max_wait,
    )


def create_provider(name: str, settings: Settings) -> Any:
    """
    Construct a provider from settings.

    Args:
        name: One of SUPPORTED_PROVIDERS
        settings: Application settings

    Raises:
        ProviderRequestError: Unknown provider name
    """
    retry = _retry_policy(settings)

    if name == "zhipu":
        from designbox.adapters.zhipu import ZhipuConfig, ZhipuProvider

        return ZhipuProvider(
            ZhipuConfig(
                api_key=settings.zhipu_api_key,
                base_url=settings.zhipu_base_url,
                model=settings.zhipu_model,
                embedding_model=settings.zhipu_embedding_model,
                timeout=settings.provider_timeout_seconds,
                retry=retry,
            )
        )
    if name == "gemini":
        from designbox.adapters.gemini import GeminiConfig, GeminiProvider

        return GeminiProvider(
            GeminiConfig(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
                embedding_model=settings.gemini_embedding_model,
                timeout_seconds=int(settings.provider_timeout_seconds),
                retry=retry,
            )
        )
    if name == "ollama":
        from designbox.adapters.ollama import OllamaConfig, OllamaProvider

        return OllamaProvider(
            OllamaConfig(
                base_url=settings.ollama_url,
                model=settings.ollama_model,
                embedding_model=settings.ollama_embedding_model,
                timeout=max(settings.provider_timeout_seconds, 60.0),
                retry=retry,
            )
        )
    if name == "local":
        from designbox.adapters.local import SentenceTransformerEmbedder

        return SentenceTransformerEmbedder(settings.local_embedding_model)

    raise ProviderRequestError(
        f"Unknown provider: {name}",
        name,
        {"supported": list(SUPPORTED_PROVIDERS)},
    )


def build_registry(settings: Settings) -> ProviderRegistry:
    """Register the chat provider, its fallbacks and the embedding provider."""
    registry = ProviderRegistry()
    wanted = [settings.llm_provider, *settings.fallback_providers, settings.embedding_provider]
    for name in dict.fromkeys(wanted):
        registry.register(create_provider(name, settings))
    logger.info(
        "Providers ready: chat=%s, fallbacks=%s, embedding=%s",
        settings.llm_provider,
        settings.fallback_providers,
        settings.embedding_provider,
    )
    return registry
