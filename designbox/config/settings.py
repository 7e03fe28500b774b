"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Providers: "zhipu", "gemini" or "ollama" for chat; embeddings may also use "local"
    llm_provider: str = "zhipu"
    embedding_provider: str = "zhipu"
    # Chat providers tried in order when the primary one fails
    fallback_providers: list[str] = Field(default_factory=lambda: ["ollama"])

    # Zhipu AI (OpenAI-compatible REST)
    zhipu_api_key: str = ""
    zhipu_base_url: str = "https://open.bigmodel.cn/api/paas/v4"
    zhipu_model: str = "glm-4-plus"
    zhipu_embedding_model: str = "embedding-2"

    # Gemini
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    gemini_embedding_model: str = "models/text-embedding-004"

    # Ollama
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "qwen2.5"
    ollama_embedding_model: str = "nomic-embed-text"

    # Local sentence-transformers embeddings
    local_embedding_model: str = "all-MiniLM-L6-v2"

    # Provider retry policy
    provider_max_retries: int = 3
    provider_retry_min_wait: float = 1.0
    provider_retry_max_wait: float = 30.0
    provider_timeout_seconds: float = 30.0

    # Paths
    data_dir: Path = Path("data")
    corpus_path: Path = Path("data/resources.json")
    index_path: Path = Path("data/indices/faiss")
    # "memory" rebuilds embeddings at startup, "faiss" loads a persisted index
    index_backend: str = "memory"

    # Hybrid search
    vector_weight: float = 0.7
    structured_weight: float = 0.3
    strong_match_threshold: float = 0.7
    related_match_threshold: float = 0.5
    top_rating_threshold: float = 4.5
    rag_min_similarity: float = 0.3
    similar_min_similarity: float = 0.3
    default_max_results: int = 5

    # Cache
    results_cache_ttl_seconds: int = 3600
    analysis_cache_ttl_seconds: int = 1800

    # Generation
    max_tokens: int = 1000
    temperature: float = 0.7
    history_window: int = 10

    # Query analysis
    query_max_length: int = 500

    # Logging
    log_level: str = "INFO"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
