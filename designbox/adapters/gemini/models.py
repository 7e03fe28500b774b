"""
Gemini Models - Configuration for the Gemini provider.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from designbox.adapters.llm.models import RetryPolicy


class GeminiConfig(BaseModel):
    """Gemini client configuration."""

    api_key: str = ""  # Empty: rely on Application Default Credentials
    model: str = "gemini-2.0-flash"
    embedding_model: str = "models/text-embedding-004"
    timeout_seconds: int = Field(default=60, ge=1)
    rate_limit_rpm: int = Field(default=60, ge=1)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)

    model_config = {"frozen": True}
