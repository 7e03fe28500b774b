"""
Provider Models - Chat and embedding data types shared by every provider.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ChatRole(str, Enum):
    """Roles in a chat transcript."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ProviderCapability(str, Enum):
    """Capabilities a provider may advertise."""

    CHAT = "chat"
    STREAMING = "streaming"
    EMBEDDING = "embedding"


class ChatMessage(BaseModel):
    """Single chat message."""

    role: ChatRole
    content: str

    model_config = {"frozen": True}


class ChatOptions(BaseModel):
    """Generation options for a chat completion."""

    max_tokens: int = Field(default=1000, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)

    model_config = {"frozen": True}


class TokenUsage(BaseModel):
    """Token accounting reported by the provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(BaseModel):
    """Non-streamed chat completion."""

    content: str
    usage: TokenUsage | None = None
    finish_reason: str | None = None  # stop, length, content_filter, error
    provider: str = ""
    model: str = ""


class ChatChunk(BaseModel):
    """Streamed completion fragment. The last chunk has is_complete=True."""

    content: str = ""
    is_complete: bool = False
    finish_reason: str | None = None


class ProviderCapabilities(BaseModel):
    """What a provider can do."""

    chat: bool = False
    streaming: bool = False
    embedding: bool = False
    max_tokens: int = 4096
    languages: list[str] = Field(default_factory=lambda: ["zh", "en"])

    model_config = {"frozen": True}

    def supports(self, capability: ProviderCapability) -> bool:
        """Check a single capability."""
        return bool(getattr(self, capability.value))


class RetryPolicy(BaseModel):
    """Bounded exponential-backoff policy for provider calls."""

    max_attempts: int = Field(default=3, ge=1)
    min_wait: float = Field(default=1.0, ge=0.0)
    max_wait: float = Field(default=30.0, ge=0.0)

    model_config = {"frozen": True}
