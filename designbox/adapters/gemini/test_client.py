"""
Tests for the Gemini provider adapter.
"""

from __future__ import annotations

from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest

from designbox.adapters.llm.models import ChatMessage, ChatOptions, ChatRole, RetryPolicy
from designbox.config.errors import (
    ProviderAuthError,
    ProviderRateLimitError,
    ProviderResponseError,
)

from .client import GeminiProvider
from .models import GeminiConfig


@pytest.fixture
def mock_genai() -> Generator[MagicMock, None, None]:
    """Mock the google.generativeai module."""
    with patch("designbox.adapters.gemini.client.genai") as mock:
        mock_model = MagicMock()
        mock_model.generate_content.return_value = MagicMock(
            text="推荐 Coolors 和 Adobe Color",
            usage_metadata=MagicMock(
                prompt_token_count=10,
                candidates_token_count=20,
            ),
        )
        mock.GenerativeModel.return_value = mock_model
        yield mock


@pytest.fixture
def provider(mock_genai: MagicMock) -> GeminiProvider:
    """Create a GeminiProvider with mocked SDK and no backoff."""
    return GeminiProvider(GeminiConfig(retry=RetryPolicy(max_attempts=3, min_wait=0, max_wait=0)))


@pytest.fixture
def messages() -> list[ChatMessage]:
    return [
        ChatMessage(role=ChatRole.SYSTEM, content="你是设计资源助手"),
        ChatMessage(role=ChatRole.USER, content="之前的问题"),
        ChatMessage(role=ChatRole.ASSISTANT, content="之前的回答"),
        ChatMessage(role=ChatRole.USER, content="推荐配色工具"),
    ]


# --- Config Tests ---


def test_gemini_config_defaults() -> None:
    """Test GeminiConfig default values."""
    config = GeminiConfig()
    assert config.model == "gemini-2.0-flash"
    assert config.embedding_model == "models/text-embedding-004"
    assert config.rate_limit_rpm == 60
    assert config.retry.max_attempts == 3


def test_api_key_configures_sdk(mock_genai: MagicMock) -> None:
    """Test an explicit API key is handed to the SDK."""
    GeminiProvider(GeminiConfig(api_key="secret"))
    mock_genai.configure.assert_called_once_with(api_key="secret")


# --- Completion Tests ---


async def test_complete_success(
    provider: GeminiProvider,
    mock_genai: MagicMock,
    messages: list[ChatMessage],
) -> None:
    """Test completion text and usage are returned."""
    response = await provider.complete(messages, ChatOptions(max_tokens=800, temperature=0.5))

    assert response.content == "推荐 Coolors 和 Adobe Color"
    assert response.usage is not None
    assert response.usage.total_tokens == 30
    assert response.provider == "gemini"


async def test_complete_maps_roles(
    provider: GeminiProvider,
    mock_genai: MagicMock,
    messages: list[ChatMessage],
) -> None:
    """Test system messages become the system instruction and assistant turns become model turns."""
    await provider.complete(messages, ChatOptions(max_tokens=800, temperature=0.5))

    kwargs = mock_genai.GenerativeModel.call_args.kwargs
    assert kwargs["system_instruction"] == "你是设计资源助手"
    assert kwargs["generation_config"]["max_output_tokens"] == 800
    contents = mock_genai.GenerativeModel.return_value.generate_content.call_args.args[0]
    assert [c["role"] for c in contents] == ["user", "model", "user"]


async def test_complete_retries_rate_limit(
    provider: GeminiProvider,
    mock_genai: MagicMock,
    messages: list[ChatMessage],
) -> None:
    """Test quota errors are retried and finally surfaced."""
    model = mock_genai.GenerativeModel.return_value
    model.generate_content.side_effect = Exception("429 Resource has been exhausted")

    with pytest.raises(ProviderRateLimitError):
        await provider.complete(messages)
    assert model.generate_content.call_count == 3


async def test_complete_auth_error_not_retried(
    provider: GeminiProvider,
    mock_genai: MagicMock,
    messages: list[ChatMessage],
) -> None:
    """Test permission errors are not retried."""
    model = mock_genai.GenerativeModel.return_value
    model.generate_content.side_effect = Exception("403 Permission denied")

    with pytest.raises(ProviderAuthError):
        await provider.complete(messages)
    assert model.generate_content.call_count == 1


# --- Streaming Tests ---


async def test_stream_yields_chunks(
    provider: GeminiProvider,
    mock_genai: MagicMock,
    messages: list[ChatMessage],
) -> None:
    """Test streamed chunks are forwarded then terminated."""
    model = mock_genai.GenerativeModel.return_value
    model.generate_content.return_value = iter(
        [MagicMock(text="推荐", candidates=[]), MagicMock(text="字体", candidates=[])]
    )

    chunks = [chunk async for chunk in provider.stream(messages)]

    assert [c.content for c in chunks[:-1]] == ["推荐", "字体"]
    assert chunks[-1].is_complete
    assert model.generate_content.call_args.kwargs["stream"] is True


# --- Embedding Tests ---


async def test_embed_batch(provider: GeminiProvider, mock_genai: MagicMock) -> None:
    """Test batch embeddings use the configured model."""
    mock_genai.embed_content.return_value = {"embedding": [[1.0, 0.0], [0.0, 1.0]]}

    vectors = await provider.embed_batch(["配色", "图标"])

    assert vectors == [[1.0, 0.0], [0.0, 1.0]]
    assert mock_genai.embed_content.call_args.kwargs["model"] == "models/text-embedding-004"


async def test_embed_batch_mismatch(provider: GeminiProvider, mock_genai: MagicMock) -> None:
    """Test a payload with the wrong number of vectors is rejected."""
    mock_genai.embed_content.return_value = {"embedding": [[1.0, 0.0]]}
    with pytest.raises(ProviderResponseError):
        await provider.embed_batch(["配色", "图标"])
