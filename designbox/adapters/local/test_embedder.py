"""
Tests for the local sentence-transformers embedder.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import numpy as np

from designbox.adapters.llm.contracts import EmbeddingProvider

from .embedder import SentenceTransformerEmbedder


@patch("designbox.adapters.local.embedder.SentenceTransformer")
async def test_embed_batch_loads_model_once(mock_model_cls: MagicMock) -> None:
    """Test the model is loaded lazily, once, and vectors come back as floats."""
    mock_model_cls.return_value.encode.return_value = np.array([[0.1, 0.2], [0.3, 0.4]], dtype=np.float32)
    embedder = SentenceTransformerEmbedder("test-model", batch_size=8)

    first = await embedder.embed_batch(["配色", "icon"])
    await embedder.embed_batch(["配色", "icon"])

    mock_model_cls.assert_called_once_with("test-model")
    assert len(first) == 2
    assert isinstance(first[0][0], float)
    assert abs(first[1][1] - 0.4) < 1e-6
    _, kwargs = mock_model_cls.return_value.encode.call_args
    assert kwargs["batch_size"] == 8


@patch("designbox.adapters.local.embedder.SentenceTransformer")
async def test_embed_single(mock_model_cls: MagicMock) -> None:
    """Test a single text returns one vector."""
    mock_model_cls.return_value.encode.return_value = np.array([[1.0, 0.0, 0.0]])
    embedder = SentenceTransformerEmbedder()

    assert await embedder.embed("字体") == [1.0, 0.0, 0.0]


@patch("designbox.adapters.local.embedder.SentenceTransformer")
async def test_embed_empty_batch_skips_model(mock_model_cls: MagicMock) -> None:
    """Test an empty batch never loads the model."""
    embedder = SentenceTransformerEmbedder()

    assert await embedder.embed_batch([]) == []
    mock_model_cls.assert_not_called()


def test_embedder_satisfies_protocol() -> None:
    """Test the embedder satisfies the embedding contract."""
    embedder = SentenceTransformerEmbedder()
    assert isinstance(embedder, EmbeddingProvider)
    assert embedder.capabilities.embedding is True
    assert embedder.capabilities.chat is False
