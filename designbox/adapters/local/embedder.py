"""
Local Embedder - sentence-transformers embeddings without a remote provider.
"""

from __future__ import annotations

import asyncio
import logging

from sentence_transformers import SentenceTransformer

from designbox.adapters.llm.models import ProviderCapabilities

logger = logging.getLogger(__name__)

__all__ = ["SentenceTransformerEmbedder"]


class SentenceTransformerEmbedder:
    """
    Embedding provider backed by a local sentence-transformers model.

    Example:
        >>> embedder = SentenceTransformerEmbedder("paraphrase-multilingual-MiniLM-L12-v2")
        >>> vectors = await embedder.embed_batch(["配色工具", "icon set"])
    """

    name = "local"
    capabilities = ProviderCapabilities(embedding=True, languages=["zh", "en"])

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", batch_size: int = 32) -> None:
        """
        Initialize embedder.

        Args:
            model_name: Sentence transformer model name
            batch_size: Encoding batch size
        """
        self.model_name = model_name
        self.batch_size = batch_size
        self._model: SentenceTransformer | None = None

    def _get_model(self) -> SentenceTransformer:
        """Load the model on first use."""
        if self._model is None:
            logger.info("Loading embedding model: %s", self.model_name)
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def _encode(self, texts: list[str]) -> list[list[float]]:
        model = self._get_model()
        embeddings = model.encode(texts, batch_size=self.batch_size, show_progress_bar=False)
        return [[float(x) for x in row] for row in embeddings]

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed texts in a worker thread."""
        if not texts:
            return []
        return await asyncio.to_thread(self._encode, texts)
