"""
Ollama Adapter - Local chat and embedding models.
"""

from .client import OllamaConfig, OllamaProvider

__all__ = ["OllamaConfig", "OllamaProvider"]
