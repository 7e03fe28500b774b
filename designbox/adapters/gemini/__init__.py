"""
Gemini Adapter - Google Gemini chat and embeddings.

This is the ONLY place that calls the Gemini SDK.
"""

from .client import GeminiProvider
from .models import GeminiConfig

__all__ = ["GeminiProvider", "GeminiConfig"]
