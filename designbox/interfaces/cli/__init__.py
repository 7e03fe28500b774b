"""
CLI Interface - Command-line tools for DesignBox.

Provides commands for:
- Asking for resources (batch or streamed)
- Answering clarification questions
- Related-resource lookup
- Index building and serving the API
"""

from .main import app, main

__all__ = ["app", "main"]
