"""
API Routes.
"""

from . import chat, health, resources

__all__ = ["health", "chat", "resources"]
