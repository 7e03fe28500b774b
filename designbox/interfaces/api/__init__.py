"""
API Interface - FastAPI REST API for the design resource assistant.
"""

from .main import create_app

__all__ = ["create_app"]
