"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    RETRYABLE_PROVIDER_ERRORS,
    CatalogError,
    DesignBoxError,
    ErrorCode,
    ProviderAuthError,
    ProviderError,
    ProviderNetworkError,
    ProviderRateLimitError,
    ProviderRequestError,
    ProviderResponseError,
    ResourceNotIndexedError,
    SearchError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "DesignBoxError",
    "SearchError",
    "ResourceNotIndexedError",
    "CatalogError",
    "ProviderError",
    "ProviderAuthError",
    "ProviderRateLimitError",
    "ProviderNetworkError",
    "ProviderRequestError",
    "ProviderResponseError",
    "RETRYABLE_PROVIDER_ERRORS",
]
