"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from designbox.config.errors import ErrorCode, DesignBoxError

    raise DesignBoxError(ErrorCode.SEARCH_INDEX_UNAVAILABLE, "Index not built")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Search errors
    SEARCH_INVALID_QUERY = "SEARCH_INVALID_QUERY"
    SEARCH_INDEX_UNAVAILABLE = "SEARCH_INDEX_UNAVAILABLE"
    SEARCH_RESOURCE_NOT_INDEXED = "SEARCH_RESOURCE_NOT_INDEXED"

    # Catalog errors
    CATALOG_LOAD_FAILED = "CATALOG_LOAD_FAILED"

    # Provider (embedding / chat) errors
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    PROVIDER_RATE_LIMITED = "PROVIDER_RATE_LIMITED"
    PROVIDER_AUTH_FAILED = "PROVIDER_AUTH_FAILED"
    PROVIDER_INVALID_REQUEST = "PROVIDER_INVALID_REQUEST"
    PROVIDER_INVALID_RESPONSE = "PROVIDER_INVALID_RESPONSE"
    PROVIDER_NETWORK_ERROR = "PROVIDER_NETWORK_ERROR"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"


class DesignBoxError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


# Domain-specific exceptions for cleaner imports
class SearchError(DesignBoxError):
    """Search domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SEARCH_INDEX_UNAVAILABLE, message, details)


class ResourceNotIndexedError(DesignBoxError):
    """Raised when a similarity lookup names a resource absent from the index."""

    def __init__(self, resource_id: str) -> None:
        super().__init__(
            ErrorCode.SEARCH_RESOURCE_NOT_INDEXED,
            f"Resource not found in index: {resource_id}",
            {"resource_id": resource_id},
        )
        self.resource_id = resource_id


class CatalogError(DesignBoxError):
    """Resource catalog loading errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.CATALOG_LOAD_FAILED, message, details)


class ProviderError(DesignBoxError):
    """Embedding/chat provider errors."""

    code_for_class = ErrorCode.PROVIDER_UNAVAILABLE

    def __init__(
        self,
        message: str,
        provider: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        details = dict(details or {})
        if provider:
            details.setdefault("provider", provider)
        super().__init__(self.code_for_class, message, details)
        self.provider = provider


class ProviderAuthError(ProviderError):
    """Credentials rejected (401/403). Never retried."""

    code_for_class = ErrorCode.PROVIDER_AUTH_FAILED


class ProviderRateLimitError(ProviderError):
    """Provider throttled the request (429). Retried with backoff."""

    code_for_class = ErrorCode.PROVIDER_RATE_LIMITED


class ProviderNetworkError(ProviderError):
    """Transport failure, timeout or 5xx. Retried with backoff."""

    code_for_class = ErrorCode.PROVIDER_NETWORK_ERROR


class ProviderRequestError(ProviderError):
    """Malformed request rejected by the provider or by local validation. Never retried."""

    code_for_class = ErrorCode.PROVIDER_INVALID_REQUEST


class ProviderResponseError(ProviderError):
    """Provider answered with a payload we could not interpret."""

    code_for_class = ErrorCode.PROVIDER_INVALID_RESPONSE


RETRYABLE_PROVIDER_ERRORS: tuple[type[ProviderError], ...] = (
    ProviderRateLimitError,
    ProviderNetworkError,
)
