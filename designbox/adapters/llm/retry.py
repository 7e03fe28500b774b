"""
Provider Resilience - Retry policy, HTTP error mapping and request validation.

Every provider call goes through ``build_retrying``: throttling and transient
network/5xx failures are retried with exponential backoff, authentication and
malformed-request errors surface immediately.

Usage:
    retrying = build_retrying(RetryPolicy(max_attempts=3))
    async for attempt in retrying:
        with attempt:
            response = await client.post(...)
            raise_for_provider_status(response, "zhipu")
"""

from __future__ import annotations

import logging

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from designbox.config.errors import (
    RETRYABLE_PROVIDER_ERRORS,
    ProviderAuthError,
    ProviderError,
    ProviderNetworkError,
    ProviderRateLimitError,
    ProviderRequestError,
)

from .models import ChatMessage, ChatOptions, ProviderCapabilities, RetryPolicy

logger = logging.getLogger(__name__)

__all__ = [
    "build_retrying",
    "error_for_status",
    "raise_for_provider_status",
    "network_error",
    "validate_chat_request",
]


def build_retrying(policy: RetryPolicy) -> AsyncRetrying:
    """
    Build a tenacity controller for one provider call.

    Args:
        policy: Attempts and backoff bounds (min_wait doubles per attempt)

    Returns:
        AsyncRetrying that re-raises the last error once attempts run out
    """
    return AsyncRetrying(
        retry=retry_if_exception_type(RETRYABLE_PROVIDER_ERRORS),
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(multiplier=policy.min_wait, min=policy.min_wait, max=policy.max_wait),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or error)
        if error:
            return str(error)
        if data.get("message"):
            return str(data["message"])
    return str(data)[:200]


def error_for_status(response: httpx.Response, provider: str) -> ProviderError | None:
    """
    Map an HTTP response to the provider error taxonomy.

    Returns:
        None for 2xx/3xx, otherwise the error to raise
    """
    status = response.status_code
    if status < 400:
        return None

    message = f"{provider} returned HTTP {status}: {_error_message(response)}"
    details = {"status_code": status}
    if status in (401, 403):
        return ProviderAuthError(message, provider, details)
    if status == 429:
        return ProviderRateLimitError(message, provider, details)
    if status >= 500:
        return ProviderNetworkError(message, provider, details)
    return ProviderRequestError(message, provider, details)


def raise_for_provider_status(response: httpx.Response, provider: str) -> None:
    """Raise the mapped provider error for a failed response."""
    error = error_for_status(response, provider)
    if error is not None:
        raise error


def network_error(exc: httpx.HTTPError, provider: str) -> ProviderNetworkError:
    """Wrap an httpx transport failure (connection refused, timeout, reset)."""
    return ProviderNetworkError(
        f"{provider} request failed: {exc.__class__.__name__}: {exc}",
        provider,
    )


def validate_chat_request(
    messages: list[ChatMessage],
    options: ChatOptions,
    capabilities: ProviderCapabilities,
    provider: str,
) -> None:
    """
    Reject requests the provider would refuse anyway.

    Raises:
        ProviderRequestError: No messages, an empty message, or max_tokens above the provider limit
    """
    if not messages:
        raise ProviderRequestError("At least one message is required", provider)
    for index, message in enumerate(messages):
        if not message.content.strip():
            raise ProviderRequestError(
                f"Message {index} has empty content", provider, {"index": index}
            )
    if options.max_tokens > capabilities.max_tokens:
        raise ProviderRequestError(
            f"max_tokens {options.max_tokens} exceeds provider limit {capabilities.max_tokens}",
            provider,
            {"max_tokens": options.max_tokens, "limit": capabilities.max_tokens},
        )
