"""
API Middleware - Request tracing and error mapping.

Provides:
- Request ID and latency headers with one access log line per request
- DesignBoxError to JSON response mapping
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from designbox.config.errors import DesignBoxError, ErrorCode

logger = logging.getLogger(__name__)

_STATUS_BY_CODE = {
    ErrorCode.SEARCH_INVALID_QUERY: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.SEARCH_RESOURCE_NOT_INDEXED: 404,
    ErrorCode.PROVIDER_RATE_LIMITED: 429,
    ErrorCode.PROVIDER_INVALID_REQUEST: 400,
    ErrorCode.PROVIDER_AUTH_FAILED: 401,
    ErrorCode.PROVIDER_INVALID_RESPONSE: 502,
    ErrorCode.PROVIDER_NETWORK_ERROR: 502,
    ErrorCode.PROVIDER_UNAVAILABLE: 503,
    ErrorCode.SEARCH_INDEX_UNAVAILABLE: 503,
    ErrorCode.CATALOG_LOAD_FAILED: 503,
}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an ID and report how long it took.

    For streamed chat responses the measured time is time-to-first-byte:
    the stream body is still being produced when the headers are sent.
    """

    def __init__(self, app: ASGIApp, slow_request_ms: float = 5000.0) -> None:
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

        level = logging.WARNING if duration_ms > self.slow_request_ms else logging.INFO
        logger.log(
            level,
            "%s %s status=%d latency_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )
        return response


async def designbox_error_handler(request: Request, exc: DesignBoxError) -> JSONResponse:
    """Render a DesignBoxError as its taxonomy body."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error("DesignBoxError: %s request_id=%s details=%s", exc.message, request_id, exc.details)
    return JSONResponse(
        status_code=error_code_to_status(exc.code),
        content={"error": exc.to_dict(), "request_id": request_id},
    )


def error_code_to_status(code: ErrorCode) -> int:
    """Map error codes to HTTP status codes."""
    return _STATUS_BY_CODE.get(code, 500)
