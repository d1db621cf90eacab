"""Global error hierarchy and FastAPI exception handlers.

All gateway-specific errors extend GatewayError. Each subclass maps to a
distinct HTTP status and a stable ``code`` string so callers can tell a
retry-later rejection apart from a permanent failure. The FastAPI exception
handlers catch these errors (plus Pydantic's RequestValidationError and
unhandled exceptions) and return a consistent JSON envelope:
{ success, data, error, meta }.
"""

from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error hierarchy
# ---------------------------------------------------------------------------


class GatewayError(Exception):
    """Base error for all gateway-specific errors."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "Internal server error"
    retry_after: int | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        retry_after: int | None = None,
        **kwargs: object,
    ) -> None:
        self.message = message or self.__class__.message
        if retry_after is not None:
            self.retry_after = retry_after
        self.details = kwargs
        super().__init__(self.message)


class ValidationError(GatewayError):
    """Pydantic / payload validation failures — includes field-level details."""

    status_code = 422
    code = "validation_error"
    message = "Validation error"


class InvalidSourceError(GatewayError):
    """Source locator rejected before any subprocess is spawned."""

    status_code = 400
    code = "invalid_source"
    message = "Unsupported or malformed source URL"


class ClientBusyError(GatewayError):
    """The client already has an extraction in flight."""

    status_code = 429
    code = "client_busy"
    message = "Server busy. Please wait a moment."
    retry_after = 5


class DuplicateCooldownError(GatewayError):
    """Same client asked for the same source within the cooldown window."""

    status_code = 429
    code = "duplicate_cooldown"
    message = "Please wait before checking this video again."
    retry_after = 15


class RateLimitedError(GatewayError):
    """Per-client API request budget exhausted."""

    status_code = 429
    code = "rate_limited"
    message = "Too many requests. Please slow down."
    retry_after = 12


class NoHealthyProxyError(GatewayError):
    """Every configured proxy endpoint is currently banned."""

    status_code = 503
    code = "no_healthy_proxy"
    message = "Service temporarily unavailable. Please try again later."
    retry_after = 60


class BotDetectedError(GatewayError):
    """All strategies exhausted against anti-automation defenses."""

    status_code = 503
    code = "bot_detected"
    message = "Video temporarily unavailable due to high traffic."
    retry_after = 60


class UpstreamUnavailableError(GatewayError):
    """All strategies exhausted on transient network failures."""

    status_code = 503
    code = "upstream_unavailable"
    message = "Upstream temporarily unreachable. Please try again later."
    retry_after = 30


class ExtractionFailedError(GatewayError):
    """Fatal, non-retryable extraction tool failure."""

    status_code = 502
    code = "extraction_failed"
    message = "Failed to fetch video info."


class SpawnFailedError(GatewayError):
    """The extraction tool could not be started at all."""

    status_code = 500
    code = "spawn_failed"
    message = "Extraction tool unavailable"


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------


def _envelope(
    status_code: int,
    error: str,
    meta: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build a JSON envelope error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "data": None,
            "error": error,
            "meta": meta,
        },
        headers=headers,
    )


async def _gateway_error_handler(_request: Request, exc: GatewayError) -> JSONResponse:
    """Handle GatewayError subclasses."""
    meta: dict = {"code": exc.code}
    meta.update(exc.details)
    headers = None
    if exc.retry_after is not None:
        headers = {"Retry-After": str(exc.retry_after)}
    return _envelope(exc.status_code, exc.message, meta=meta, headers=headers)


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI / Pydantic RequestValidationError (422)."""
    field_errors = [
        {
            "field": " -> ".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    return _envelope(
        status_code=422,
        error="Validation error",
        meta={"code": ValidationError.code, "fields": field_errors},
    )


async def _unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log traceback, return generic 500."""
    logger.error(
        "Unhandled exception: %s\n%s",
        exc,
        traceback.format_exc(),
    )
    return _envelope(status_code=500, error="Internal server error")


# ---------------------------------------------------------------------------
# Registration helper
# ---------------------------------------------------------------------------


def register_error_handlers(app: FastAPI) -> None:
    """Wire up all exception handlers on the FastAPI application."""
    app.add_exception_handler(GatewayError, _gateway_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_error_handler)  # type: ignore[arg-type]
