"""Middleware package — error hierarchy and request ID."""

from vidgate.middleware.error_handler import (
    BotDetectedError,
    ClientBusyError,
    DuplicateCooldownError,
    ExtractionFailedError,
    GatewayError,
    InvalidSourceError,
    NoHealthyProxyError,
    RateLimitedError,
    SpawnFailedError,
    UpstreamUnavailableError,
    ValidationError,
    register_error_handlers,
)
from vidgate.middleware.request_id import RequestIdMiddleware, current_request_id

__all__ = [
    "BotDetectedError",
    "ClientBusyError",
    "DuplicateCooldownError",
    "ExtractionFailedError",
    "GatewayError",
    "InvalidSourceError",
    "NoHealthyProxyError",
    "RateLimitedError",
    "RequestIdMiddleware",
    "SpawnFailedError",
    "UpstreamUnavailableError",
    "ValidationError",
    "current_request_id",
    "register_error_handlers",
]
