"""Resilience components: per-client API budget and randomized pacing."""

from vidgate.resilience.jitter import Jitter
from vidgate.resilience.rate_limiter import ClientRateLimiter, TokenBucket

__all__ = [
    "ClientRateLimiter",
    "Jitter",
    "TokenBucket",
]
