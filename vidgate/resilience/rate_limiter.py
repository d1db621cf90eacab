"""Per-client token bucket rate limiter for the public API.

Each client identity gets its own bucket with a fixed number of tokens that
refill continuously over the configured interval. ``try_acquire`` never
waits: an empty bucket means the request is refused outright.

Key behaviors:
- Rate limiting one client does not affect other clients
- Tokens never exceed the bucket capacity
- Buckets idle long enough to be full again can be pruned
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class TokenBucket:
    """Token bucket state for a single client."""

    client_id: str
    tokens: float
    max_tokens: int
    refill_rate: float  # tokens per second
    last_refill: float  # time.monotonic()


class ClientRateLimiter:
    """Per-client token bucket rate limiter.

    Args:
        tokens: Max tokens per client bucket.
        interval_seconds: Time for an empty bucket to refill completely.
    """

    def __init__(self, tokens: int = 3, interval_seconds: int = 12) -> None:
        self._tokens = tokens
        self._interval_seconds = interval_seconds
        self._refill_rate = tokens / interval_seconds if interval_seconds > 0 else float(tokens)
        self._buckets: dict[str, TokenBucket] = {}

    def _get_or_create_bucket(self, client_id: str) -> TokenBucket:
        """Get existing bucket for a client or create a full one."""
        if client_id not in self._buckets:
            self._buckets[client_id] = TokenBucket(
                client_id=client_id,
                tokens=float(self._tokens),
                max_tokens=self._tokens,
                refill_rate=self._refill_rate,
                last_refill=time.monotonic(),
            )
        return self._buckets[client_id]

    def _refill(self, bucket: TokenBucket) -> None:
        """Refill tokens based on elapsed time since last refill."""
        now = time.monotonic()
        elapsed = now - bucket.last_refill

        if elapsed <= 0:
            return

        new_tokens = elapsed * bucket.refill_rate
        bucket.tokens = min(bucket.tokens + new_tokens, float(bucket.max_tokens))
        bucket.last_refill = now

    def try_acquire(self, client_id: str) -> bool:
        """Take one token for *client_id*; False when the bucket is empty."""
        bucket = self._get_or_create_bucket(client_id)
        self._refill(bucket)

        if bucket.tokens >= 1.0:
            bucket.tokens -= 1.0
            return True

        logger.info("API rate limit hit", extra={"client_id": client_id})
        return False

    def retry_after(self, client_id: str) -> int:
        """Seconds until the next token is available for *client_id*."""
        bucket = self._buckets.get(client_id)
        if bucket is None or bucket.tokens >= 1.0:
            return 0
        return max(1, int((1.0 - bucket.tokens) / bucket.refill_rate + 0.999))

    def prune(self) -> int:
        """Drop buckets that have refilled completely. Returns how many."""
        full = []
        for client_id, bucket in self._buckets.items():
            self._refill(bucket)
            if bucket.tokens >= bucket.max_tokens:
                full.append(client_id)
        for client_id in full:
            del self._buckets[client_id]
        return len(full)
