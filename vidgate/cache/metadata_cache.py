"""Short-lived in-memory cache of normalized metadata keyed by source URL.

Entries older than the TTL are treated as absent but not removed eagerly;
the next successful fetch overwrites them.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry:
    """A cached metadata payload and when it was stored."""

    payload: Any
    inserted_at: float  # time.monotonic()


def cache_key(source_url: str) -> str:
    return source_url.strip()


class MetadataCache:
    """TTL cache for full-metadata results only.

    Direct links and streams are never cached since upstream media URLs
    expire quickly.
    """

    def __init__(self, ttl_seconds: float = 60.0) -> None:
        self._ttl_seconds = ttl_seconds
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def get(self, source_url: str) -> CacheEntry | None:
        """Return the live entry for *source_url*, or None if absent or expired."""
        entry = self._entries.get(cache_key(source_url))
        if entry is None or time.monotonic() - entry.inserted_at >= self._ttl_seconds:
            self._misses += 1
            return None
        self._hits += 1
        return entry

    def put(self, source_url: str, payload: Any) -> CacheEntry:
        entry = CacheEntry(payload=payload, inserted_at=time.monotonic())
        self._entries[cache_key(source_url)] = entry
        return entry

    def get_stats(self) -> dict:
        now = time.monotonic()
        live = sum(
            1 for e in self._entries.values() if now - e.inserted_at < self._ttl_seconds
        )
        return {
            "entries": len(self._entries),
            "live": live,
            "hits": self._hits,
            "misses": self._misses,
            "ttl_seconds": self._ttl_seconds,
        }
