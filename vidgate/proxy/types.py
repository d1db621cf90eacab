"""Proxy data models for the proxy health registry."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ProxyEndpoint:
    """A single upstream relay with ban and usage tracking."""

    url: str
    protocol: str  # http, https, socks5
    failure_count: int = 0
    banned_until: float | None = None  # time.monotonic(); None = not banned
    success_count: int = 0

    def is_banned(self, now: float) -> bool:
        return self.banned_until is not None and now < self.banned_until
