"""Proxy health registry with randomized selection and temporary bans.

Proxies are loaded once from a list of URL strings (e.g.
["http://proxy1:8080", "socks5://user:pw@proxy2:1080"]). Each selection walks
the pool in a freshly shuffled order and returns the first endpoint that is
not banned. Consecutive failures are counted per endpoint; reaching the
threshold bans the endpoint for a fixed duration. A ban is only lifted by the
expiry check performed during selection, which also resets the counter.

When a pool is configured and every endpoint is banned, selection raises
``NoHealthyProxyError`` instead of falling back to a direct connection.
"""

from __future__ import annotations

import logging
import time
from urllib.parse import urlparse

from vidgate.middleware.error_handler import NoHealthyProxyError
from vidgate.proxy.types import ProxyEndpoint
from vidgate.resilience.jitter import Jitter

logger = logging.getLogger(__name__)


def _redact(url: str) -> str:
    """Return the proxy URL without credentials, for logs and stats."""
    parsed = urlparse(url)
    if parsed.hostname is None:
        return url[:20]
    host = parsed.hostname
    if parsed.port:
        host = f"{host}:{parsed.port}"
    return f"{parsed.scheme}://{host}" if parsed.scheme else host


class ProxyHealthRegistry:
    """Tracks the upstream proxy pool and decides which endpoint to use next."""

    def __init__(
        self,
        failure_threshold: int = 2,
        ban_seconds: int = 600,
        *,
        jitter: Jitter | None = None,
    ) -> None:
        self._proxies: list[ProxyEndpoint] = []
        self._failure_threshold = failure_threshold
        self._ban_seconds = ban_seconds
        self._jitter = jitter or Jitter()

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def initialize(self, endpoints: list[str]) -> None:
        """Parse proxy URL strings and create ProxyEndpoint objects.

        Blank entries are ignored. Each URL's scheme is used as the protocol.
        """
        self._proxies = []

        for raw_url in endpoints:
            raw_url = raw_url.strip()
            if not raw_url:
                continue
            parsed = urlparse(raw_url)
            protocol = parsed.scheme.lower() if parsed.scheme else "http"
            self._proxies.append(ProxyEndpoint(url=raw_url, protocol=protocol))

        logger.info("Proxy registry initialized with %d endpoints", len(self._proxies))

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self) -> ProxyEndpoint | None:
        """Pick a usable proxy in random order.

        Returns ``None`` only when no pool is configured (direct connection).
        Raises ``NoHealthyProxyError`` if every configured endpoint is banned.
        """
        if not self._proxies:
            return None

        now = time.monotonic()
        for proxy in self._jitter.shuffle(self._proxies):
            if proxy.banned_until is None:
                return proxy
            if now >= proxy.banned_until:
                proxy.banned_until = None
                proxy.failure_count = 0
                logger.info("Proxy ban expired: %s", _redact(proxy.url))
                return proxy

        raise NoHealthyProxyError()

    # ------------------------------------------------------------------
    # Health tracking
    # ------------------------------------------------------------------

    def report_failure(self, proxy: ProxyEndpoint) -> None:
        """Count a failed attempt; ban the endpoint once the threshold is hit."""
        proxy.failure_count += 1
        if proxy.failure_count >= self._failure_threshold and proxy.banned_until is None:
            proxy.banned_until = time.monotonic() + self._ban_seconds
            logger.warning(
                "Proxy banned for %ds: %s (failures: %d)",
                self._ban_seconds,
                _redact(proxy.url),
                proxy.failure_count,
                extra={"proxy_used": _redact(proxy.url)},
            )

    def report_success(self, proxy: ProxyEndpoint) -> None:
        """Record a successful attempt. Clears the failure streak, not a ban."""
        proxy.success_count += 1
        proxy.failure_count = 0

    # ------------------------------------------------------------------
    # Stats / metrics
    # ------------------------------------------------------------------

    def get_stats(self) -> dict:
        """Return proxy pool statistics for the metrics endpoint."""
        now = time.monotonic()
        total = len(self._proxies)
        banned = sum(1 for p in self._proxies if p.is_banned(now))

        per_proxy = [
            {
                "url": _redact(p.url),
                "protocol": p.protocol,
                "banned": p.is_banned(now),
                "ban_remaining_seconds": (
                    round(p.banned_until - now, 1) if p.is_banned(now) else 0
                ),
                "success_count": p.success_count,
                "failure_count": p.failure_count,
            }
            for p in self._proxies
        ]

        return {
            "total": total,
            "healthy": total - banned,
            "banned": banned,
            "proxies": per_proxy,
        }
