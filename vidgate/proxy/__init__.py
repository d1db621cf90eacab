"""Proxy management package — randomized selection, failure counting, bans."""

from vidgate.proxy.registry import ProxyHealthRegistry
from vidgate.proxy.types import ProxyEndpoint

__all__ = ["ProxyEndpoint", "ProxyHealthRegistry"]
