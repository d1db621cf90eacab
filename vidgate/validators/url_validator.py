"""Validation of source locators and format identifiers.

Both values end up on the extraction tool's command line, so they are
checked before any gate or subprocess work: a locator must be a public
http(s) URL on an allowed host, and neither value may look like a flag.
"""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Iterable
from urllib.parse import urlparse

from vidgate.middleware.error_handler import InvalidSourceError

# Private/reserved IP networks
_PRIVATE_NETWORKS = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]

_ALLOWED_SCHEMES = {"http", "https"}

# yt-dlp format selectors: ids, "+" merges, "/" alternatives, filters
_FORMAT_ID_RE = re.compile(r"^[A-Za-z0-9_.+/\-\[\]=<>*]{1,64}$")


def is_private_ip(ip_str: str) -> bool:
    """Check if an IP address is in a private/reserved range."""
    try:
        addr = ipaddress.ip_address(ip_str)
        return any(addr in network for network in _PRIVATE_NETWORKS)
    except ValueError:
        return True  # Invalid IP → reject


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def host_allowed(host: str, allowed_hosts: Iterable[str]) -> bool:
    """True if *host* equals or is a subdomain of an allowed host."""
    allowed = [h.lower().lstrip(".") for h in allowed_hosts]
    if not allowed:
        return True
    host = host.lower().rstrip(".")
    return any(host == h or host.endswith("." + h) for h in allowed)


def validate_source_url(url: str, allowed_hosts: Iterable[str] = ()) -> str:
    """Return the trimmed locator or raise ``InvalidSourceError``."""
    url = url.strip()
    if not url or url.startswith("-"):
        raise InvalidSourceError()

    try:
        parsed = urlparse(url)
    except ValueError:
        raise InvalidSourceError() from None

    if parsed.scheme.lower() not in _ALLOWED_SCHEMES or not parsed.hostname:
        raise InvalidSourceError()

    host = parsed.hostname
    if _is_ip_literal(host) and is_private_ip(host):
        raise InvalidSourceError()
    if not host_allowed(host, allowed_hosts):
        raise InvalidSourceError(f"Host not supported: {host}")

    return url


def validate_format_id(format_id: str) -> str:
    """Return the format selector or raise ``InvalidSourceError``."""
    format_id = format_id.strip()
    if format_id.startswith("-") or not _FORMAT_ID_RE.match(format_id):
        raise InvalidSourceError("Invalid format identifier")
    return format_id
