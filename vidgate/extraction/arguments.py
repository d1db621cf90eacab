"""Command-line composition for the extraction tool.

Every invocation is assembled in the same order: executable, base safety
flags, profile fingerprint flags, proxy flag, cookie flag, caller flags,
then the source locator after an end-of-options marker.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from vidgate.proxy.types import ProxyEndpoint
from vidgate.strategy.profiles import StrategyProfile

METADATA_FLAGS: tuple[str, ...] = ("-J", "--skip-download")


def direct_link_flags(format_id: str) -> list[str]:
    return ["-f", format_id, "-g"]


class ArgumentBuilder:
    """Builds argv lists for the extraction tool.

    Args:
        executable: Name or path of the extraction tool.
        geo_bypass_country: Two-letter country passed to ``--geo-bypass-country``.
        socket_timeout_seconds: Per-socket timeout handed to the tool.
        cookies_path: Cookie file, added only while it exists on disk.
    """

    def __init__(
        self,
        executable: str = "yt-dlp",
        *,
        geo_bypass_country: str = "IN",
        socket_timeout_seconds: int = 15,
        cookies_path: str | None = None,
    ) -> None:
        self.executable = executable
        self._geo_bypass_country = geo_bypass_country
        self._socket_timeout_seconds = socket_timeout_seconds
        self._cookies_path = Path(cookies_path) if cookies_path else None

    def base_flags(self) -> list[str]:
        return [
            "--no-playlist",
            "--no-check-certificates",
            "--prefer-free-formats",
            "--geo-bypass",
            "--geo-bypass-country", self._geo_bypass_country,
            "--socket-timeout", str(self._socket_timeout_seconds),
            "--retries", "2",
            "--fragment-retries", "2",
            "--skip-unavailable-fragments",
            "--concurrent-fragments", "1",
        ]

    def build(
        self,
        source_url: str,
        profile: StrategyProfile,
        proxy: ProxyEndpoint | None,
        extra_flags: Sequence[str] = (),
    ) -> list[str]:
        """Return the full argv for one attempt."""
        argv = [self.executable, *self.base_flags(), *profile.to_args()]
        if proxy is not None:
            argv += ["--proxy", proxy.url]
        if self._cookies_path is not None and self._cookies_path.exists():
            argv += ["--cookies", str(self._cookies_path)]
        argv.extend(extra_flags)
        argv += ["--", source_url]
        return argv
