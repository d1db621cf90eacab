"""Pydantic Settings for the gateway service.

All environment variables use the VIDGATE_ prefix.
Example: VIDGATE_PORT=3000, VIDGATE_PROXY_POOL='["http://p1:8080"]'
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class GatewaySettings(BaseSettings):
    """Gateway service configuration validated from environment variables."""

    # Service
    port: int = 3000
    log_level: str = "INFO"
    trust_forwarded_for: bool = True  # Behind one reverse proxy hop

    # Extraction tool
    extractor_binary: str = "yt-dlp"
    geo_bypass_country: str = "IN"
    socket_timeout_seconds: int = Field(default=15, ge=1)
    cookies_path: str = "cookies.txt"
    cookies_content: str | None = None  # Written to cookies_path at startup

    # Proxy
    proxy_pool: list[str] = []
    proxy_failure_threshold: int = Field(default=2, ge=1)
    proxy_ban_seconds: int = Field(default=600, ge=1)  # 10 minutes

    # Request gate
    duplicate_cooldown_seconds: float = Field(default=15.0, ge=0)
    session_max_idle_seconds: int = Field(default=900, ge=1)
    session_eviction_interval_seconds: int = Field(default=300, ge=1)

    # Metadata cache
    cache_ttl_seconds: float = Field(default=60.0, gt=0)

    # Pacing
    min_jitter_ms: int = Field(default=1000, ge=0)
    max_jitter_ms: int = Field(default=3000, ge=0)
    retry_backoff_seconds: float = Field(default=1.0, ge=0)

    # API rate limiting
    api_rate_limit_tokens: int = Field(default=3, ge=1)
    api_rate_limit_interval_seconds: int = Field(default=12, ge=1)

    # Streaming
    stream_chunk_size: int = Field(default=65536, ge=1024)
    stream_terminate_timeout_seconds: float = Field(default=5.0, gt=0)

    # Source validation
    allowed_hosts: list[str] = [
        "youtube.com",
        "youtu.be",
        "youtube-nocookie.com",
    ]

    # Strategy profiles
    strategies_path: str = "vidgate/config/strategies.yaml"

    model_config = {"env_prefix": "VIDGATE_"}

    @model_validator(mode="after")
    def _check_jitter_bounds(self) -> "GatewaySettings":
        if self.max_jitter_ms < self.min_jitter_ms:
            raise ValueError("max_jitter_ms must be >= min_jitter_ms")
        return self
