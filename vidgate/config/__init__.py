"""Configuration module — environment settings and strategy profile file."""

from vidgate.config.settings import GatewaySettings

__all__ = ["GatewaySettings"]
