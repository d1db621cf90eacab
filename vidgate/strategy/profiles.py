"""Client fingerprint profiles for the extraction fallback chain.

A profile bundles everything that makes one extraction attempt look like a
particular client platform: the player client the extractor should
impersonate, the user agent, and the request headers sent along. Profiles
are immutable and are tried in order by the strategy chain.

Profiles are loaded from YAML; when the file is missing or invalid the
built-in android → ios → web sequence is used.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class StrategyProfile(BaseModel):
    """One simulated client identity."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    player_client: str = Field(min_length=1)
    player_skip: str | None = None
    user_agent: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    extra_flags: tuple[str, ...] = ()

    def to_args(self) -> list[str]:
        """Render the profile as extraction tool flags."""
        args = ["--extractor-args", f"youtube:player_client={self.player_client}"]
        if self.player_skip:
            args += ["--extractor-args", f"youtube:player_skip={self.player_skip}"]
        for header, value in self.headers.items():
            args += ["--add-header", f"{header}:{value}"]
        if self.user_agent:
            args += ["--user-agent", self.user_agent]
        args.extend(self.extra_flags)
        return args


# ---------------------------------------------------------------------------
# Built-in profiles
# ---------------------------------------------------------------------------

DEFAULT_PROFILES: tuple[StrategyProfile, ...] = (
    StrategyProfile(
        name="android",
        player_client="android",
        player_skip="webpage,configs",
        user_agent=(
            "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/116.0.0.0 Mobile Safari/537.36"
        ),
        headers={
            "accept-language": "en-US,en;q=0.9",
            "sec-fetch-mode": "navigate",
            "sec-fetch-site": "none",
            "sec-fetch-user": "?1",
            "sec-ch-ua-platform": '"Android"',
            "sec-ch-ua-mobile": "?1",
        },
    ),
    StrategyProfile(
        name="ios",
        player_client="ios",
        user_agent=(
            "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) "
            "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
        ),
        headers={
            "accept-language": "en-GB,en;q=0.8",
        },
    ),
    StrategyProfile(
        name="web",
        player_client="web",
        user_agent=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        headers={
            "accept-language": "en-US,en;q=0.9",
            "sec-fetch-mode": "navigate",
            "sec-fetch-site": "none",
            "sec-ch-ua-platform": '"Windows"',
            "sec-ch-ua-mobile": "?0",
        },
    ),
)


def load_strategy_profiles(yaml_path: str) -> tuple[StrategyProfile, ...]:
    """Parse a strategies YAML file into an ordered tuple of profiles.

    Args:
        yaml_path: Path to the YAML configuration file.

    Returns:
        The profiles in file order. Falls back to ``DEFAULT_PROFILES`` when
        the file is missing, unparsable, or yields no valid profile.
    """
    path = Path(yaml_path)

    if not path.exists():
        logger.warning("Strategies file not found at %s — using built-in profiles", yaml_path)
        return DEFAULT_PROFILES

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        logger.error("Failed to parse strategies YAML at %s: %s", yaml_path, exc)
        return DEFAULT_PROFILES

    if not isinstance(raw, dict) or not isinstance(raw.get("profiles"), list):
        logger.warning("Strategies YAML missing 'profiles' list — using built-in profiles")
        return DEFAULT_PROFILES

    profiles: list[StrategyProfile] = []
    for index, config in enumerate(raw["profiles"]):
        try:
            profiles.append(StrategyProfile.model_validate(config))
        except Exception as exc:
            logger.error("Invalid strategy profile #%d: %s — skipping", index, exc)

    if not profiles:
        return DEFAULT_PROFILES

    logger.info(
        "Loaded %d strategy profiles from %s: %s",
        len(profiles),
        yaml_path,
        ", ".join(p.name for p in profiles),
    )
    return tuple(profiles)
