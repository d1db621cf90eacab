"""Client fingerprint profiles and the fallback chain that walks them."""

from vidgate.strategy.chain import StrategyChain
from vidgate.strategy.profiles import DEFAULT_PROFILES, StrategyProfile, load_strategy_profiles

__all__ = [
    "DEFAULT_PROFILES",
    "StrategyChain",
    "StrategyProfile",
    "load_strategy_profiles",
]
