"""Ordered fallback over client fingerprint profiles.

Each profile gets one attempt through a freshly selected proxy. Bot
detection and transient failures count against the proxy and move on to the
next profile after a short backoff; a fatal failure ends the chain at once,
since a different fingerprint cannot make a missing resource appear.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from vidgate.extraction.outcome import ExtractionOutcome
from vidgate.proxy.registry import ProxyHealthRegistry
from vidgate.proxy.types import ProxyEndpoint
from vidgate.strategy.profiles import StrategyProfile

logger = logging.getLogger(__name__)

Attempt = Callable[[StrategyProfile, "ProxyEndpoint | None"], Awaitable[ExtractionOutcome]]


class StrategyChain:
    """Runs an attempt function across profiles until one succeeds.

    Args:
        profiles: Ordered, non-empty profile sequence.
        registry: Proxy registry consulted before every attempt.
        backoff_seconds: Pause between a retryable failure and the next profile.
    """

    def __init__(
        self,
        profiles: Sequence[StrategyProfile],
        registry: ProxyHealthRegistry,
        *,
        backoff_seconds: float = 1.0,
    ) -> None:
        if not profiles:
            raise ValueError("StrategyChain needs at least one profile")
        self._profiles = tuple(profiles)
        self._registry = registry
        self._backoff_seconds = backoff_seconds

    @property
    def profiles(self) -> tuple[StrategyProfile, ...]:
        return self._profiles

    async def for_each_until_success(self, attempt: Attempt) -> ExtractionOutcome:
        """Return the first success, the first fatal failure, or the last outcome.

        Raises ``NoHealthyProxyError`` from the registry if every proxy is banned
        when an attempt is about to start.
        """
        outcome: ExtractionOutcome | None = None
        total = len(self._profiles)

        for index, profile in enumerate(self._profiles, start=1):
            proxy = self._registry.select()
            outcome = await attempt(profile, proxy)

            if outcome.ok:
                if proxy is not None:
                    self._registry.report_success(proxy)
                return outcome

            if not outcome.retryable:
                return outcome

            logger.warning(
                "%s via %s with profile %s. Attempt %d/%d",
                outcome.kind.value,
                "proxy" if proxy is not None else "direct",
                profile.name,
                index,
                total,
                extra={"strategy": profile.name, "outcome": outcome.kind.value},
            )
            if proxy is not None:
                self._registry.report_failure(proxy)

            if index < total and self._backoff_seconds > 0:
                await asyncio.sleep(self._backoff_seconds)

        if outcome is None:
            raise RuntimeError("StrategyChain has no profiles to try")
        return outcome
