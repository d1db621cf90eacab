"""Randomized pacing and selection.

All randomness in the request path goes through a ``Jitter`` instance so
tests can seed it (or pass a zero range) and get deterministic behaviour.
"""

from __future__ import annotations

import asyncio
import random
from typing import TypeVar

T = TypeVar("T")


class Jitter:
    """Random delays and orderings backed by one ``random.Random``.

    Args:
        min_delay_ms: Lower bound of the pre-attempt delay.
        max_delay_ms: Upper bound of the pre-attempt delay.
        rng: Optional seeded generator.
    """

    def __init__(
        self,
        min_delay_ms: int = 1000,
        max_delay_ms: int = 3000,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self._min_delay_ms = min_delay_ms
        self._max_delay_ms = max_delay_ms
        self._rng = rng or random.Random()

    def delay_seconds(self) -> float:
        """Return a random delay in seconds within the configured range."""
        return self._rng.uniform(self._min_delay_ms, self._max_delay_ms) / 1000.0

    def shuffle(self, items: list[T]) -> list[T]:
        """Return a shuffled copy of *items*."""
        shuffled = list(items)
        self._rng.shuffle(shuffled)
        return shuffled

    async def sleep(self) -> float:
        """Sleep for a random delay and return how long it was."""
        delay = self.delay_seconds()
        if delay > 0:
            await asyncio.sleep(delay)
        return delay
