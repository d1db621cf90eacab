"""Per-client concurrency gate with duplicate-request suppression.

Each client identity (normally its network address) owns one session
record. A client may have a single extraction in flight; a second request
while the first is running is rejected as busy. Asking for the same source
again within the cooldown window is rejected as a duplicate, even when the
earlier request already finished.

The session's last-request record is refreshed by every incoming request,
before the busy check, so the cooldown always runs from the most recent
attempt. Both rejections happen before any subprocess is spawned.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum

from vidgate.middleware.error_handler import ClientBusyError, DuplicateCooldownError

logger = logging.getLogger(__name__)


class GateDecision(str, Enum):
    """Result of an admission check."""

    ADMITTED = "admitted"
    BUSY = "busy"
    DUPLICATE_COOLDOWN = "duplicate_cooldown"


@dataclass
class ClientSession:
    """Gate state for one client identity."""

    client_id: str
    in_flight: bool = False
    last_source_url: str | None = None
    last_requested_at: float | None = None  # time.monotonic()


class RequestGate:
    """Admission control for metadata and direct-link requests.

    Args:
        cooldown_seconds: Window during which a repeat of the same source by
            the same client is refused.
    """

    def __init__(self, cooldown_seconds: float = 15.0) -> None:
        self._cooldown_seconds = cooldown_seconds
        self._sessions: dict[str, ClientSession] = {}

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def admit(self, client_id: str, source_url: str) -> GateDecision:
        """Decide whether *client_id* may start an extraction of *source_url*.

        On ``ADMITTED`` the caller owns the client's slot and must call
        :meth:`release` on every exit path; prefer :meth:`hold`.
        """
        now = time.monotonic()
        session = self._sessions.get(client_id)
        if session is None:
            session = ClientSession(client_id=client_id)
            self._sessions[client_id] = session

        duplicate = (
            session.last_source_url == source_url
            and session.last_requested_at is not None
            and now - session.last_requested_at < self._cooldown_seconds
        )
        session.last_source_url = source_url
        session.last_requested_at = now

        if session.in_flight:
            return GateDecision.BUSY
        if duplicate:
            logger.info(
                "Blocked repeat request from %s",
                client_id,
                extra={"client_id": client_id, "source_url": source_url},
            )
            return GateDecision.DUPLICATE_COOLDOWN

        session.in_flight = True
        return GateDecision.ADMITTED

    def release(self, client_id: str) -> None:
        """Free the client's in-flight slot. Safe to call more than once."""
        session = self._sessions.get(client_id)
        if session is not None:
            session.in_flight = False

    @asynccontextmanager
    async def hold(self, client_id: str, source_url: str) -> AsyncIterator[None]:
        """Admit or raise, and release on every exit path of the body.

        Raises ``ClientBusyError`` or ``DuplicateCooldownError`` on rejection.
        """
        decision = self.admit(client_id, source_url)
        if decision is GateDecision.BUSY:
            raise ClientBusyError()
        if decision is GateDecision.DUPLICATE_COOLDOWN:
            raise DuplicateCooldownError(retry_after=math.ceil(self._cooldown_seconds))

        try:
            yield
        finally:
            self.release(client_id)

    def is_in_flight(self, client_id: str) -> bool:
        session = self._sessions.get(client_id)
        return session is not None and session.in_flight

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def evict_idle(self, max_idle_seconds: float) -> int:
        """Drop sessions that are idle and older than *max_idle_seconds*.

        Sessions with an extraction in flight are never evicted. Returns the
        number of sessions removed.
        """
        cutoff = time.monotonic() - max_idle_seconds
        stale = [
            client_id
            for client_id, session in self._sessions.items()
            if not session.in_flight
            and (session.last_requested_at is None or session.last_requested_at < cutoff)
        ]
        for client_id in stale:
            del self._sessions[client_id]
        if stale:
            logger.debug("Evicted %d idle client sessions", len(stale))
        return len(stale)

    async def eviction_loop(
        self,
        max_idle_seconds: float,
        interval_seconds: float,
        extra_pruners: Sequence[Callable[[], object]] = (),
    ) -> None:
        """Periodically prune idle sessions (and any extra per-client state).

        Runs until cancelled.
        """
        while True:
            await asyncio.sleep(interval_seconds)
            self.evict_idle(max_idle_seconds)
            for prune in extra_pruners:
                prune()

    def get_stats(self) -> dict:
        return {
            "sessions": len(self._sessions),
            "in_flight": sum(1 for s in self._sessions.values() if s.in_flight),
        }
