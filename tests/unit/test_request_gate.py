"""Unit tests for RequestGate admission, cooldown, and eviction."""

from __future__ import annotations

import asyncio
import time

import pytest

from vidgate.gate.request_gate import GateDecision, RequestGate
from vidgate.middleware.error_handler import ClientBusyError, DuplicateCooldownError

URL_A = "https://www.youtube.com/watch?v=aaaaaaaaaaa"
URL_B = "https://www.youtube.com/watch?v=bbbbbbbbbbb"


def _age_session(gate: RequestGate, client_id: str, seconds: float) -> None:
    """Pretend the client's last request happened *seconds* ago."""
    gate._sessions[client_id].last_requested_at = time.monotonic() - seconds


class TestAdmit:
    def test_first_request_admitted(self):
        gate = RequestGate()
        assert gate.admit("1.1.1.1", URL_A) is GateDecision.ADMITTED
        assert gate.is_in_flight("1.1.1.1")

    def test_second_request_while_in_flight_is_busy(self):
        gate = RequestGate()
        gate.admit("1.1.1.1", URL_A)
        assert gate.admit("1.1.1.1", URL_B) is GateDecision.BUSY

    def test_other_clients_unaffected(self):
        gate = RequestGate()
        gate.admit("1.1.1.1", URL_A)
        assert gate.admit("2.2.2.2", URL_A) is GateDecision.ADMITTED

    def test_same_source_within_cooldown_is_duplicate(self):
        gate = RequestGate(cooldown_seconds=15)
        gate.admit("1.1.1.1", URL_A)
        gate.release("1.1.1.1")
        assert gate.admit("1.1.1.1", URL_A) is GateDecision.DUPLICATE_COOLDOWN

    def test_different_source_after_release_admitted(self):
        gate = RequestGate(cooldown_seconds=15)
        gate.admit("1.1.1.1", URL_A)
        gate.release("1.1.1.1")
        assert gate.admit("1.1.1.1", URL_B) is GateDecision.ADMITTED

    def test_same_source_after_cooldown_admitted(self):
        gate = RequestGate(cooldown_seconds=15)
        gate.admit("1.1.1.1", URL_A)
        gate.release("1.1.1.1")
        _age_session(gate, "1.1.1.1", 16)
        assert gate.admit("1.1.1.1", URL_A) is GateDecision.ADMITTED

    def test_busy_takes_precedence_over_duplicate(self):
        gate = RequestGate(cooldown_seconds=15)
        gate.admit("1.1.1.1", URL_A)
        assert gate.admit("1.1.1.1", URL_A) is GateDecision.BUSY

    def test_rejected_request_refreshes_cooldown(self):
        gate = RequestGate(cooldown_seconds=15)
        gate.admit("1.1.1.1", URL_A)
        gate.release("1.1.1.1")
        _age_session(gate, "1.1.1.1", 10)

        # Duplicate rejection restarts the window from now
        assert gate.admit("1.1.1.1", URL_A) is GateDecision.DUPLICATE_COOLDOWN
        _age_session(gate, "1.1.1.1", 10)
        assert gate.admit("1.1.1.1", URL_A) is GateDecision.DUPLICATE_COOLDOWN

    def test_release_is_idempotent(self):
        gate = RequestGate()
        gate.release("unknown")
        gate.admit("1.1.1.1", URL_A)
        gate.release("1.1.1.1")
        gate.release("1.1.1.1")
        assert not gate.is_in_flight("1.1.1.1")


class TestHold:
    async def test_hold_releases_on_success(self):
        gate = RequestGate()
        async with gate.hold("1.1.1.1", URL_A):
            assert gate.is_in_flight("1.1.1.1")
        assert not gate.is_in_flight("1.1.1.1")

    async def test_hold_releases_on_exception(self):
        gate = RequestGate()
        with pytest.raises(RuntimeError):
            async with gate.hold("1.1.1.1", URL_A):
                raise RuntimeError("boom")
        assert not gate.is_in_flight("1.1.1.1")

    async def test_hold_raises_busy(self):
        gate = RequestGate()
        async with gate.hold("1.1.1.1", URL_A):
            with pytest.raises(ClientBusyError):
                async with gate.hold("1.1.1.1", URL_B):
                    pass
            # The rejected attempt must not free the running one
            assert gate.is_in_flight("1.1.1.1")

    async def test_hold_raises_duplicate_with_retry_after(self):
        gate = RequestGate(cooldown_seconds=14.2)
        async with gate.hold("1.1.1.1", URL_A):
            pass
        with pytest.raises(DuplicateCooldownError) as exc_info:
            async with gate.hold("1.1.1.1", URL_A):
                pass
        assert exc_info.value.retry_after == 15

    async def test_concurrent_tasks_single_admission(self):
        gate = RequestGate()
        started = asyncio.Event()
        finish = asyncio.Event()

        async def first():
            async with gate.hold("1.1.1.1", URL_A):
                started.set()
                await finish.wait()

        task = asyncio.create_task(first())
        await started.wait()
        assert gate.admit("1.1.1.1", URL_B) is GateDecision.BUSY
        finish.set()
        await task
        assert not gate.is_in_flight("1.1.1.1")


class TestEviction:
    def test_evicts_idle_sessions(self):
        gate = RequestGate()
        gate.admit("1.1.1.1", URL_A)
        gate.release("1.1.1.1")
        _age_session(gate, "1.1.1.1", 1000)

        assert gate.evict_idle(900) == 1
        assert gate.get_stats()["sessions"] == 0

    def test_keeps_recent_sessions(self):
        gate = RequestGate()
        gate.admit("1.1.1.1", URL_A)
        gate.release("1.1.1.1")
        assert gate.evict_idle(900) == 0

    def test_never_evicts_in_flight(self):
        gate = RequestGate()
        gate.admit("1.1.1.1", URL_A)
        _age_session(gate, "1.1.1.1", 1000)
        assert gate.evict_idle(900) == 0
        assert gate.is_in_flight("1.1.1.1")

    async def test_eviction_loop_runs_extra_pruners(self):
        gate = RequestGate()
        calls = []
        task = asyncio.create_task(
            gate.eviction_loop(900, 0.01, extra_pruners=(lambda: calls.append(1),))
        )
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert calls

    def test_stats(self):
        gate = RequestGate()
        gate.admit("1.1.1.1", URL_A)
        gate.admit("2.2.2.2", URL_A)
        gate.release("2.2.2.2")
        assert gate.get_stats() == {"sessions": 2, "in_flight": 1}
