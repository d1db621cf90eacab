"""Per-client request gate."""

from vidgate.gate.request_gate import ClientSession, GateDecision, RequestGate

__all__ = ["ClientSession", "GateDecision", "RequestGate"]
