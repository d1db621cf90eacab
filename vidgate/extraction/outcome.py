"""Tagged result of a single extraction attempt."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class OutcomeKind(str, Enum):
    """Classification of an extraction attempt."""

    SUCCESS = "success"
    BOT_DETECTED = "bot_detected"
    TRANSIENT_FAILURE = "transient_failure"
    FATAL_FAILURE = "fatal_failure"


@dataclass(frozen=True)
class ExtractionOutcome:
    """Success carries the payload; failures carry diagnostic text."""

    kind: OutcomeKind
    payload: Any = None  # dict for structured output, str for raw text
    diagnostic: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def retryable(self) -> bool:
        return self.kind in (OutcomeKind.BOT_DETECTED, OutcomeKind.TRANSIENT_FAILURE)

    @classmethod
    def success(cls, payload: Any) -> "ExtractionOutcome":
        return cls(OutcomeKind.SUCCESS, payload=payload)

    @classmethod
    def bot_detected(cls, diagnostic: str) -> "ExtractionOutcome":
        return cls(OutcomeKind.BOT_DETECTED, diagnostic=diagnostic)

    @classmethod
    def transient(cls, diagnostic: str) -> "ExtractionOutcome":
        return cls(OutcomeKind.TRANSIENT_FAILURE, diagnostic=diagnostic)

    @classmethod
    def fatal(cls, diagnostic: str) -> "ExtractionOutcome":
        return cls(OutcomeKind.FATAL_FAILURE, diagnostic=diagnostic)
