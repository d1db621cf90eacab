"""Failure classification for extraction tool diagnostics.

Maps the error text of a failed run onto an outcome kind using an ordered
pattern table. Bot-detection markers are checked first, then
network-transient markers; anything unmatched is fatal.
"""

from __future__ import annotations

import re

from vidgate.extraction.outcome import ExtractionOutcome, OutcomeKind

FAILURE_PATTERNS: tuple[tuple[re.Pattern[str], OutcomeKind], ...] = (
    # Anti-automation defenses
    (re.compile(r"sign in to confirm", re.IGNORECASE), OutcomeKind.BOT_DETECTED),
    (re.compile(r"not a bot", re.IGNORECASE), OutcomeKind.BOT_DETECTED),
    (re.compile(r"\bbot\b", re.IGNORECASE), OutcomeKind.BOT_DETECTED),
    (re.compile(r"\b429\b"), OutcomeKind.BOT_DETECTED),
    (re.compile(r"too many requests", re.IGNORECASE), OutcomeKind.BOT_DETECTED),
    (re.compile(r"rate[- ]?limit", re.IGNORECASE), OutcomeKind.BOT_DETECTED),
    # Network trouble worth another attempt through a different route
    (re.compile(r"timed? ?out", re.IGNORECASE), OutcomeKind.TRANSIENT_FAILURE),
    (re.compile(r"connection (reset|refused|aborted)", re.IGNORECASE), OutcomeKind.TRANSIENT_FAILURE),
    (re.compile(r"unable to connect to proxy|proxyerror|tunnel connection failed", re.IGNORECASE),
     OutcomeKind.TRANSIENT_FAILURE),
    (re.compile(r"temporary failure in name resolution", re.IGNORECASE), OutcomeKind.TRANSIENT_FAILURE),
    (re.compile(r"remote end closed connection|incompleteread", re.IGNORECASE),
     OutcomeKind.TRANSIENT_FAILURE),
    (re.compile(r"HTTP Error 5\d\d"), OutcomeKind.TRANSIENT_FAILURE),
)


def classify_failure(stderr: str, returncode: int | None = None) -> ExtractionOutcome:
    """Classify the diagnostic text of a non-zero exit."""
    text = stderr.strip() or f"Exit code {returncode}"
    for pattern, kind in FAILURE_PATTERNS:
        if pattern.search(stderr):
            return ExtractionOutcome(kind, diagnostic=text)
    return ExtractionOutcome.fatal(text)
