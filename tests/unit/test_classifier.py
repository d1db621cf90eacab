"""Unit tests for failure classification of extraction tool diagnostics."""

from __future__ import annotations

import pytest

from vidgate.extraction.classifier import classify_failure
from vidgate.extraction.outcome import ExtractionOutcome, OutcomeKind


class TestClassifyFailure:
    @pytest.mark.parametrize(
        "stderr",
        [
            "ERROR: [youtube] abc: Sign in to confirm you're not a bot. Use --cookies",
            "ERROR: HTTP Error 429: Too Many Requests",
            "WARNING: bot check triggered",
            "ERROR: rate-limited by upstream",
        ],
    )
    def test_bot_detection(self, stderr):
        outcome = classify_failure(stderr, 1)
        assert outcome.kind is OutcomeKind.BOT_DETECTED
        assert outcome.retryable

    @pytest.mark.parametrize(
        "stderr",
        [
            "ERROR: Read timed out.",
            "ERROR: [Errno 104] Connection reset by peer",
            "ERROR: Unable to connect to proxy",
            "ERROR: [Errno -3] Temporary failure in name resolution",
            "ERROR: HTTP Error 503: Service Unavailable",
            "ERROR: IncompleteRead(1024 bytes read)",
        ],
    )
    def test_transient(self, stderr):
        outcome = classify_failure(stderr, 1)
        assert outcome.kind is OutcomeKind.TRANSIENT_FAILURE
        assert outcome.retryable

    @pytest.mark.parametrize(
        "stderr",
        [
            "ERROR: [youtube] abc: Video unavailable",
            "ERROR: [youtube] abc: Private video",
            "ERROR: Requested format is not available",
        ],
    )
    def test_fatal(self, stderr):
        outcome = classify_failure(stderr, 1)
        assert outcome.kind is OutcomeKind.FATAL_FAILURE
        assert not outcome.retryable

    def test_bot_marker_wins_over_transient(self):
        outcome = classify_failure("HTTP Error 429 after connection reset", 1)
        assert outcome.kind is OutcomeKind.BOT_DETECTED

    def test_word_bot_must_stand_alone(self):
        outcome = classify_failure("ERROR: robotics channel removed", 1)
        assert outcome.kind is OutcomeKind.FATAL_FAILURE

    def test_diagnostic_is_trimmed_stderr(self):
        outcome = classify_failure("  ERROR: Video unavailable \n", 1)
        assert outcome.diagnostic == "ERROR: Video unavailable"

    def test_empty_stderr_uses_exit_code(self):
        outcome = classify_failure("", 137)
        assert outcome.kind is OutcomeKind.FATAL_FAILURE
        assert outcome.diagnostic == "Exit code 137"


class TestExtractionOutcome:
    def test_constructors(self):
        assert ExtractionOutcome.success({"a": 1}).ok
        assert ExtractionOutcome.success({"a": 1}).payload == {"a": 1}
        assert ExtractionOutcome.bot_detected("x").kind is OutcomeKind.BOT_DETECTED
        assert ExtractionOutcome.transient("x").kind is OutcomeKind.TRANSIENT_FAILURE
        assert ExtractionOutcome.fatal("x").kind is OutcomeKind.FATAL_FAILURE

    def test_success_is_not_retryable(self):
        assert not ExtractionOutcome.success("x").retryable
