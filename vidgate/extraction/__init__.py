"""Extraction tool invocation, argument composition, and failure classification."""

from vidgate.extraction.arguments import METADATA_FLAGS, ArgumentBuilder, direct_link_flags
from vidgate.extraction.classifier import FAILURE_PATTERNS, classify_failure
from vidgate.extraction.invoker import ExtractionInvoker, interpret_result
from vidgate.extraction.outcome import ExtractionOutcome, OutcomeKind

__all__ = [
    "FAILURE_PATTERNS",
    "METADATA_FLAGS",
    "ArgumentBuilder",
    "ExtractionInvoker",
    "ExtractionOutcome",
    "OutcomeKind",
    "classify_failure",
    "direct_link_flags",
    "interpret_result",
]
