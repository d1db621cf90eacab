"""Extraction invoker — runs the external tool once and classifies the result.

One call spawns the tool with the composed argv, waits for it to exit while
collecting stdout and stderr, and maps the run onto an ExtractionOutcome:

- non-zero exit → classified by the failure pattern table
- zero exit, empty output → fatal
- zero exit with output → success, parsed as JSON when structured output
  was requested, otherwise the trimmed text

A process that cannot be started at all raises ``SpawnFailedError`` since no
other strategy could do better.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Sequence

from vidgate.extraction.arguments import ArgumentBuilder
from vidgate.extraction.classifier import classify_failure
from vidgate.extraction.outcome import ExtractionOutcome
from vidgate.middleware.error_handler import SpawnFailedError
from vidgate.proxy.types import ProxyEndpoint
from vidgate.resilience.jitter import Jitter
from vidgate.strategy.profiles import StrategyProfile

logger = logging.getLogger(__name__)


def interpret_result(
    returncode: int | None,
    stdout: bytes,
    stderr: bytes,
    *,
    structured: bool,
) -> ExtractionOutcome:
    """Turn a finished process's exit status and output into an outcome."""
    err_text = stderr.decode("utf-8", errors="replace")
    if returncode != 0:
        return classify_failure(err_text, returncode)

    out_text = stdout.decode("utf-8", errors="replace").strip()
    if not out_text:
        return ExtractionOutcome.fatal(err_text.strip() or "Extraction tool produced no output")

    if not structured:
        return ExtractionOutcome.success(out_text)

    try:
        document = json.loads(out_text)
    except json.JSONDecodeError as exc:
        return ExtractionOutcome.fatal(f"Malformed metadata document: {exc}")
    if not isinstance(document, dict):
        return ExtractionOutcome.fatal("Metadata document is not an object")
    return ExtractionOutcome.success(document)


class ExtractionInvoker:
    """Spawns the extraction tool for a single attempt."""

    def __init__(self, *, arguments: ArgumentBuilder, jitter: Jitter) -> None:
        self._arguments = arguments
        self._jitter = jitter

    async def humanize_delay(self) -> float:
        """Random pause before the first attempt of a request."""
        return await self._jitter.sleep()

    async def invoke(
        self,
        source_url: str,
        profile: StrategyProfile,
        proxy: ProxyEndpoint | None,
        extra_flags: Sequence[str] = (),
        *,
        structured: bool = False,
    ) -> ExtractionOutcome:
        argv = self._arguments.build(source_url, profile, proxy, extra_flags)
        started = time.monotonic()

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.error(
                "Failed to start extraction tool %s: %s",
                argv[0],
                exc,
                extra={"source_url": source_url, "error_reason": str(exc)},
            )
            raise SpawnFailedError(f"Could not start {argv[0]}: {exc}") from exc

        stdout, stderr = await process.communicate()
        outcome = interpret_result(
            process.returncode, stdout, stderr, structured=structured
        )

        logger.debug(
            "Extraction attempt finished: %s",
            outcome.kind.value,
            extra={
                "source_url": source_url,
                "strategy": profile.name,
                "proxy_used": proxy is not None,
                "outcome": outcome.kind.value,
                "duration_ms": round((time.monotonic() - started) * 1000),
            },
        )
        return outcome
