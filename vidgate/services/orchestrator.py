"""Media orchestrator — the operations exposed to the HTTP layer.

Coordinates one request through the pipeline:

- metadata: validate → cache lookup → gate admit → randomized pause →
  strategy chain (invoker per profile, proxy per attempt) → normalize →
  cache store → gate release
- direct link: validate → gate admit → pause → strategy chain → first line
- stream: validate → streaming pipe (no gate, no cache)

Outcomes left over after the chain are turned into the matching
GatewayError so the HTTP layer only ever sees one exception hierarchy.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from vidgate.cache.metadata_cache import MetadataCache
from vidgate.extraction.arguments import METADATA_FLAGS, direct_link_flags
from vidgate.extraction.invoker import ExtractionInvoker
from vidgate.extraction.outcome import ExtractionOutcome, OutcomeKind
from vidgate.gate.request_gate import RequestGate
from vidgate.middleware.error_handler import (
    BotDetectedError,
    ExtractionFailedError,
    UpstreamUnavailableError,
)
from vidgate.models.normalizer import first_line, normalize_metadata, sanitize_filename
from vidgate.models.schemas import VideoMetadata
from vidgate.proxy.types import ProxyEndpoint
from vidgate.streaming.pipe import MERGE_CONTAINER, MediaStream, StreamingPipe, format_selector
from vidgate.strategy.chain import StrategyChain
from vidgate.strategy.profiles import StrategyProfile
from vidgate.validators.url_validator import validate_format_id, validate_source_url

logger = logging.getLogger(__name__)


def _raise_for_outcome(outcome: ExtractionOutcome) -> None:
    """Map a non-success outcome onto the error taxonomy.

    Callers only get the fixed per-error message; the tool's stderr can carry
    proxy credentials and stays in the (redacted) logs.
    """
    if outcome.kind is OutcomeKind.BOT_DETECTED:
        raise BotDetectedError()
    if outcome.kind is OutcomeKind.TRANSIENT_FAILURE:
        raise UpstreamUnavailableError()
    raise ExtractionFailedError()


class MediaOrchestrator:
    """Entry point for metadata, direct-link, and stream requests.

    Dependencies are injected via the constructor so the orchestrator is
    testable without a real extraction tool.
    """

    def __init__(
        self,
        *,
        gate: RequestGate,
        cache: MetadataCache,
        chain: StrategyChain,
        invoker: ExtractionInvoker,
        pipe: StreamingPipe,
        allowed_hosts: Sequence[str] = (),
    ) -> None:
        self._gate = gate
        self._cache = cache
        self._chain = chain
        self._invoker = invoker
        self._pipe = pipe
        self._allowed_hosts = tuple(allowed_hosts)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch_metadata(self, client_id: str, source_url: str) -> VideoMetadata:
        """Return normalized metadata, from cache when fresh."""
        source_url = validate_source_url(source_url, self._allowed_hosts)

        cached = self._cache.get(source_url)
        if cached is not None:
            logger.debug("Metadata cache hit", extra={"source_url": source_url})
            return cached.payload

        async with self._gate.hold(client_id, source_url):
            outcome = await self._extract(
                client_id, source_url, METADATA_FLAGS, structured=True
            )
            metadata = normalize_metadata(outcome.payload)
            self._cache.put(source_url, metadata)

        return metadata

    async def resolve_direct_link(
        self, client_id: str, source_url: str, format_id: str
    ) -> str:
        """Return a fresh upstream media URL for one format. Never cached."""
        source_url = validate_source_url(source_url, self._allowed_hosts)
        format_id = validate_format_id(format_id)

        async with self._gate.hold(client_id, source_url):
            outcome = await self._extract(
                client_id, source_url, direct_link_flags(format_id), structured=False
            )

        link = first_line(outcome.payload)
        if not link:
            raise ExtractionFailedError("Extraction tool returned no link")
        return link

    async def open_media_stream(
        self,
        source_url: str,
        format_id: str,
        display_title: str | None = None,
        *,
        has_audio: bool = False,
        ext: str = "mp4",
    ) -> MediaStream:
        """Start streaming one format; the returned stream owns the subprocess."""
        source_url = validate_source_url(source_url, self._allowed_hosts)
        format_id = validate_format_id(format_id)

        filename = sanitize_filename(
            display_title, ext if has_audio else MERGE_CONTAINER
        )
        return await self._pipe.open_stream(
            source_url,
            format_selector(format_id, has_audio),
            filename=filename,
        )

    # ------------------------------------------------------------------
    # Internal pipeline
    # ------------------------------------------------------------------

    async def _extract(
        self,
        client_id: str,
        source_url: str,
        flags: Sequence[str],
        *,
        structured: bool,
    ) -> ExtractionOutcome:
        started = time.monotonic()
        await self._invoker.humanize_delay()

        async def attempt(
            profile: StrategyProfile, proxy: ProxyEndpoint | None
        ) -> ExtractionOutcome:
            return await self._invoker.invoke(
                source_url, profile, proxy, flags, structured=structured
            )

        outcome = await self._chain.for_each_until_success(attempt)
        duration_ms = round((time.monotonic() - started) * 1000)

        if not outcome.ok:
            logger.error(
                "Extraction failed: %s",
                outcome.kind.value,
                extra={
                    "client_id": client_id,
                    "source_url": source_url,
                    "outcome": outcome.kind.value,
                    "error_reason": outcome.diagnostic[-500:],
                    "duration_ms": duration_ms,
                },
            )
            _raise_for_outcome(outcome)

        logger.info(
            "Extraction succeeded",
            extra={
                "client_id": client_id,
                "source_url": source_url,
                "outcome": outcome.kind.value,
                "duration_ms": duration_ms,
            },
        )
        return outcome
