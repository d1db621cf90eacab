"""Cancellable byte-stream passthrough from the extraction tool.

A stream is a live subprocess writing the selected media to its stdout.
Video-only formats are merged with the best audio by the tool itself, so
the caller receives one combined file. Bytes are relayed chunk by chunk and
never buffered whole.

The subprocess is torn down the moment the consumer stops reading, whether
by finishing, raising, or being cancelled on client disconnect: SIGTERM is
sent synchronously, and a reaper escalates to SIGKILL if the process does
not exit in time. stderr is drained concurrently so the child never blocks
on a full pipe, keeping a short tail for error reports.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from collections.abc import AsyncIterator, Sequence

from vidgate.extraction.arguments import ArgumentBuilder
from vidgate.extraction.classifier import classify_failure
from vidgate.middleware.error_handler import ExtractionFailedError, SpawnFailedError
from vidgate.proxy.registry import ProxyHealthRegistry
from vidgate.proxy.types import ProxyEndpoint
from vidgate.strategy.profiles import StrategyProfile

logger = logging.getLogger(__name__)

MERGE_CONTAINER = "mkv"


def format_selector(format_id: str, has_audio: bool) -> str:
    """Selector that adds the best audio track to a video-only format."""
    if has_audio:
        return format_id
    return f"{format_id}+bestaudio/{format_id}"


class MediaStream:
    """Async iterator of media bytes bound to one subprocess.

    Iterate it once; closing it (or abandoning iteration) terminates the
    subprocess. When the stream ran through a registry proxy, a clean exit
    counts as a success for that proxy and a retryable failure before the
    first byte counts against it.
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        *,
        source_url: str,
        chunk_size: int = 65536,
        terminate_timeout: float = 5.0,
        filename: str | None = None,
        registry: ProxyHealthRegistry | None = None,
        proxy: ProxyEndpoint | None = None,
    ) -> None:
        self._process = process
        self._source_url = source_url
        self._chunk_size = chunk_size
        self._terminate_timeout = terminate_timeout
        self._registry = registry
        self._proxy = proxy
        self.filename = filename
        self.bytes_sent = 0
        self._stderr_tail: deque[str] = deque(maxlen=20)
        self._stderr_task = asyncio.create_task(self._drain_stderr())
        self._reaper: asyncio.Future[None] | None = None
        self._closed = False

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        try:
            stdout = self._process.stdout
            if stdout is None:
                raise RuntimeError("Stream subprocess was started without a stdout pipe")
            while True:
                chunk = await stdout.read(self._chunk_size)
                if not chunk:
                    break
                self.bytes_sent += len(chunk)
                yield chunk

            returncode = await self._process.wait()
            if returncode == 0:
                if self._registry is not None and self._proxy is not None:
                    self._registry.report_success(self._proxy)
                return

            # Let the drain task pick up what the child wrote last
            await asyncio.wait({self._stderr_task}, timeout=1.0)
            detail = "\n".join(list(self._stderr_tail)[-6:]) or f"Exit code {returncode}"
            logger.error(
                "Stream ended with failure after %d bytes",
                self.bytes_sent,
                extra={"source_url": self._source_url, "error_reason": detail},
            )
            if (
                self._registry is not None
                and self._proxy is not None
                and self.bytes_sent == 0
                and classify_failure(detail, returncode).retryable
            ):
                self._registry.report_failure(self._proxy)
            raise ExtractionFailedError()
        finally:
            await self.aclose()

    async def _drain_stderr(self) -> None:
        stderr = self._process.stderr
        if stderr is None:
            return
        async for line in stderr:
            text = line.decode("utf-8", errors="replace").strip()
            if text:
                self._stderr_tail.append(text)

    async def aclose(self) -> None:
        """Terminate the subprocess if it is still running. Idempotent."""
        if self._closed:
            if self._reaper is not None:
                await asyncio.shield(self._reaper)
            return
        self._closed = True

        if self._process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                self._process.terminate()
            self._reaper = asyncio.ensure_future(self._reap())
            await asyncio.shield(self._reaper)
        else:
            self._stderr_task.cancel()

    async def _discard_stdout(self) -> None:
        stdout = self._process.stdout
        if stdout is None:
            return
        while await stdout.read(self._chunk_size):
            pass

    async def _reap(self) -> None:
        # wait() does not return until both pipes hit EOF
        discard = asyncio.ensure_future(self._discard_stdout())
        try:
            await asyncio.wait_for(self._process.wait(), timeout=self._terminate_timeout)
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                self._process.kill()
            await self._process.wait()
        finally:
            discard.cancel()
            self._stderr_task.cancel()
        logger.info(
            "Stream subprocess torn down after %d bytes (exit %s)",
            self.bytes_sent,
            self._process.returncode,
            extra={"source_url": self._source_url},
        )


class StreamingPipe:
    """Opens media streams, bypassing the request gate and the cache.

    A stream cannot be retried once bytes are flowing, so it uses the first
    profile of the chain and one proxy from the registry.
    """

    def __init__(
        self,
        *,
        arguments: ArgumentBuilder,
        registry: ProxyHealthRegistry,
        profiles: Sequence[StrategyProfile],
        chunk_size: int = 65536,
        terminate_timeout: float = 5.0,
    ) -> None:
        self._arguments = arguments
        self._registry = registry
        self._profiles = tuple(profiles)
        self._chunk_size = chunk_size
        self._terminate_timeout = terminate_timeout

    async def open_stream(
        self,
        source_url: str,
        selector: str,
        *,
        filename: str | None = None,
    ) -> MediaStream:
        """Spawn the tool writing *selector* of *source_url* to stdout.

        Raises ``NoHealthyProxyError`` if the proxy pool is fully banned and
        ``SpawnFailedError`` if the tool cannot be started.
        """
        proxy = self._registry.select()
        profile = self._profiles[0]
        argv = self._arguments.build(
            source_url,
            profile,
            proxy,
            ["-f", selector, "--merge-output-format", MERGE_CONTAINER, "-o", "-"],
        )

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.error(
                "Failed to start stream subprocess %s: %s",
                argv[0],
                exc,
                extra={"source_url": source_url, "error_reason": str(exc)},
            )
            raise SpawnFailedError(f"Could not start {argv[0]}: {exc}") from exc

        logger.info(
            "Stream opened (pid %d, format %s)",
            process.pid,
            selector,
            extra={"source_url": source_url, "strategy": profile.name},
        )
        return MediaStream(
            process,
            source_url=source_url,
            chunk_size=self._chunk_size,
            terminate_timeout=self._terminate_timeout,
            filename=filename,
            registry=self._registry,
            proxy=proxy,
        )
