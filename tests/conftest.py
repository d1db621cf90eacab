"""Shared test fixtures and fakes for the gateway test suite."""

from __future__ import annotations

import copy
import random
from collections.abc import Sequence

import pytest

from vidgate.cache.metadata_cache import MetadataCache
from vidgate.config.settings import GatewaySettings
from vidgate.extraction.arguments import ArgumentBuilder
from vidgate.extraction.outcome import ExtractionOutcome
from vidgate.gate.request_gate import RequestGate
from vidgate.proxy.registry import ProxyHealthRegistry
from vidgate.proxy.types import ProxyEndpoint
from vidgate.resilience.jitter import Jitter
from vidgate.strategy.chain import StrategyChain
from vidgate.strategy.profiles import DEFAULT_PROFILES, StrategyProfile


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> GatewaySettings:
    """Test settings with fast pacing and a two-proxy pool."""
    return GatewaySettings(
        min_jitter_ms=0,
        max_jitter_ms=0,
        retry_backoff_seconds=0,
        proxy_pool=["http://proxy1:8080", "http://proxy2:8080"],
        cookies_path="/nonexistent/cookies.txt",
    )


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def jitter() -> Jitter:
    return Jitter(0, 0, rng=random.Random(1234))


@pytest.fixture
def gate(settings: GatewaySettings) -> RequestGate:
    return RequestGate(cooldown_seconds=settings.duplicate_cooldown_seconds)


@pytest.fixture
def cache(settings: GatewaySettings) -> MetadataCache:
    return MetadataCache(ttl_seconds=settings.cache_ttl_seconds)


@pytest.fixture
async def registry(settings: GatewaySettings, jitter: Jitter) -> ProxyHealthRegistry:
    reg = ProxyHealthRegistry(
        failure_threshold=settings.proxy_failure_threshold,
        ban_seconds=settings.proxy_ban_seconds,
        jitter=jitter,
    )
    await reg.initialize(settings.proxy_pool)
    return reg


@pytest.fixture
def chain(registry: ProxyHealthRegistry) -> StrategyChain:
    return StrategyChain(DEFAULT_PROFILES, registry, backoff_seconds=0)


@pytest.fixture
def arguments(settings: GatewaySettings) -> ArgumentBuilder:
    return ArgumentBuilder(
        settings.extractor_binary,
        geo_bypass_country=settings.geo_bypass_country,
        socket_timeout_seconds=settings.socket_timeout_seconds,
        cookies_path=settings.cookies_path,
    )


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class ScriptedAttempt:
    """Attempt function returning pre-baked outcomes and recording its calls."""

    def __init__(self, outcomes: Sequence[ExtractionOutcome]) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[tuple[StrategyProfile, ProxyEndpoint | None]] = []

    async def __call__(
        self, profile: StrategyProfile, proxy: ProxyEndpoint | None
    ) -> ExtractionOutcome:
        self.calls.append((profile, proxy))
        return self._outcomes[len(self.calls) - 1]


class FakeProcess:
    """Stand-in for ``asyncio.subprocess.Process`` used by the invoker."""

    def __init__(self, returncode: int, stdout: bytes = b"", stderr: bytes = b"") -> None:
        self.returncode = returncode
        self.pid = 4242
        self._stdout = stdout
        self._stderr = stderr

    async def communicate(self) -> tuple[bytes, bytes]:
        return self._stdout, self._stderr


class FakeSpawner:
    """Replacement for ``asyncio.create_subprocess_exec`` that replays processes."""

    def __init__(self, processes: Sequence[FakeProcess]) -> None:
        self._processes = list(processes)
        self.argvs: list[tuple[str, ...]] = []

    async def __call__(self, *argv: str, **kwargs: object) -> FakeProcess:
        self.argvs.append(argv)
        return self._processes[len(self.argvs) - 1]


_SAMPLE_INFO: dict = {
    "title": "Sample Video",
    "duration": 212,
    "duration_string": "3:32",
    "thumbnail": "https://i.ytimg.com/vi/abc/hq.jpg",
    "uploader": "Sample Channel",
    "view_count": 12345,
    "formats": [
        {"format_id": "140", "ext": "m4a", "acodec": "mp4a.40.2", "vcodec": "none",
         "format_note": "medium", "filesize": 3400000, "url": "https://media.example/140"},
        {"format_id": "18", "ext": "mp4", "acodec": "mp4a.40.2", "vcodec": "avc1",
         "height": 360, "filesize_approx": 9000000, "url": "https://media.example/18"},
        {"format_id": "137", "ext": "mp4", "acodec": "none", "vcodec": "avc1",
         "format_note": "1080p", "url": "https://media.example/137"},
    ],
}


# ---------------------------------------------------------------------------
# Fake fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def scripted_attempt() -> type[ScriptedAttempt]:
    return ScriptedAttempt


@pytest.fixture
def fake_process() -> type[FakeProcess]:
    return FakeProcess


@pytest.fixture
def fake_spawner() -> type[FakeSpawner]:
    return FakeSpawner


@pytest.fixture
def sample_info() -> dict:
    """A raw metadata document as the extraction tool prints it."""
    return copy.deepcopy(_SAMPLE_INFO)
