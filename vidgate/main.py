"""FastAPI application entry point with lifespan management.

Startup: load settings, configure logging, materialize the cookie file,
build the proxy registry, strategy chain, extraction invoker, request gate,
metadata cache, streaming pipe and orchestrator, start session eviction.
Shutdown: cancel background tasks.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from vidgate.cache.metadata_cache import MetadataCache
from vidgate.config.settings import GatewaySettings
from vidgate.extraction.arguments import ArgumentBuilder
from vidgate.extraction.invoker import ExtractionInvoker
from vidgate.gate.request_gate import RequestGate
from vidgate.logging_config import configure_logging
from vidgate.middleware.error_handler import register_error_handlers
from vidgate.middleware.request_id import RequestIdMiddleware
from vidgate.proxy.registry import ProxyHealthRegistry
from vidgate.resilience.jitter import Jitter
from vidgate.resilience.rate_limiter import ClientRateLimiter
from vidgate.routers.health import create_health_router
from vidgate.routers.media import create_media_router
from vidgate.services.orchestrator import MediaOrchestrator
from vidgate.streaming.pipe import StreamingPipe
from vidgate.strategy.chain import StrategyChain
from vidgate.strategy.profiles import load_strategy_profiles

logger = logging.getLogger(__name__)

# Shared state for the application, populated during lifespan startup
_state: dict = {}


def write_cookies_file(settings: GatewaySettings) -> None:
    """Write configured cookie contents to ``cookies_path``, if any."""
    if not settings.cookies_content:
        return
    try:
        Path(settings.cookies_path).write_text(settings.cookies_content, encoding="utf-8")
        logger.info("Cookies file created from configuration")
    except OSError as exc:
        logger.error("Failed to create cookies file: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown logic."""
    settings = GatewaySettings()

    configure_logging(settings.log_level)
    logger.info("Starting media gateway on port %d", settings.port)

    write_cookies_file(settings)

    jitter = Jitter(settings.min_jitter_ms, settings.max_jitter_ms)

    registry = ProxyHealthRegistry(
        failure_threshold=settings.proxy_failure_threshold,
        ban_seconds=settings.proxy_ban_seconds,
        jitter=jitter,
    )
    await registry.initialize(settings.proxy_pool)

    profiles = load_strategy_profiles(settings.strategies_path)
    chain = StrategyChain(
        profiles,
        registry,
        backoff_seconds=settings.retry_backoff_seconds,
    )

    arguments = ArgumentBuilder(
        settings.extractor_binary,
        geo_bypass_country=settings.geo_bypass_country,
        socket_timeout_seconds=settings.socket_timeout_seconds,
        cookies_path=settings.cookies_path,
    )
    invoker = ExtractionInvoker(arguments=arguments, jitter=jitter)

    gate = RequestGate(cooldown_seconds=settings.duplicate_cooldown_seconds)
    cache = MetadataCache(ttl_seconds=settings.cache_ttl_seconds)
    pipe = StreamingPipe(
        arguments=arguments,
        registry=registry,
        profiles=profiles,
        chunk_size=settings.stream_chunk_size,
        terminate_timeout=settings.stream_terminate_timeout_seconds,
    )

    orchestrator = MediaOrchestrator(
        gate=gate,
        cache=cache,
        chain=chain,
        invoker=invoker,
        pipe=pipe,
        allowed_hosts=settings.allowed_hosts,
    )

    rate_limiter = ClientRateLimiter(
        tokens=settings.api_rate_limit_tokens,
        interval_seconds=settings.api_rate_limit_interval_seconds,
    )

    # Start idle-session eviction loop
    eviction_task = asyncio.create_task(
        gate.eviction_loop(
            settings.session_max_idle_seconds,
            settings.session_eviction_interval_seconds,
            extra_pruners=(rate_limiter.prune,),
        )
    )

    # Mount routers
    app.include_router(create_health_router(registry=registry, gate=gate, cache=cache))
    app.include_router(
        create_media_router(
            orchestrator=orchestrator,
            rate_limiter=rate_limiter,
            trust_forwarded_for=settings.trust_forwarded_for,
        )
    )

    _state.update({
        "settings": settings,
        "registry": registry,
        "gate": gate,
        "cache": cache,
        "orchestrator": orchestrator,
    })

    logger.info("Media gateway started successfully")

    yield

    # --- Shutdown ---
    logger.info("Shutting down media gateway…")

    eviction_task.cancel()
    try:
        await eviction_task
    except asyncio.CancelledError:
        pass

    logger.info("Media gateway shut down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="vidgate",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)

    return app


app = create_app()
