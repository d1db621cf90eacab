"""Health and metrics endpoints.

These endpoints do not consume the per-client API budget.
- GET /api/health — liveness
- GET /metrics — proxy pool, gate, and cache statistics
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from vidgate.models.responses import ApiResponse


def create_health_router(
    *,
    registry: Any = None,
    gate: Any = None,
    cache: Any = None,
) -> APIRouter:
    """Factory that creates the health router with injected dependencies."""

    health_router = APIRouter(tags=["health"])

    @health_router.get("/api/health")
    async def health() -> dict:
        """Liveness probe."""
        return {"status": "ok"}

    @health_router.get("/metrics")
    async def metrics() -> dict:
        """Operational metrics endpoint."""
        return ApiResponse(
            success=True,
            data={
                "proxy_pool": registry.get_stats() if registry else {},
                "gate": gate.get_stats() if gate else {},
                "cache": cache.get_stats() if cache else {},
            },
        ).model_dump()

    return health_router
