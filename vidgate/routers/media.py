"""Media endpoints.

- POST /api/video-info — normalized metadata for a source URL
- GET  /api/get-link   — fresh direct media URL for one format
- GET  /api/stream     — media bytes piped from the extraction tool
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from vidgate.middleware.error_handler import RateLimitedError
from vidgate.models.requests import VideoInfoRequest
from vidgate.models.responses import ApiResponse

logger = logging.getLogger(__name__)


def client_identity(request: Request, trust_forwarded_for: bool = True) -> str:
    """Requester identity: the X-Forwarded-For entry added by our one proxy hop.

    Entries to the left of it come from the client and are not trusted.
    """
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            nearest = forwarded.split(",")[-1].strip()
            if nearest:
                return nearest
    return request.client.host if request.client else "unknown"


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback and an RFC 5987 UTF-8 name."""
    ascii_name = filename.encode("ascii", "ignore").decode("ascii") or "video"
    ascii_name = ascii_name.replace('"', "")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


def create_media_router(
    *,
    orchestrator: Any,
    rate_limiter: Any = None,
    trust_forwarded_for: bool = True,
) -> APIRouter:
    """Factory that creates the media router with injected dependencies.

    Parameters
    ----------
    orchestrator:
        MediaOrchestrator serving the three media operations.
    rate_limiter:
        Optional ClientRateLimiter; when set every media call spends a token.
    trust_forwarded_for:
        Whether the X-Forwarded-For entry added by the reverse proxy
        identifies the client.
    """
    media_router = APIRouter(prefix="/api", tags=["media"])

    def _client_id(request: Request) -> str:
        client_id = client_identity(request, trust_forwarded_for)
        if rate_limiter is not None and not rate_limiter.try_acquire(client_id):
            raise RateLimitedError(retry_after=rate_limiter.retry_after(client_id) or None)
        return client_id

    @media_router.post("/video-info")
    async def video_info(
        body: VideoInfoRequest, client_id: str = Depends(_client_id)
    ) -> dict:
        """Fetch (or serve cached) metadata for a source."""
        metadata = await orchestrator.fetch_metadata(client_id, body.url)
        return ApiResponse(
            success=True,
            data=metadata.model_dump(by_alias=True),
        ).model_dump()

    @media_router.get("/get-link")
    async def get_link(
        url: str = Query(..., min_length=1),
        itag: str = Query(..., min_length=1),
        client_id: str = Depends(_client_id),
    ) -> dict:
        """Resolve the direct upstream URL of one format."""
        direct_url = await orchestrator.resolve_direct_link(client_id, url, itag)
        return ApiResponse(success=True, data={"direct_url": direct_url}).model_dump()

    @media_router.get("/stream")
    async def stream(
        url: str = Query(..., min_length=1),
        itag: str = Query(..., min_length=1),
        title: str | None = Query(default=None, max_length=300),
        has_audio: bool = False,
        ext: str = Query(default="mp4", max_length=8),
        client_id: str = Depends(_client_id),
    ) -> StreamingResponse:
        """Pipe the selected format to the client; disconnect stops the tool."""
        media = await orchestrator.open_media_stream(
            url, itag, title, has_audio=has_audio, ext=ext
        )
        logger.info(
            "Streaming to client",
            extra={"client_id": client_id, "source_url": url},
        )
        return StreamingResponse(
            media,
            media_type="application/octet-stream",
            headers={"Content-Disposition": content_disposition(media.filename or "video.bin")},
            background=BackgroundTask(media.aclose),
        )

    return media_router
