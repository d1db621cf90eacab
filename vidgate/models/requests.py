"""Pydantic request models for the media endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class VideoInfoRequest(BaseModel):
    """Body of POST /api/video-info."""

    url: str = Field(..., min_length=1, max_length=2048)
