"""Output schemas for normalized video metadata.

All fields except the format flags are optional so that partially populated
documents from the extraction tool still validate. Missing values are None
rather than validation failures.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class MediaFormat(BaseModel):
    """One encoded variant of a source."""

    itag: str
    quality: str | None = None
    ext: str | None = None
    container: str | None = None
    has_audio: bool = Field(default=False, serialization_alias="hasAudio")
    has_video: bool = Field(default=False, serialization_alias="hasVideo")
    filesize: int = 0  # Exact size, else approximate, else 0
    direct_url: str | None = None  # Time-limited upstream media URL


class VideoMetadata(BaseModel):
    """Normalized metadata document served to callers and cached."""

    title: str | None = None
    duration: str | float | None = None  # Formatted string preferred, else seconds
    thumbnail: str | None = None
    channel: str | None = None
    views: int | None = None
    formats: list[MediaFormat] = Field(default_factory=list)
