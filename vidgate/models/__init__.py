"""Public models for the gateway service."""

from vidgate.models.normalizer import (
    first_line,
    normalize_format,
    normalize_metadata,
    sanitize_filename,
)
from vidgate.models.requests import VideoInfoRequest
from vidgate.models.responses import ApiResponse
from vidgate.models.schemas import MediaFormat, VideoMetadata

__all__ = [
    "ApiResponse",
    "MediaFormat",
    "VideoInfoRequest",
    "VideoMetadata",
    "first_line",
    "normalize_format",
    "normalize_metadata",
    "sanitize_filename",
]
