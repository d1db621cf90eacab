"""Normalization of extraction tool output.

Transforms the raw metadata document into ``VideoMetadata``:
- quality label from the format note, else "<height>p"
- audio/video presence from the codec fields ("none" means absent)
- size from the exact value, else the approximate one, else 0
- formats carrying video sorted ahead of audio-only ones (stable)

Also holds the small text helpers used around the edges: first-line
extraction for direct links and download filename sanitizing.
"""

from __future__ import annotations

import re
from typing import Any

from vidgate.models.schemas import MediaFormat, VideoMetadata

# Characters that are unsafe in a download filename
_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f\x7f]')


def normalize_whitespace(text: str) -> str:
    """Collapse multiple whitespace characters into a single space and trim."""
    return re.sub(r"\s+", " ", text).strip()


def _quality_label(raw: dict[str, Any]) -> str | None:
    note = raw.get("format_note")
    if note:
        return str(note)
    height = raw.get("height")
    return f"{height}p" if height else None


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def normalize_format(raw: dict[str, Any]) -> MediaFormat:
    """Map one raw format entry onto ``MediaFormat``."""
    return MediaFormat(
        itag=str(raw.get("format_id", "")),
        quality=_quality_label(raw),
        ext=raw.get("ext"),
        container=raw.get("ext"),
        has_audio=raw.get("acodec", "none") != "none",
        has_video=raw.get("vcodec", "none") != "none",
        filesize=_as_int(raw.get("filesize") or raw.get("filesize_approx") or 0),
        direct_url=raw.get("url"),
    )


def normalize_metadata(info: dict[str, Any]) -> VideoMetadata:
    """Build ``VideoMetadata`` from the tool's structured document."""
    formats = [
        normalize_format(raw)
        for raw in info.get("formats") or []
        if isinstance(raw, dict) and raw.get("format_id") is not None
    ]
    # sorted() is stable: video-bearing formats first, original order kept
    formats = sorted(formats, key=lambda f: not f.has_video)

    views = info.get("view_count")
    return VideoMetadata(
        title=info.get("title"),
        duration=info.get("duration_string") or info.get("duration"),
        thumbnail=info.get("thumbnail"),
        channel=info.get("uploader"),
        views=views if isinstance(views, int) else None,
        formats=formats,
    )


def first_line(text: str) -> str:
    """Return the first non-empty line of *text* (direct-link output)."""
    for line in text.splitlines():
        line = line.strip()
        if line:
            return line
    return ""


def sanitize_filename(title: str | None, ext: str, default: str = "video") -> str:
    """Make a safe attachment filename from a display title."""
    stem = normalize_whitespace(_UNSAFE_FILENAME_RE.sub("", title or ""))
    stem = stem.strip(". ")[:100] or default
    ext = re.sub(r"[^A-Za-z0-9]", "", ext) or "bin"
    return f"{stem}.{ext}"
