"""Streaming passthrough of media bytes."""

from vidgate.streaming.pipe import MediaStream, StreamingPipe, format_selector

__all__ = ["MediaStream", "StreamingPipe", "format_selector"]
