"""Metadata cache."""

from vidgate.cache.metadata_cache import CacheEntry, MetadataCache

__all__ = ["CacheEntry", "MetadataCache"]
