"""Models for the synthesized audio cache."""

from __future__ import annotations

from dataclasses import dataclass

__all__: list[str] = ["AudioCacheEntry", "CacheStatistics"]


@dataclass
class AudioCacheEntry:
    """Cached audio for one synthesis request.

    Attributes:
        cache_key (str): Hash of the text, voice and prosody the audio was synthesized with.
        data (bytes): Encoded audio as returned by the service.
        hit_count (int): Number of cache hits.
    """

    cache_key: str
    data: bytes
    hit_count: int = 0

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class CacheStatistics:
    """Cache usage statistics.

    Attributes:
        total_entries (int): Number of cached clips.
        total_bytes (int): Combined size of the cached clips.
        hits (int): Lookups answered from the cache.
        misses (int): Lookups that found nothing.
    """

    total_entries: int = 0
    total_bytes: int = 0
    hits: int = 0
    misses: int = 0

    @property
    def hit_rate(self) -> float:
        requests: int = self.hits + self.misses
        return self.hits / requests if requests else 0.0
