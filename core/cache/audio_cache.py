"""In-memory cache of synthesized audio.

Remote services are slow and metered, so identical requests (same text, voice and prosody) reuse
the audio of an earlier synthesis. Entries are evicted least recently used first once either the
entry limit or the byte limit is exceeded.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import TYPE_CHECKING, ClassVar

from models.cache_models import AudioCacheEntry, CacheStatistics
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Configuration
    from models.voice_models import Voice

__all__: list[str] = ["AudioCache"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class AudioCache:
    """LRU cache of audio clips keyed by synthesis parameters.

    Attributes:
        MAX_ENTRIES (ClassVar[int]): Default maximum number of clips.
        MAX_BYTES (ClassVar[int]): Default maximum combined size of the clips.
    """

    MAX_ENTRIES: ClassVar[int] = 200
    MAX_BYTES: ClassVar[int] = 100 * 1024 * 1024

    def __init__(self, max_entries: int = MAX_ENTRIES, max_bytes: int = MAX_BYTES) -> None:
        self.max_entries: int = max(0, max_entries)
        self.max_bytes: int = max(0, max_bytes)
        self._entries: OrderedDict[str, AudioCacheEntry] = OrderedDict()
        self._total_bytes: int = 0
        self._hits: int = 0
        self._misses: int = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @staticmethod
    def generate_cache_key(text: str, voice: Voice, configuration: Configuration) -> str:
        """Build the cache key for a synthesis request.

        Only the parameters that change the rendered audio take part; the pause between
        sentences does not.
        """
        return StringUtils.generate_hash_key(
            StringUtils.normalize_text(text),
            voice.id,
            f"{configuration.rate:.3f}",
            f"{configuration.pitch:.3f}",
            f"{configuration.volume:.3f}",
        )

    def get(self, key: str) -> bytes | None:
        entry: AudioCacheEntry | None = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        self._entries.move_to_end(key)
        entry.hit_count += 1
        self._hits += 1
        logger.debug("Audio cache hit: %s (hits=%d)", key[:12], entry.hit_count)
        return entry.data

    def put(self, key: str, data: bytes) -> None:
        """Store a clip. A clip larger than the byte limit is not cached."""
        if len(data) > self.max_bytes or self.max_entries == 0:
            logger.debug("Audio clip of %d bytes not cached", len(data))
            return
        previous: AudioCacheEntry | None = self._entries.pop(key, None)
        if previous is not None:
            self._total_bytes -= previous.size
        self._entries[key] = AudioCacheEntry(cache_key=key, data=bytes(data))
        self._total_bytes += len(data)
        self._evict()

    def _evict(self) -> None:
        while self._entries and (len(self._entries) > self.max_entries or self._total_bytes > self.max_bytes):
            key, entry = self._entries.popitem(last=False)
            self._total_bytes -= entry.size
            logger.debug("Audio cache evicted: %s", key[:12])

    def clear(self) -> None:
        self._entries.clear()
        self._total_bytes = 0
        logger.info("Audio cache cleared")

    def statistics(self) -> CacheStatistics:
        return CacheStatistics(
            total_entries=len(self._entries),
            total_bytes=self._total_bytes,
            hits=self._hits,
            misses=self._misses,
        )
