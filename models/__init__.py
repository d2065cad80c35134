"""Data models for speechqueue.

This package contains dataclass definitions for voices, sentences, the playback configuration,
playback events, the INI application settings, and regular expression patterns used throughout
the application.
"""

from __future__ import annotations

from models.cache_models import AudioCacheEntry, CacheStatistics
from models.config_models import Config, Configuration, PlaybackHistoryItem
from models.event_models import TTSEvent, TTSEventType
from models.re_models import (
    DECIMAL_PATTERN,
    SENTENCE_PATTERN,
    URL_PATTERN,
)
from models.voice_models import Gender, LanguageTag, Sentence, Voice, VoiceQuality, VoiceSource

__all__: list[str] = [
    "DECIMAL_PATTERN",
    "SENTENCE_PATTERN",
    "URL_PATTERN",
    "AudioCacheEntry",
    "CacheStatistics",
    "Config",
    "Configuration",
    "Gender",
    "LanguageTag",
    "PlaybackHistoryItem",
    "Sentence",
    "TTSEvent",
    "TTSEventType",
    "Voice",
    "VoiceQuality",
    "VoiceSource",
]
