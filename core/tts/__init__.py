"""Text-to-speech playback orchestration.

This package provides the engine contract and its error taxonomy, the engine registry, the voice
catalog, the event bus and the ``PlaybackSession`` that ties them together. Concrete engines live
in ``core.tts.engines``; ``core.tts.factory`` wires everything from the application settings.
"""

from core.tts.engine_registry import EngineRegistry
from core.tts.event_bus import EventBus, EventStream
from core.tts.interface import (
    Interface,
    TTSAudioConversionError,
    TTSAuthenticationError,
    TTSErrorKind,
    TTSExceptionError,
    TTSInvalidResponseError,
    TTSNetworkError,
    TTSQuotaExceededError,
    TTSServerError,
    TTSVoiceNotSupportedError,
)
from core.tts.session import DEFAULT_VOICE, PlaybackSession
from core.tts.voice_catalog import VoiceCatalog

__all__: list[str] = [
    "DEFAULT_VOICE",
    "EngineRegistry",
    "EventBus",
    "EventStream",
    "Interface",
    "PlaybackSession",
    "TTSAudioConversionError",
    "TTSAuthenticationError",
    "TTSErrorKind",
    "TTSExceptionError",
    "TTSInvalidResponseError",
    "TTSNetworkError",
    "TTSQuotaExceededError",
    "TTSServerError",
    "TTSVoiceNotSupportedError",
    "VoiceCatalog",
]
