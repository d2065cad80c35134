"""Engine for remote speech synthesis services.

An ``AITTSService`` turns text into encoded audio. ``AITTSEngine`` adapts one service to the
engine contract: it checks the voice, consults the audio cache, and plays the result.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from core.cache.audio_cache import AudioCache
from core.tts.audio_playback_manager import AudioPlaybackManager
from core.tts.interface import (
    Interface,
    TTSAuthenticationError,
    TTSInvalidResponseError,
    TTSNetworkError,
    TTSQuotaExceededError,
    TTSServerError,
    TTSVoiceNotSupportedError,
)
from handlers.async_comm import AsyncCommInvalidContentTypeError, AsyncCommTimeoutError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.tts.interface import TTSExceptionError
    from handlers.async_comm import AsyncCommError
    from models.config_models import Configuration
    from models.voice_models import Voice

__all__: list[str] = [
    "AITTSEngine",
    "AITTSService",
    "ensure_audio",
    "error_for_status",
    "translate_comm_error",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def error_for_status(status: int, service: str) -> TTSExceptionError:
    """Map an HTTP error status to the engine error taxonomy."""
    if status in (401, 403):
        return TTSAuthenticationError(f"{service}: authentication failed (status={status})")
    if status == 429:
        return TTSQuotaExceededError(f"{service}: quota exceeded")
    return TTSServerError(status, f"{service}: server error (status={status})")


def translate_comm_error(err: AsyncCommError, service: str) -> TTSExceptionError:
    """Map an ``AsyncHttp`` failure to the engine error taxonomy."""
    if isinstance(err, AsyncCommTimeoutError):
        return TTSNetworkError(f"{service}: {err}")
    if isinstance(err, AsyncCommInvalidContentTypeError):
        return TTSInvalidResponseError(f"{service}: unexpected content type '{err.content_type}'")
    if err.status is None:
        return TTSNetworkError(f"{service}: {err}")
    return error_for_status(err.status, service)


def ensure_audio(result: Any, service: str) -> bytes:
    """Return the response body as audio bytes.

    Raises:
        TTSInvalidResponseError: If the body is empty or was decoded as something else.
    """
    if not isinstance(result, (bytes, bytearray)) or not result:
        msg = f"{service}: response contains no audio"
        raise TTSInvalidResponseError(msg)
    return bytes(result)


class AITTSService(ABC):
    """A remote service that synthesizes encoded audio."""

    @property
    @abstractmethod
    def service_id(self) -> str:
        """Short identifier, used as the engine name."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable service name."""

    @property
    @abstractmethod
    def supported_voices(self) -> list[Voice]: ...

    def is_voice_supported(self, voice: Voice) -> bool:
        return any(supported.id == voice.id for supported in self.supported_voices)

    @abstractmethod
    async def synthesize(self, text: str, voice: Voice, configuration: Configuration) -> bytes:
        """Synthesize one utterance.

        Returns:
            bytes: Encoded audio in a container soundfile can decode.

        Raises:
            TTSExceptionError: If the service failed; transport errors are already translated.
        """

    async def close(self) -> None:
        """Release connections held by the service."""


class AITTSEngine(Interface):
    """Speaks through a remote synthesis service.

    Audio is cached by text, voice and prosody, so repeating a sentence does not call the service
    again. Playback supports pause and resume.
    """

    def __init__(
        self,
        service: AITTSService,
        *,
        cache: AudioCache | None = None,
        player: AudioPlaybackManager | None = None,
    ) -> None:
        super().__init__()
        logger.debug("%s initializing for '%s'", self.__class__.__name__, service.name)
        self.service: AITTSService = service
        self.cache: AudioCache = cache if cache is not None else AudioCache()
        self.player: AudioPlaybackManager = player if player is not None else AudioPlaybackManager()

    @property
    def engine_name(self) -> str:
        return self.service.service_id

    def available_voices(self) -> list[Voice]:
        try:
            return list(self.service.supported_voices)
        except Exception as err:  # noqa: BLE001
            logger.warning("'%s' voices unavailable: %s", self.service.name, err)
            return []

    async def fetch_audio(self, text: str, voice: Voice) -> bytes:
        """Return synthesized audio for the current configuration, from the cache when possible.

        Raises:
            TTSVoiceNotSupportedError: If the voice does not belong to the service.
            TTSExceptionError: If the service failed.
        """
        if not self.service.is_voice_supported(voice):
            msg = f"Voice '{voice.id}' is not supported by {self.service.name}"
            raise TTSVoiceNotSupportedError(msg)

        configuration: Configuration = self.configuration
        key: str = AudioCache.generate_cache_key(text, voice, configuration)
        audio: bytes | None = self.cache.get(key)
        if audio is not None:
            return audio

        audio = ensure_audio(await self.service.synthesize(text, voice, configuration), self.service.name)
        self.cache.put(key, audio)
        return audio

    async def speech_synthesis(self, text: str, voice: Voice) -> None:
        audio: bytes = await self.fetch_audio(text, voice)
        await self.player.play(audio, volume=self.configuration.volume, progress=self.report_progress)

    @property
    def is_paused(self) -> bool:
        return self.player.is_paused

    def pause(self) -> None:
        self.player.pause()

    def resume(self) -> None:
        self.player.resume()

    def _halt_output(self) -> None:
        self.player.stop()

    async def close(self) -> None:
        await super().close()
        await self.service.close()
        self.player.release_pyaudio()
