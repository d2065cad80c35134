from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

from models.config_models import Configuration
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from models.voice_models import Voice


__all__: list[str] = [
    "Interface",
    "ProgressCallback",
    "TTSAudioConversionError",
    "TTSAuthenticationError",
    "TTSErrorKind",
    "TTSExceptionError",
    "TTSInvalidResponseError",
    "TTSNetworkError",
    "TTSQuotaExceededError",
    "TTSServerError",
    "TTSVoiceNotSupportedError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

type ProgressCallback = Callable[[float], None]


class TTSErrorKind(StrEnum):
    """Closed set of failure kinds an engine may report."""

    NETWORK_ERROR = "network_error"
    AUTHENTICATION_FAILED = "authentication_failed"
    INVALID_RESPONSE = "invalid_response"
    VOICE_NOT_SUPPORTED = "voice_not_supported"
    QUOTA_EXCEEDED = "quota_exceeded"
    SERVER_ERROR = "server_error"
    AUDIO_CONVERSION_FAILED = "audio_conversion_failed"


class TTSExceptionError(Exception):
    """Base class for TTS engine failures.

    Engines never leak transport or decoder exceptions; they translate them into one of the
    subclasses below, each tagged with its ``TTSErrorKind``.
    """

    kind: ClassVar[TTSErrorKind]


class TTSNetworkError(TTSExceptionError):
    """The remote service could not be reached or did not answer in time."""

    kind = TTSErrorKind.NETWORK_ERROR


class TTSAuthenticationError(TTSExceptionError):
    """The remote service rejected the credentials."""

    kind = TTSErrorKind.AUTHENTICATION_FAILED


class TTSInvalidResponseError(TTSExceptionError):
    """The remote service answered with something that is not audio."""

    kind = TTSErrorKind.INVALID_RESPONSE


class TTSVoiceNotSupportedError(TTSExceptionError):
    """The requested voice does not belong to the engine."""

    kind = TTSErrorKind.VOICE_NOT_SUPPORTED


class TTSQuotaExceededError(TTSExceptionError):
    """The remote service refused the request because of rate or usage limits."""

    kind = TTSErrorKind.QUOTA_EXCEEDED


class TTSServerError(TTSExceptionError):
    """The remote service answered with an error status.

    Attributes:
        status_code (int): HTTP status code of the response.
    """

    kind = TTSErrorKind.SERVER_ERROR

    def __init__(self, status_code: int, msg: str = "") -> None:
        self.status_code: int = status_code
        super().__init__(msg or f"Server error: status={status_code}")


class TTSAudioConversionError(TTSExceptionError):
    """Synthesized audio could not be rendered, decoded or played."""

    kind = TTSErrorKind.AUDIO_CONVERSION_FAILED


class Interface(ABC):
    """Capability contract every speech engine implements.

    ``speak`` runs ``speech_synthesis`` as a task owned by the engine, so one instance never has
    two utterances in flight. The call returns when the utterance finished, raises a
    ``TTSExceptionError`` subclass when it failed, and raises ``asyncio.CancelledError`` when
    ``stop`` discarded it. A discarded utterance therefore never reports success.

    Subclasses implement ``engine_name`` and ``speech_synthesis`` and override ``pause``,
    ``resume``, ``is_paused`` and ``_halt_output`` when their backend can do more than stop.
    """

    def __init__(self) -> None:
        self.configuration: Configuration = Configuration()
        self._utterance: asyncio.Task[None] | None = None
        self._progress_callback: ProgressCallback | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    @abstractmethod
    def engine_name(self) -> str:
        """Identifier used to select the engine, e.g. ``"local"`` or ``"openai"``."""

    @abstractmethod
    async def speech_synthesis(self, text: str, voice: Voice) -> None:
        """Synthesize and play one utterance, returning once playback has finished.

        Raises:
            TTSExceptionError: If synthesis or playback failed.
        """

    def available_voices(self) -> list[Voice]:
        """Voices the engine can speak with. Never raises; an unavailable backend has none."""
        return []

    def update_configuration(self, configuration: Configuration) -> None:
        self.configuration = configuration

    def set_progress_callback(self, callback: ProgressCallback | None) -> None:
        """Register the receiver of progress fractions for subsequent utterances."""
        self._progress_callback = callback

    def report_progress(self, progress: float) -> None:
        """Forward a progress fraction to the registered callback.

        Safe to call from worker or audio threads: the callback always runs on the event loop
        that issued ``speak``.
        """
        callback: ProgressCallback | None = self._progress_callback
        if callback is None:
            return

        value: float = max(0.0, min(1.0, float(progress)))
        loop: asyncio.AbstractEventLoop | None = self._loop
        try:
            running: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if loop is None or running is loop:
            callback(value)
            return
        try:
            loop.call_soon_threadsafe(callback, value)
        except RuntimeError as err:
            # event loop already closed
            logger.debug("Progress dropped: %s", err)

    async def speak(self, text: str, voice: Voice) -> None:
        """Speak one utterance.

        Args:
            text (str): Text to speak.
            voice (Voice): Voice to speak with.

        Raises:
            TTSExceptionError: If the engine failed.
            asyncio.CancelledError: If ``stop`` discarded the utterance or the caller was cancelled.
        """
        if self.is_playing:
            logger.warning("'%s' is already speaking; stopping the previous utterance", self.engine_name)
            self.stop()

        self._loop = asyncio.get_running_loop()
        task: asyncio.Task[None] = asyncio.create_task(
            self.speech_synthesis(text, voice), name=f"{self.engine_name}_utterance"
        )
        self._utterance = task
        logger.debug("'%s' speaking with '%s': %s", self.engine_name, voice.id, text)
        try:
            await task
        finally:
            if self._utterance is task:
                self._utterance = None

    @property
    def is_playing(self) -> bool:
        return self._utterance is not None and not self._utterance.done()

    @property
    def is_paused(self) -> bool:
        return False

    def pause(self) -> None:
        """Pause the utterance in flight. No-op for engines that cannot pause."""

    def resume(self) -> None:
        """Resume a paused utterance. No-op for engines that cannot pause."""

    def stop(self) -> None:
        """Terminate the utterance in flight and discard its completion. Always safe to call."""
        task: asyncio.Task[None] | None = self._utterance
        self._utterance = None
        if task is not None and not task.done():
            task.cancel()
            logger.debug("'%s' utterance cancelled", self.engine_name)
        self._halt_output()

    def _halt_output(self) -> None:
        """Silence the audio device right away; the cancelled task finishes asynchronously."""

    async def close(self) -> None:
        """Release backend resources."""
        self.stop()
