"""On-device speech engine built on pyttsx3.

The pyttsx3 driver is not thread safe, so every driver call runs on one dedicated worker thread.
The utterance is rendered to a temporary WAV file there and then played through
``AudioPlaybackManager``, which adds pause, resume and progress that the driver lacks.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

import pyttsx3

from core.tts.audio_playback_manager import AudioPlaybackManager
from core.tts.interface import Interface, TTSAudioConversionError, TTSVoiceNotSupportedError
from models.voice_models import Gender, LanguageTag, Voice, VoiceQuality, VoiceSource
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = ["LocalEngine"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# Rate 0.5 is 200 words per minute
WPM_PER_RATE: Final[int] = 400
MIN_WPM: Final[int] = 50
UNDETERMINED_LANGUAGE: Final[str] = "und"
# Keeps the driver's current voice
DEFAULT_VOICE_ID: Final[str] = "default"


def _parse_language(languages: Any) -> str:
    """First usable language of a driver voice.

    espeak reports languages as bytes prefixed with a priority byte, e.g. ``b"\\x05en-us"``.
    """
    for language in languages or ():
        if isinstance(language, bytes):
            language = language.decode("utf-8", errors="ignore")
        code: str = str(language).lstrip("\x00\x01\x02\x03\x04\x05\x06\x07\x08\t\n\x0b\x0c\r").strip()
        if code:
            return code
    return UNDETERMINED_LANGUAGE


def _parse_gender(gender: Any) -> Gender:
    value: str = str(gender or "").lower()
    if "female" in value:
        return Gender.FEMALE
    if "male" in value:
        return Gender.MALE
    return Gender.UNSPECIFIED


class LocalEngine(Interface):
    """Speaks with the voices installed on this machine."""

    def __init__(self, *, player: AudioPlaybackManager | None = None, temp_dir: str | Path | None = None) -> None:
        super().__init__()
        logger.debug("%s initializing", self.__class__.__name__)
        self.player: AudioPlaybackManager = player if player is not None else AudioPlaybackManager()
        self.temp_dir: Path | None = Path(temp_dir) if temp_dir is not None else None
        self._executor: ThreadPoolExecutor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pyttsx3")
        self._driver: pyttsx3.Engine | None = None
        self._voices: list[Voice] | None = None

    @property
    def engine_name(self) -> str:
        return "local"

    def _get_driver(self) -> pyttsx3.Engine:
        # Worker thread only
        if self._driver is None:
            self._driver = pyttsx3.init()
            logger.info("pyttsx3 driver initialized")
        return self._driver

    def _enumerate_voices(self) -> list[Voice]:
        voices: list[Voice] = []
        for driver_voice in self._get_driver().getProperty("voices") or ():
            voices.append(
                Voice(
                    id=str(driver_voice.id),
                    name=str(driver_voice.name or driver_voice.id),
                    language=LanguageTag(_parse_language(getattr(driver_voice, "languages", None))),
                    gender=_parse_gender(getattr(driver_voice, "gender", None)),
                    source=VoiceSource.LOCAL,
                    quality=VoiceQuality.STANDARD,
                )
            )
        return voices

    def available_voices(self) -> list[Voice]:
        if self._voices is None:
            try:
                self._voices = self._executor.submit(self._enumerate_voices).result()
            except Exception as err:  # noqa: BLE001
                logger.warning("Local voices unavailable: %s", err)
                return []
        return list(self._voices)

    def _render(self, text: str, voice_id: str, file_path: Path) -> None:
        # Worker thread only
        driver: pyttsx3.Engine = self._get_driver()
        driver.setProperty("rate", max(MIN_WPM, int(self.configuration.rate * WPM_PER_RATE)))
        driver.setProperty("volume", self.configuration.volume)
        if voice_id != DEFAULT_VOICE_ID:
            driver.setProperty("voice", voice_id)
        driver.save_to_file(text, str(file_path))
        driver.runAndWait()

    async def speech_synthesis(self, text: str, voice: Voice) -> None:
        if voice.id != DEFAULT_VOICE_ID and all(known.id != voice.id for known in self.available_voices()):
            msg = f"Voice '{voice.id}' is not installed on this machine"
            raise TTSVoiceNotSupportedError(msg)

        file_path: Path = FileUtils.create_temp_filename(self.temp_dir, suffix="wav")
        loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
        try:
            try:
                await loop.run_in_executor(self._executor, self._render, text, voice.id, file_path)
                audio: bytes = file_path.read_bytes()
            except (OSError, RuntimeError, KeyError, ValueError) as err:
                msg = f"Local synthesis failed: {err}"
                raise TTSAudioConversionError(msg) from err
        finally:
            file_path.unlink(missing_ok=True)

        # Volume is applied by the driver
        await self.player.play(audio, progress=self.report_progress)

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
        self.player.release_pyaudio()
        self._executor.shutdown(wait=False, cancel_futures=True)
