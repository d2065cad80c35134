from __future__ import annotations

import asyncio
from io import BytesIO
from typing import TYPE_CHECKING, ClassVar, Final

from gtts import gTTS, gTTSError
from gtts.lang import tts_langs

from core.tts.engines.ai_engine import AITTSService, error_for_status
from core.tts.interface import TTSInvalidResponseError, TTSNetworkError
from models.voice_models import LanguageTag, Voice, VoiceQuality, VoiceSource
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.tts.interface import TTSExceptionError
    from models.config_models import Configuration

__all__: list[str] = ["GoogleText2Speech"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# Rates below this are read with gTTS' slow mode
SLOW_RATE_THRESHOLD: Final[float] = 0.35


class GoogleText2Speech(AITTSService):
    """Performs speech synthesis using gTTS.

    gTTS offers one voice per language and answers with an MP3 stream. Rate only selects between
    normal and slow reading; pitch is not supported.
    """

    VOICE_PREFIX: ClassVar[str] = "gtts-"

    def __init__(self, *, tld: str = "com", timeout: float = 30.0) -> None:
        logger.debug("%s initializing", self.__class__.__name__)
        self.tld: str = tld
        self.timeout: float = timeout
        self._voices: dict[str, tuple[Voice, str]] | None = None

    @property
    def service_id(self) -> str:
        return "gtts"

    @property
    def name(self) -> str:
        return "Google Text-to-Speech"

    def _load_voices(self) -> dict[str, tuple[Voice, str]]:
        if self._voices is None:
            voices: dict[str, tuple[Voice, str]] = {}
            for code, language_name in tts_langs().items():
                voice = Voice(
                    id=f"{self.VOICE_PREFIX}{code}",
                    name=f"Google {language_name}",
                    language=LanguageTag(code),
                    source=VoiceSource.REMOTE,
                    quality=VoiceQuality.STANDARD,
                )
                voices[voice.id] = (voice, code)
            self._voices = voices
        return self._voices

    @property
    def supported_voices(self) -> list[Voice]:
        return [voice for voice, _ in self._load_voices().values()]

    def is_voice_supported(self, voice: Voice) -> bool:
        return voice.id in self._load_voices()

    def _translate_error(self, err: gTTSError) -> TTSExceptionError:
        rsp = getattr(err, "rsp", None)
        status: int | None = getattr(rsp, "status_code", None)
        if status is None:
            return TTSNetworkError(f"{self.name}: {err}")
        return error_for_status(status, self.name)

    async def synthesize(self, text: str, voice: Voice, configuration: Configuration) -> bytes:
        _, code = self._load_voices()[voice.id]
        mp3_data = BytesIO()
        try:
            gtts: gTTS = gTTS(
                text,
                tld=self.tld,
                lang=code,
                slow=configuration.rate < SLOW_RATE_THRESHOLD,
                timeout=self.timeout,
            )
            await asyncio.to_thread(gtts.write_to_fp, mp3_data)
        except gTTSError as err:
            raise self._translate_error(err) from err
        except (AssertionError, ValueError) as err:
            # gTTS asserts on text that contains nothing to read
            msg = f"{self.name}: {err}"
            raise TTSInvalidResponseError(msg) from err

        return mp3_data.getvalue()
