from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Final

from core.tts.engines.ai_engine import AITTSService, ensure_audio, translate_comm_error
from core.tts.interface import TTSAuthenticationError
from handlers.async_comm import AsyncCommError, AsyncHttp
from models.voice_models import Gender, LanguageTag, Voice, VoiceQuality, VoiceSource
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Configuration

__all__: list[str] = ["OpenAITTSService"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

MIN_SPEED: Final[float] = 0.25
MAX_SPEED: Final[float] = 4.0


def _voice(voice_id: str, gender: Gender) -> Voice:
    return Voice(
        id=voice_id,
        name=voice_id.capitalize(),
        language=LanguageTag("en-US"),
        gender=gender,
        source=VoiceSource.REMOTE,
        quality=VoiceQuality.PREMIUM,
    )


class OpenAITTSService(AITTSService):
    """OpenAI speech endpoint.

    Attributes:
        API_URL (ClassVar[str]): Speech synthesis endpoint.
        VOICES (ClassVar[tuple[Voice, ...]]): Voices offered by the endpoint.
    """

    API_URL: ClassVar[str] = "https://api.openai.com/v1/audio/speech"
    VOICES: ClassVar[tuple[Voice, ...]] = (
        _voice("alloy", Gender.NEUTRAL),
        _voice("echo", Gender.MALE),
        _voice("fable", Gender.NEUTRAL),
        _voice("onyx", Gender.MALE),
        _voice("nova", Gender.FEMALE),
        _voice("shimmer", Gender.FEMALE),
    )

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "tts-1",
        timeout: float = 30.0,
        http: AsyncHttp | None = None,
    ) -> None:
        self.api_key: str = api_key
        self.model: str = model
        self.timeout: float = timeout
        self.http: AsyncHttp = http if http is not None else AsyncHttp()

    @property
    def service_id(self) -> str:
        return "openai"

    @property
    def name(self) -> str:
        return "OpenAI TTS"

    @property
    def supported_voices(self) -> list[Voice]:
        return list(self.VOICES)

    @staticmethod
    def speed_for(rate: float) -> float:
        """Playback rate 0.5 is normal speed 1.0 on the OpenAI scale."""
        return max(MIN_SPEED, min(MAX_SPEED, rate * 2))

    def build_payload(self, text: str, voice: Voice, configuration: Configuration) -> dict[str, Any]:
        return {
            "model": self.model,
            "input": text,
            "voice": voice.id,
            "speed": self.speed_for(configuration.rate),
            "response_format": "wav",
        }

    async def synthesize(self, text: str, voice: Voice, configuration: Configuration) -> bytes:
        if not self.api_key:
            msg = f"{self.name}: API key is not configured"
            raise TTSAuthenticationError(msg)

        headers: dict[str, str] = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            result: Any = await self.http.post(
                url=self.API_URL,
                headers=headers,
                json_data=self.build_payload(text, voice, configuration),
                total_timeout=self.timeout,
            )
        except AsyncCommError as err:
            raise translate_comm_error(err, self.name) from err
        logger.debug("%s returned %d bytes", self.name, len(result) if isinstance(result, bytes) else 0)
        return ensure_audio(result, self.name)

    async def close(self) -> None:
        await self.http.close()
