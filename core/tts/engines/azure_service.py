from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar
from xml.sax.saxutils import escape, quoteattr

from core.tts.engines.ai_engine import AITTSService, ensure_audio, translate_comm_error
from core.tts.interface import TTSAuthenticationError
from handlers.async_comm import AsyncCommError, AsyncHttp
from models.voice_models import Gender, LanguageTag, Voice, VoiceQuality, VoiceSource
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Configuration

__all__: list[str] = ["AzureTTSService"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def _voice(voice_id: str, name: str, language: str, gender: Gender) -> Voice:
    return Voice(
        id=voice_id,
        name=name,
        language=LanguageTag(language),
        gender=gender,
        source=VoiceSource.REMOTE,
        quality=VoiceQuality.PREMIUM,
    )


class AzureTTSService(AITTSService):
    """Azure Cognitive Services speech endpoint.

    Requests are SSML documents; the answer is 24 kHz 16-bit mono RIFF PCM.

    Attributes:
        ENDPOINT (ClassVar[str]): Endpoint template, formatted with the region.
        OUTPUT_FORMAT (ClassVar[str]): Requested audio format.
        VOICES (ClassVar[tuple[Voice, ...]]): Neural voices offered by default.
    """

    ENDPOINT: ClassVar[str] = "https://{region}.tts.speech.microsoft.com/cognitiveservices/v1"
    OUTPUT_FORMAT: ClassVar[str] = "riff-24khz-16bit-mono-pcm"
    VOICES: ClassVar[tuple[Voice, ...]] = (
        _voice("en-US-AriaNeural", "Aria", "en-US", Gender.FEMALE),
        _voice("en-US-DavisNeural", "Davis", "en-US", Gender.MALE),
        _voice("zh-CN-XiaoxiaoNeural", "Xiaoxiao", "zh-CN", Gender.FEMALE),
        _voice("zh-CN-YunyeNeural", "Yunye", "zh-CN", Gender.MALE),
    )

    def __init__(
        self,
        subscription_key: str,
        region: str = "eastus",
        *,
        timeout: float = 30.0,
        http: AsyncHttp | None = None,
    ) -> None:
        self.subscription_key: str = subscription_key
        self.region: str = region
        self.timeout: float = timeout
        self.http: AsyncHttp = http if http is not None else AsyncHttp()

    @property
    def service_id(self) -> str:
        return "azure"

    @property
    def name(self) -> str:
        return "Azure Cognitive Services TTS"

    @property
    def supported_voices(self) -> list[Voice]:
        return list(self.VOICES)

    @property
    def endpoint(self) -> str:
        return self.ENDPOINT.format(region=self.region)

    @staticmethod
    def build_ssml(text: str, voice: Voice, configuration: Configuration) -> str:
        """Wrap the text in SSML with the voice and prosody of the configuration.

        Rate 0.5 and pitch 1.0 are the neutral values; deviations become signed percentages.
        """
        rate: int = int((configuration.rate - 0.5) * 100)
        pitch: int = int((configuration.pitch - 1.0) * 100)
        return (
            f"<speak version='1.0' xmlns='http://www.w3.org/2001/10/synthesis' xml:lang={quoteattr(voice.language)}>"
            f"<voice xml:lang={quoteattr(voice.language)} name={quoteattr(voice.id)}>"
            f"<prosody rate='{rate:+d}%' pitch='{pitch:+d}%'>{escape(text)}</prosody>"
            "</voice></speak>"
        )

    async def synthesize(self, text: str, voice: Voice, configuration: Configuration) -> bytes:
        if not self.subscription_key:
            msg = f"{self.name}: subscription key is not configured"
            raise TTSAuthenticationError(msg)

        headers: dict[str, str] = {
            "Ocp-Apim-Subscription-Key": self.subscription_key,
            "Content-Type": "application/ssml+xml",
            "X-Microsoft-OutputFormat": self.OUTPUT_FORMAT,
            "User-Agent": "speechqueue",
        }
        logger.debug("%s request: region=%s voice=%s", self.name, self.region, voice.id)
        try:
            result: Any = await self.http.post(
                url=self.endpoint,
                headers=headers,
                data=self.build_ssml(text, voice, configuration).encode("utf-8"),
                total_timeout=self.timeout,
            )
        except AsyncCommError as err:
            raise translate_comm_error(err, self.name) from err
        return ensure_audio(result, self.name)

    async def close(self) -> None:
        await self.http.close()
