from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from core.tts.engines.openai_service import OpenAITTSService
from core.tts.interface import (
    TTSAuthenticationError,
    TTSInvalidResponseError,
    TTSNetworkError,
    TTSQuotaExceededError,
    TTSServerError,
)
from handlers.async_comm import AsyncCommError, AsyncCommTimeoutError
from models.config_models import Configuration
from models.voice_models import Gender, VoiceSource


@pytest.fixture
def http() -> MagicMock:
    mock = MagicMock()
    mock.post = AsyncMock(return_value=b"RIFFwav")
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def service(http: MagicMock) -> OpenAITTSService:
    return OpenAITTSService("sk-test", model="tts-1-hd", timeout=12.0, http=http)


def test_voices(service: OpenAITTSService) -> None:
    voices = {voice.id: voice for voice in service.supported_voices}
    assert list(voices) == ["alloy", "echo", "fable", "onyx", "nova", "shimmer"]
    assert voices["nova"].gender == Gender.FEMALE
    assert voices["nova"].name == "Nova"
    assert all(voice.source == VoiceSource.REMOTE for voice in voices.values())
    assert service.service_id == "openai"


@pytest.mark.parametrize(("rate", "speed"), [(0.5, 1.0), (0.0, 0.25), (1.0, 2.0), (3.0, 4.0)])
def test_speed_for(rate: float, speed: float) -> None:
    assert OpenAITTSService.speed_for(rate) == speed


@pytest.mark.asyncio
async def test_synthesize_posts_request(service: OpenAITTSService, http: MagicMock) -> None:
    nova = service.VOICES[4]

    audio = await service.synthesize("Hi there.", nova, Configuration(rate=0.75))

    assert audio == b"RIFFwav"
    kwargs = http.post.call_args.kwargs
    assert kwargs["url"] == OpenAITTSService.API_URL
    assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
    assert kwargs["json_data"] == {
        "model": "tts-1-hd",
        "input": "Hi there.",
        "voice": "nova",
        "speed": 1.5,
        "response_format": "wav",
    }
    assert kwargs["total_timeout"] == 12.0


@pytest.mark.asyncio
async def test_missing_key_fails_without_request(http: MagicMock) -> None:
    service = OpenAITTSService("", http=http)

    with pytest.raises(TTSAuthenticationError):
        await service.synthesize("Hi.", service.VOICES[0], Configuration())
    http.post.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (AsyncCommError("denied", status=401), TTSAuthenticationError),
        (AsyncCommError("slow down", status=429), TTSQuotaExceededError),
        (AsyncCommError("broken", status=500), TTSServerError),
        (AsyncCommTimeoutError("timeout"), TTSNetworkError),
        (AsyncCommError("unreachable"), TTSNetworkError),
    ],
)
async def test_transport_errors_are_translated(
    service: OpenAITTSService, http: MagicMock, error: AsyncCommError, expected: type[Exception]
) -> None:
    http.post.side_effect = error

    with pytest.raises(expected) as excinfo:
        await service.synthesize("Hi.", service.VOICES[0], Configuration())
    assert excinfo.value.__cause__ is error


@pytest.mark.asyncio
async def test_non_audio_response_is_invalid(service: OpenAITTSService, http: MagicMock) -> None:
    http.post.return_value = {"error": {"message": "bad"}}

    with pytest.raises(TTSInvalidResponseError):
        await service.synthesize("Hi.", service.VOICES[0], Configuration())


@pytest.mark.asyncio
async def test_close_closes_http(service: OpenAITTSService, http: MagicMock) -> None:
    await service.close()
    http.close.assert_awaited_once()
