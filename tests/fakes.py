"""Shared test doubles for the playback tests."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from core.tts.interface import Interface
from models.event_models import TTSEventType
from models.voice_models import Gender, LanguageTag, Voice, VoiceQuality, VoiceSource

if TYPE_CHECKING:
    from core.tts.event_bus import EventStream
    from models.config_models import Configuration
    from models.event_models import TTSEvent

EN_US = Voice(id="en-us-ava", name="Ava", language=LanguageTag("en-US"), gender=Gender.FEMALE)
EN_GB = Voice(
    id="en-gb-daniel",
    name="Daniel",
    language=LanguageTag("en-GB"),
    gender=Gender.MALE,
    quality=VoiceQuality.ENHANCED,
)
ZH_CN = Voice(
    id="zh-cn-xiaoxiao",
    name="Xiaoxiao",
    language=LanguageTag("zh-CN"),
    gender=Gender.FEMALE,
    source=VoiceSource.REMOTE,
    quality=VoiceQuality.PREMIUM,
)


class FakeEngine(Interface):
    """Engine that records what it is asked to say.

    ``failures`` maps a text to the exception raised when it is spoken. With ``hold`` every
    utterance waits on ``gate`` until the test sets it.
    """

    def __init__(
        self,
        name: str = "fake",
        voices: list[Voice] | None = None,
        *,
        failures: dict[str, BaseException] | None = None,
        hold: bool = False,
        progress: float | None = None,
    ) -> None:
        super().__init__()
        self.name: str = name
        self.voices: list[Voice] = list(voices or [])
        self.failures: dict[str, BaseException] = dict(failures or {})
        self.progress: float | None = progress
        self.gate: asyncio.Event = asyncio.Event()
        if not hold:
            self.gate.set()
        self.spoken: list[tuple[str, str]] = []
        self.configurations: list[Configuration] = []
        self.paused: bool = False
        self.closed: bool = False

    @property
    def engine_name(self) -> str:
        return self.name

    def available_voices(self) -> list[Voice]:
        return list(self.voices)

    async def speech_synthesis(self, text: str, voice: Voice) -> None:
        self.spoken.append((text, voice.id))
        self.configurations.append(self.configuration)
        if text in self.failures:
            raise self.failures[text]
        if self.progress is not None:
            self.report_progress(self.progress)
        await self.gate.wait()
        await asyncio.sleep(0)

    @property
    def is_paused(self) -> bool:
        return self.paused

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    async def close(self) -> None:
        await super().close()
        self.closed = True


class EventRecorder:
    """Collects every event published on a stream."""

    def __init__(self, stream: EventStream[TTSEvent]) -> None:
        self.events: list[TTSEvent] = []
        stream.subscribe(self.events.append)

    def summary(self, *, with_progress: bool = False) -> list[tuple[str, str | None]]:
        return [
            (str(event.type), event.text)
            for event in self.events
            if with_progress or event.type != TTSEventType.PROGRESS_CHANGED
        ]

    def count(self, event_type: TTSEventType, text: str | None = None) -> int:
        return sum(1 for event in self.events if event.type == event_type and (text is None or event.text == text))

    async def wait_for(self, event_type: TTSEventType, text: str | None = None, timeout: float = 1.0) -> None:
        async with asyncio.timeout(timeout):
            while not self.count(event_type, text):
                await asyncio.sleep(0)
