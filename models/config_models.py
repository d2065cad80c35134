"""Configuration data models.

Two kinds of settings live here:
- The playback ``Configuration`` (rate, pitch, volume, pauses, voice preference) that the playback
  session owns and persists through the configuration store, plus the playback history record.
- The application settings read from the INI file (``Config`` and its sections), which choose the
  engines, their credentials and where state is stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Final

from dataclasses_json import DataClassJsonMixin, LetterCase, config, dataclass_json

from models.voice_models import Voice

__all__: list[str] = [
    "Azure",
    "Config",
    "Configuration",
    "Engine",
    "GTTS",
    "General",
    "OpenAI",
    "PlaybackHistoryItem",
    "Storage",
]

RATE_RANGE: Final[tuple[float, float]] = (0.0, 1.0)
PITCH_RANGE: Final[tuple[float, float]] = (0.5, 2.0)
VOLUME_RANGE: Final[tuple[float, float]] = (0.0, 1.0)


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    return max(bounds[0], min(bounds[1], value))


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class Configuration(DataClassJsonMixin):
    """Playback parameters for the playback session.

    Attributes:
        rate (float): Speaking rate, nominally 0.0-1.0 with 0.5 as normal speed.
        pitch (float): Pitch multiplier, nominally 0.5-2.0.
        volume (float): Output volume, 0.0-1.0.
        pause_between_sentences (float): Delay in seconds between queued sentences.
        auto_language_detection (bool): Pick a voice from the detected language of each sentence.
        preferred_voice (Voice | None): Voice used for every sentence without its own voice.
    """

    rate: float = 0.5
    pitch: float = 1.0
    volume: float = 1.0
    pause_between_sentences: float = 0.5
    auto_language_detection: bool = True
    preferred_voice: Voice | None = None

    def copy(self) -> Configuration:
        return replace(self)

    def clamped(self) -> Configuration:
        """Return a copy with every numeric field inside its nominal range."""
        return replace(
            self,
            rate=_clamp(float(self.rate), RATE_RANGE),
            pitch=_clamp(float(self.pitch), PITCH_RANGE),
            volume=_clamp(float(self.volume), VOLUME_RANGE),
            pause_between_sentences=max(0.0, float(self.pause_between_sentences)),
        )

    def is_within_range(self) -> bool:
        return self == self.clamped()


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _encode_timestamp(value: datetime) -> str:
    return value.isoformat()


def _decode_timestamp(value: str | float) -> datetime:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, UTC)
    return datetime.fromisoformat(value)


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class PlaybackHistoryItem(DataClassJsonMixin):
    """A text that was spoken, kept for the playback history.

    Attributes:
        id (str): Identifier of the sentence that was spoken.
        text (str): Spoken text.
        voice (Voice): Voice that spoke it.
        timestamp (datetime): When playback finished (UTC).
        duration (float | None): Measured playback time in seconds.
    """

    id: str
    text: str
    voice: Voice
    timestamp: datetime = field(
        default_factory=_utc_now,
        metadata=config(encoder=_encode_timestamp, decoder=_decode_timestamp),
    )
    duration: float | None = None


# INI application settings. Field names match the INI keys; sections match the INI section names.


@dataclass
class General:
    DEBUG: bool = False
    LOG_FILE: str = ""
    LOG_LEVEL: str = "INFO"
    SCRIPT_NAME: str = ""


@dataclass
class Engine:
    DEFAULT: str = "local"
    ENABLED: list[str] = field(default_factory=lambda: ["local"])


@dataclass
class Storage:
    # Empty keeps all persisted state in memory for the lifetime of the process.
    DIRECTORY: str = ""


@dataclass
class OpenAI:
    API_KEY: str = ""
    MODEL: str = "tts-1"
    TIMEOUT: float = 30.0


@dataclass
class Azure:
    SUBSCRIPTION_KEY: str = ""
    REGION: str = "eastus"
    TIMEOUT: float = 30.0


@dataclass
class GTTS:
    TLD: str = "com"
    TIMEOUT: float = 30.0


@dataclass
class Config:
    GENERAL: General = field(default_factory=General)
    ENGINE: Engine = field(default_factory=Engine)
    STORAGE: Storage = field(default_factory=Storage)
    OPENAI: OpenAI = field(default_factory=OpenAI)
    AZURE: Azure = field(default_factory=Azure)
    GTTS: GTTS = field(default_factory=GTTS)
