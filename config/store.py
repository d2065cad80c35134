"""Persistence of playback settings, voice preferences and playback history.

``ConfigurationStore`` serializes with dataclasses-json and writes through a small key-value
``KeyValueStore``. Persistence is best effort: a failing backend or a corrupt record is logged
and the store falls back to defaults instead of raising.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar, Final, Protocol

from models.config_models import Configuration, PlaybackHistoryItem
from models.voice_models import LanguageTag, Voice
from utils.file_utils import FileUtils
from utils.language_utils import LanguageUtils
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = [
    "ConfigurationStore",
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

MAX_HISTORY_ITEMS: Final[int] = 100

_UNSAFE_KEY_CHARS: Final[re.Pattern[str]] = re.compile(r"[^A-Za-z0-9._-]")

# What a corrupt or foreign record can raise while being decoded
_DECODE_ERRORS: Final[tuple[type[Exception], ...]] = (
    AttributeError,
    KeyError,
    TypeError,
    ValueError,
)


class KeyValueStore(Protocol):
    """Minimal byte-oriented persistence backend."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Keeps values for the lifetime of the process."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileKeyValueStore:
    """Stores each key as ``<directory>/<key>.json``."""

    def __init__(self, directory: str | Path) -> None:
        self.directory: Path = FileUtils.resolve_path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> bytes | None:
        path: Path = self._path(key)
        if not path.is_file():
            return None
        return path.read_bytes()

    def set(self, key: str, value: bytes) -> None:
        FileUtils.write_bytes_atomic(self._path(key), value)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class ConfigurationStore:
    """Load and save the playback configuration and everything persisted around it.

    Attributes:
        CONFIGURATION_KEY (ClassVar[str]): Key of the playback configuration record.
        PREFERRED_VOICES_KEY (ClassVar[str]): Key of the language-to-voice preference map.
        PLAYBACK_HISTORY_KEY (ClassVar[str]): Key of the playback history list.
    """

    CONFIGURATION_KEY: ClassVar[str] = "speechqueue.configuration"
    PREFERRED_VOICES_KEY: ClassVar[str] = "speechqueue.preferred_voices"
    PLAYBACK_HISTORY_KEY: ClassVar[str] = "speechqueue.playback_history"

    def __init__(self, backend: KeyValueStore | None = None) -> None:
        self.backend: KeyValueStore = backend if backend is not None else MemoryKeyValueStore()

    # Configuration

    def load(self) -> Configuration:
        """Return the persisted configuration, or the defaults if none is stored or it is unreadable."""
        raw: bytes | None = self._read(self.CONFIGURATION_KEY)
        if raw is None:
            return Configuration()
        try:
            return self.validate(Configuration.from_json(raw))
        except _DECODE_ERRORS as err:
            logger.warning("Stored configuration is unreadable, using defaults: %s", err)
            return Configuration()

    def save(self, configuration: Configuration) -> None:
        """Persist the configuration. Failures are logged, never raised."""
        self._write(self.CONFIGURATION_KEY, configuration.to_json(ensure_ascii=False))

    def validate(self, configuration: Configuration) -> Configuration:
        """Return a copy of the configuration clamped into the supported ranges."""
        clamped: Configuration = configuration.clamped()
        if clamped != configuration:
            logger.warning("Configuration values out of range were clamped: %s -> %s", configuration, clamped)
        return clamped

    def reset_configuration(self) -> None:
        self._remove(self.CONFIGURATION_KEY)

    # Per-language voice preferences

    def load_preferred_voices(self) -> dict[str, Voice]:
        """Return the language-to-voice preference map keyed by normalized tag."""
        raw: bytes | None = self._read(self.PREFERRED_VOICES_KEY)
        if raw is None:
            return {}
        try:
            data: dict[str, Any] = json.loads(raw)
            return {str(LanguageTag(tag)): Voice.from_dict(voice) for tag, voice in data.items()}  # type: ignore[arg-type]
        except _DECODE_ERRORS as err:
            logger.warning("Stored voice preferences are unreadable: %s", err)
            return {}

    def save_preferred_voices(self, voices: dict[str, Voice]) -> None:
        payload: dict[str, Any] = {str(LanguageTag(tag)): voice.to_dict() for tag, voice in voices.items()}
        self._write(self.PREFERRED_VOICES_KEY, json.dumps(payload, ensure_ascii=False))

    def set_preferred_voice(self, voice: Voice, language: str) -> None:
        """Remember the voice to use for a language.

        The language is normalized first ("en" is stored under "en-US").
        """
        voices: dict[str, Voice] = self.load_preferred_voices()
        voices[self._preference_key(language)] = voice
        self.save_preferred_voices(voices)

    def get_preferred_voice(self, language: str) -> Voice | None:
        return self.load_preferred_voices().get(self._preference_key(language))

    def reset_preferred_voices(self) -> None:
        self._remove(self.PREFERRED_VOICES_KEY)

    @staticmethod
    def _preference_key(language: str) -> str:
        tag = LanguageTag(language)
        # a bare primary code stands for its canonical region
        if "-" not in tag:
            tag = LanguageTag(LanguageUtils.normalize_language_code(tag))
        return str(tag)

    # Playback history

    def load_playback_history(self) -> list[PlaybackHistoryItem]:
        """Return the history, newest first."""
        raw: bytes | None = self._read(self.PLAYBACK_HISTORY_KEY)
        if raw is None:
            return []
        try:
            return [PlaybackHistoryItem.from_dict(item) for item in json.loads(raw)]
        except _DECODE_ERRORS as err:
            logger.warning("Stored playback history is unreadable: %s", err)
            return []

    def save_playback_history(self, history: list[PlaybackHistoryItem]) -> None:
        payload: list[Any] = [item.to_dict(encode_json=True) for item in history[:MAX_HISTORY_ITEMS]]
        self._write(self.PLAYBACK_HISTORY_KEY, json.dumps(payload, ensure_ascii=False))

    def add_to_playback_history(self, item: PlaybackHistoryItem) -> None:
        """Put an item at the front, dropping older entries with the same text."""
        history: list[PlaybackHistoryItem] = [entry for entry in self.load_playback_history() if entry.text != item.text]
        history.insert(0, item)
        self.save_playback_history(history)

    def reset_playback_history(self) -> None:
        self._remove(self.PLAYBACK_HISTORY_KEY)

    def reset_all_data(self) -> None:
        self.reset_configuration()
        self.reset_preferred_voices()
        self.reset_playback_history()
        logger.info("All persisted playback data was reset")

    # Backend access

    def _read(self, key: str) -> bytes | None:
        try:
            return self.backend.get(key)
        except OSError as err:
            logger.error("Failed to read '%s': %s", key, err)
            return None

    def _write(self, key: str, text: str) -> None:
        try:
            self.backend.set(key, text.encode("utf-8"))
        except OSError as err:
            logger.error("Failed to save '%s': %s", key, err)
        else:
            logger.debug("Saved '%s'", key)

    def _remove(self, key: str) -> None:
        try:
            self.backend.remove(key)
        except OSError as err:
            logger.error("Failed to remove '%s': %s", key, err)
