from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Final

from models.voice_models import Gender, LanguageTag, VoiceQuality
from utils.language_utils import LANGUAGE_MAPPING, LanguageUtils
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Iterable, Sequence

    from models.voice_models import Voice

__all__: list[str] = ["UNKNOWN_GROUP", "VoiceCatalog", "VoiceProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

type VoiceProvider = Callable[[], Iterable[Voice]]
type LanguageDetector = Callable[[str], str | None]

UNKNOWN_GROUP: Final[str] = "Unknown"
DEFAULT_PREFERRED_COUNT: Final[int] = 10


class VoiceCatalog:
    """Known voices from every backend, with lookup and filtering helpers.

    Voices are collected from the providers on first use and kept for the lifetime of the catalog,
    sorted by language tag (provider order is kept within a language). Construct a new catalog to
    pick up voices installed later. A provider that fails contributes nothing.
    """

    def __init__(
        self,
        providers: Iterable[VoiceProvider] = (),
        *,
        detector: LanguageDetector = LanguageUtils.detect_language,
    ) -> None:
        """Initialize the catalog.

        Args:
            providers (Iterable[VoiceProvider]): Callables returning the voices of one backend each.
            detector (LanguageDetector): Returns a language code for a text, or None.
        """
        self._providers: list[VoiceProvider] = list(providers)
        self._detector: LanguageDetector = detector
        self._voices: list[Voice] | None = None

    def _load(self) -> list[Voice]:
        voices: list[Voice] = []
        seen: set[str] = set()
        for provider in self._providers:
            try:
                provided: list[Voice] = list(provider())
            except Exception as err:  # noqa: BLE001
                logger.warning("Voice provider %r failed: %s", provider, err)
                continue
            for voice in provided:
                if voice.id in seen:
                    logger.debug("Duplicate voice id '%s' ignored", voice.id)
                    continue
                seen.add(voice.id)
                voices.append(voice)

        voices.sort(key=lambda voice: voice.language)
        logger.info("Voice catalog loaded: %d voice(s)", len(voices))
        return voices

    def get_all_voices(self) -> list[Voice]:
        if self._voices is None:
            self._voices = self._load()
        return list(self._voices)

    def find_voice(self, voice_id: str) -> Voice | None:
        return next((voice for voice in self.get_all_voices() if voice.id == voice_id), None)

    def get_voices_for_language(self, language: str) -> list[Voice]:
        """Voices whose language shares the primary subtag with ``language`` (e.g. en-US and en-GB)."""
        tag = LanguageTag(language)
        return [voice for voice in self.get_all_voices() if voice.language.matches(tag)]

    def get_default_voice(self, language: str) -> Voice | None:
        """Pick a voice for a language.

        Prefers an enhanced female voice, then any female voice, then the first match.

        Returns:
            Voice | None: The chosen voice, or None when the language has no voices.
        """
        voices: list[Voice] = self.get_voices_for_language(language)
        return (
            next((v for v in voices if v.gender == Gender.FEMALE and v.quality == VoiceQuality.ENHANCED), None)
            or next((v for v in voices if v.gender == Gender.FEMALE), None)
            or next(iter(voices), None)
        )

    def detect_language(self, text: str) -> LanguageTag | None:
        """Detect the language of a text and normalize it to a region-qualified tag."""
        try:
            code: str | None = self._detector(text)
        except Exception as err:  # noqa: BLE001
            logger.warning("Language detection failed: %s", err)
            return None
        if not code:
            return None
        return LanguageTag(LanguageUtils.normalize_language_code(code))

    def detect_language_code(self, text: str) -> str | None:
        tag: LanguageTag | None = self.detect_language(text)
        return str(tag) if tag is not None else None

    def search_voices(self, query: str) -> list[Voice]:
        """Case-insensitive substring search over name, language tag and language description."""
        needle: str = query.strip().lower()
        if not needle:
            return self.get_all_voices()
        return [
            voice
            for voice in self.get_all_voices()
            if needle in voice.name.lower()
            or needle in voice.language.lower()
            or needle in voice.language.localized_description.lower()
        ]

    def voices_grouped_by_region(self) -> dict[str, list[Voice]]:
        return self._group(lambda voice: voice.language.region_code)

    def voices_grouped_by_language(self) -> dict[str, list[Voice]]:
        return self._group(lambda voice: voice.language.language_code)

    def _group(self, key: Callable[[Voice], str | None]) -> dict[str, list[Voice]]:
        groups: defaultdict[str, list[Voice]] = defaultdict(list)
        for voice in self.get_all_voices():
            groups[key(voice) or UNKNOWN_GROUP].append(voice)
        return dict(groups)

    def available_languages(self) -> list[str]:
        return sorted({voice.language.language_code for voice in self.get_all_voices() if voice.language})

    def available_regions(self) -> list[str]:
        return sorted({region for voice in self.get_all_voices() if (region := voice.language.region_code)})

    def get_voices_for_region(self, region: str) -> list[Voice]:
        region = region.upper()
        return [voice for voice in self.get_all_voices() if voice.language.region_code == region]

    def get_voices_for_language_family(self, language_code: str) -> list[Voice]:
        """Voices of every regional variant of a language, e.g. "zh" gives zh-CN, zh-TW and zh-HK."""
        return self.get_voices_for_language(LanguageTag(language_code).language_code)

    def get_preferred_voices(
        self,
        max_count: int = DEFAULT_PREFERRED_COUNT,
        languages: Sequence[str] | None = None,
    ) -> list[Voice]:
        """Short list of voices for a picker.

        Takes the default voice of each preferred language, then fills up with the first catalog
        voices.

        Args:
            max_count (int): Maximum number of voices.
            languages (Sequence[str] | None): Languages in order of preference. Defaults to the
                languages of the normalization table.

        Returns:
            list[Voice]: Up to ``max_count`` distinct voices.
        """
        preferred: list[Voice] = []
        for language in languages if languages is not None else LANGUAGE_MAPPING.values():
            voice: Voice | None = self.get_default_voice(language)
            if voice is not None and voice not in preferred:
                preferred.append(voice)

        for voice in self.get_all_voices():
            if voice not in preferred:
                preferred.append(voice)
        return preferred[: max(0, max_count)]

    def get_preview_text(self, language: str) -> str:
        return LanguageUtils.preview_text(str(LanguageTag(language)))
