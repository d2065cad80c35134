"""Data models for voices and queued utterances.

This module defines:
- LanguageTag: A normalized BCP 47 style language identifier.
- Gender, VoiceSource, VoiceQuality: Voice descriptor enums.
- Voice: An immutable synthesis identity.
- Sentence: One unit of text queued for playback.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final, Self

from dataclasses_json import DataClassJsonMixin, config, dataclass_json

from models.re_models import REGION_SUBTAG_PATTERN, SCRIPT_SUBTAG_PATTERN
from utils.language_utils import LanguageUtils

if TYPE_CHECKING:
    from models.config_models import Configuration

__all__: list[str] = [
    "Gender",
    "LanguageTag",
    "Sentence",
    "Voice",
    "VoiceQuality",
    "VoiceSource",
]

_REGIONAL_INDICATOR_OFFSET: Final[int] = 0x1F1E6 - ord("A")
_FLAG_EXCEPTIONS: Final[dict[str, str]] = {
    "ar-001": "\N{EARTH GLOBE EUROPE-AFRICA}",
}


class LanguageTag(str):
    """Normalized language identifier such as ``"en-US"`` or ``"zh-Hant-TW"``.

    Normalization reads ``_`` as ``-``, lowercases the primary subtag, title-cases a script subtag
    and uppercases a region subtag. Being a ``str``, a tag compares, hashes, sorts and serializes
    as its normalized text.
    """

    __slots__ = ()

    def __new__(cls, code: str) -> Self:
        return super().__new__(cls, cls.canonicalize(str(code)))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self)!r})"

    @staticmethod
    def canonicalize(code: str) -> str:
        subtags: list[str] = [part for part in code.strip().replace("_", "-").split("-") if part]
        if not subtags:
            return ""
        canonical: list[str] = [subtags[0].lower()]
        for subtag in subtags[1:]:
            if SCRIPT_SUBTAG_PATTERN.match(subtag):
                canonical.append(subtag.title())
            elif REGION_SUBTAG_PATTERN.match(subtag):
                canonical.append(subtag.upper())
            else:
                canonical.append(subtag.lower())
        return "-".join(canonical)

    @property
    def language_code(self) -> str:
        """Primary subtag, e.g. ``"en"`` for ``"en-US"``."""
        return self.split("-", 1)[0]

    @property
    def script_code(self) -> str | None:
        for subtag in self.split("-")[1:]:
            if SCRIPT_SUBTAG_PATTERN.match(subtag):
                return subtag
        return None

    @property
    def region_code(self) -> str | None:
        """Region subtag, e.g. ``"US"`` for ``"en-US"``; None when absent."""
        for subtag in self.split("-")[1:]:
            if REGION_SUBTAG_PATTERN.match(subtag):
                return subtag
        return None

    def matches(self, other: str) -> bool:
        """Loose match: both tags share the same primary language."""
        other_tag: LanguageTag = other if isinstance(other, LanguageTag) else LanguageTag(other)
        return bool(self.language_code) and self.language_code == other_tag.language_code

    def matches_exactly(self, other: str) -> bool:
        """Exact match on the full normalized tag."""
        return str(self) == LanguageTag.canonicalize(str(other))

    def without_region(self) -> LanguageTag:
        return LanguageTag("-".join(sub for sub in self.split("-") if sub != self.region_code))

    @property
    def localized_description(self) -> str:
        """English display name such as "English (United States)", or the tag itself."""
        return LanguageUtils.describe(self.language_code, self.region_code) or str(self)

    @property
    def flag_emoji(self) -> str | None:
        if str(self) in _FLAG_EXCEPTIONS:
            return _FLAG_EXCEPTIONS[str(self)]
        region: str | None = self.region_code
        if region is None or not region.isalpha():
            return None
        return "".join(chr(_REGIONAL_INDICATOR_OFFSET + ord(char)) for char in region)


class Gender(StrEnum):
    MALE = "male"
    FEMALE = "female"
    NEUTRAL = "neutral"
    UNSPECIFIED = "unspecified"


class VoiceSource(StrEnum):
    """Backend family a voice belongs to."""

    LOCAL = "local"
    REMOTE = "remote"


class VoiceQuality(StrEnum):
    STANDARD = "standard"
    ENHANCED = "enhanced"
    PREMIUM = "premium"


@dataclass_json
@dataclass(frozen=True)
class Voice(DataClassJsonMixin):
    """Immutable descriptor of a synthesis identity.

    Attributes:
        id (str): Backend-specific identifier. Two voices with the same id are the same identity.
        name (str): Display name.
        language (LanguageTag): Language the voice speaks.
        gender (Gender): Voice gender as reported by the backend.
        source (VoiceSource): Whether the voice is rendered on-device or by a remote service.
        quality (VoiceQuality): Quality tier.
    """

    id: str
    name: str
    language: LanguageTag = field(metadata=config(encoder=str, decoder=LanguageTag))
    gender: Gender = Gender.UNSPECIFIED
    source: VoiceSource = VoiceSource.LOCAL
    quality: VoiceQuality = VoiceQuality.STANDARD

    def __post_init__(self) -> None:
        if not isinstance(self.language, LanguageTag):
            object.__setattr__(self, "language", LanguageTag(self.language))

    def __str__(self) -> str:
        return f"{self.name} ({self.language}, {self.gender}, {self.quality})"


@dataclass(frozen=True)
class Sentence:
    """One unit of text plus its optional voice and configuration overrides.

    Attributes:
        text (str): Text to speak.
        voice (Voice | None): Voice to use instead of the session's voice resolution.
        custom_config (Configuration | None): Playback parameters for this sentence only.
        id (str): Unique token, generated when omitted.
    """

    text: str
    voice: Voice | None = None
    custom_config: Configuration | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def from_text(cls, text: str, voice: Voice | None = None, custom_config: Configuration | None = None) -> Sentence:
        return cls(text=text, voice=voice, custom_config=custom_config)
