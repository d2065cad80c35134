from __future__ import annotations

import pytest

from models.voice_models import Gender, LanguageTag, Sentence, Voice, VoiceQuality, VoiceSource
from tests.fakes import EN_US, ZH_CN


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("en-us", "en-US"),
        ("EN_gb", "en-GB"),
        ("zh-hant-tw", "zh-Hant-TW"),
        ("es-419", "es-419"),
        ("  fr  ", "fr"),
        ("", ""),
    ],
)
def test_language_tag_normalization(code: str, expected: str) -> None:
    assert LanguageTag(code) == expected


def test_language_tag_parts() -> None:
    tag = LanguageTag("zh-Hant-TW")

    assert tag.language_code == "zh"
    assert tag.script_code == "Hant"
    assert tag.region_code == "TW"
    assert tag.without_region() == "zh-Hant"
    assert LanguageTag("en").region_code is None
    assert repr(LanguageTag("en-us")) == "LanguageTag('en-US')"


def test_language_tag_matching() -> None:
    tag = LanguageTag("en-US")

    assert tag.matches("en-GB")
    assert tag.matches("en")
    assert not tag.matches("fr-FR")
    assert tag.matches_exactly("en_us")
    assert not tag.matches_exactly("en-GB")
    assert not LanguageTag("").matches("")


def test_language_tag_description_and_flag() -> None:
    assert LanguageTag("en-GB").localized_description == "English (United Kingdom)"
    assert LanguageTag("ja").localized_description == "Japanese"
    assert LanguageTag("xx-YY").localized_description == "xx-YY"
    assert LanguageTag("en-US").flag_emoji == "\U0001f1fa\U0001f1f8"
    assert LanguageTag("ar-001").flag_emoji == "\N{EARTH GLOBE EUROPE-AFRICA}"
    assert LanguageTag("es-419").flag_emoji is None
    assert LanguageTag("en").flag_emoji is None


def test_language_tag_sorts_as_text() -> None:
    assert sorted([LanguageTag("zh-CN"), LanguageTag("en-US"), LanguageTag("en-GB")]) == ["en-GB", "en-US", "zh-CN"]


def test_voice_identity_and_serialization() -> None:
    data = ZH_CN.to_dict()

    assert data["language"] == "zh-CN"
    assert data["gender"] == "female"
    restored = Voice.from_dict(data)
    assert restored == ZH_CN
    assert isinstance(restored.language, LanguageTag)
    assert restored.quality == VoiceQuality.PREMIUM
    assert restored.source == VoiceSource.REMOTE


def test_voice_language_is_normalized_and_immutable() -> None:
    voice = Voice(id="v", name="V", language="en_us")  # type: ignore[arg-type]

    assert isinstance(voice.language, LanguageTag)
    assert voice.language == "en-US"
    assert voice.gender == Gender.UNSPECIFIED
    with pytest.raises(AttributeError):
        voice.name = "other"  # type: ignore[misc]
    assert str(EN_US) == "Ava (en-US, female, standard)"


def test_sentence_ids_are_unique() -> None:
    first = Sentence(text="Same.")
    second = Sentence.from_text("Same.", voice=EN_US)

    assert first.id != second.id
    assert second.voice == EN_US
    assert first.custom_config is None
