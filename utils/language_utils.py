"""Language code normalization and lightweight language detection.

The detector classifies text by Unicode script first. Latin text is then scored against small
stop-word sets. It answers with a primary language code such as ``"ja"`` or ``"de"``, or ``None``
when no language clearly dominates.
"""

from __future__ import annotations

from collections import Counter
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Mapping

__all__: list[str] = ["LANGUAGE_MAPPING", "PREVIEW_TEXTS", "LanguageUtils"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

LANGUAGE_MAPPING: Final[Mapping[str, str]] = MappingProxyType(
    {
        "zh": "zh-CN",
        "zh-Hans": "zh-CN",
        "zh-Hant": "zh-TW",
        "en": "en-US",
        "ja": "ja-JP",
        "ko": "ko-KR",
        "fr": "fr-FR",
        "de": "de-DE",
        "es": "es-ES",
        "it": "it-IT",
        "pt": "pt-BR",
        "ru": "ru-RU",
        "ar": "ar-SA",
        "th": "th-TH",
        "vi": "vi-VN",
    }
)

DEFAULT_PREVIEW_TEXT: Final[str] = "This is a voice preview sample."

PREVIEW_TEXTS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "zh-CN": "这是一个语音测试示例。",
        "zh-TW": "這是一個語音測試示例。",
        "en-US": DEFAULT_PREVIEW_TEXT,
        "en-GB": DEFAULT_PREVIEW_TEXT,
        "ja-JP": "これは音声プレビューのサンプルです。",
        "ko-KR": "이것은 음성 미리보기 샘플입니다.",
        "fr-FR": "Ceci est un échantillon d'aperçu vocal.",
        "de-DE": "Dies ist ein Sprachvorschau-Beispiel.",
        "es-ES": "Esta es una muestra de vista previa de voz.",
        "it-IT": "Questo è un campione di anteprima vocale.",
        "pt-BR": "Esta é uma amostra de prévia de voz.",
        "ru-RU": "Это образец предварительного просмотра голоса.",
        "ar-SA": "هذا نموذج لمعاينة الصوت.",
        "th-TH": "นี่คือตัวอย่างการแสดงตัวอย่างเสียง",
        "vi-VN": "Đây là một mẫu xem trước giọng nói.",
    }
)

LANGUAGE_NAMES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "ar": "Arabic",
        "da": "Danish",
        "de": "German",
        "el": "Greek",
        "en": "English",
        "es": "Spanish",
        "fi": "Finnish",
        "fr": "French",
        "he": "Hebrew",
        "hi": "Hindi",
        "id": "Indonesian",
        "it": "Italian",
        "ja": "Japanese",
        "ko": "Korean",
        "nl": "Dutch",
        "no": "Norwegian",
        "pl": "Polish",
        "pt": "Portuguese",
        "ru": "Russian",
        "sv": "Swedish",
        "th": "Thai",
        "tr": "Turkish",
        "uk": "Ukrainian",
        "vi": "Vietnamese",
        "zh": "Chinese",
    }
)

REGION_NAMES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "001": "World",
        "AU": "Australia",
        "BR": "Brazil",
        "CA": "Canada",
        "CN": "China",
        "DE": "Germany",
        "EG": "Egypt",
        "ES": "Spain",
        "FR": "France",
        "GB": "United Kingdom",
        "HK": "Hong Kong",
        "IE": "Ireland",
        "IN": "India",
        "IT": "Italy",
        "JP": "Japan",
        "KR": "South Korea",
        "MX": "Mexico",
        "PT": "Portugal",
        "RU": "Russia",
        "SA": "Saudi Arabia",
        "TH": "Thailand",
        "TW": "Taiwan",
        "US": "United States",
        "VN": "Vietnam",
        "ZA": "South Africa",
    }
)

# (first, last) code point ranges per script
_SCRIPT_RANGES: Final[dict[str, tuple[tuple[int, int], ...]]] = {
    "kana": ((0x3040, 0x309F), (0x30A0, 0x30FF), (0x31F0, 0x31FF), (0xFF66, 0xFF9F)),
    "hangul": ((0x1100, 0x11FF), (0x3130, 0x318F), (0xAC00, 0xD7AF)),
    "han": ((0x3400, 0x4DBF), (0x4E00, 0x9FFF), (0xF900, 0xFAFF)),
    "thai": ((0x0E00, 0x0E7F),),
    "arabic": ((0x0600, 0x06FF), (0x0750, 0x077F)),
    "cyrillic": ((0x0400, 0x04FF),),
    "latin": ((0x0041, 0x005A), (0x0061, 0x007A), (0x00C0, 0x024F), (0x1E00, 0x1EFF)),
}

_SCRIPT_LANGUAGE: Final[dict[str, str]] = {
    "kana": "ja",
    "hangul": "ko",
    "han": "zh",
    "thai": "th",
    "arabic": "ar",
    "cyrillic": "ru",
}

_STOP_WORDS: Final[dict[str, frozenset[str]]] = {
    "en": frozenset(
        "the and is are was were you your this that what how with for have has not can will "
        "of to in it my we they he she be do does hello thanks please".split()
    ),
    "de": frozenset(
        "ich und der die das ist ein eine nicht auf mit den dem sich von für aber wenn auch "
        "noch nach wir sind bitte danke jetzt kein keine mein dein".split()
    ),
    "fr": frozenset(
        "le la les et est un une des du pas pour dans avec vous nous je ce cette qui que "
        "mais sur bonjour merci oui très".split()
    ),
    "es": frozenset(
        "el los las y es un una del por para con no que se su está están pero como muy hola gracias sí".split()
    ),
    "it": frozenset(
        "il lo gli e è un una della per con non che si sono questo questa ciao grazie anche molto".split()
    ),
    "pt": frozenset("o os as e é um uma do da dos das para com não que se são está olá obrigado você muito".split()),
}

# Letters that only Vietnamese uses among the Latin languages handled here
_VIETNAMESE_LETTERS: Final[frozenset[str]] = frozenset("ăâđêôơưĂÂĐÊÔƠƯ")

_WORD_STRIP_CHARS: Final[str] = ".,!?;:\"'()[]{}«»¿¡…"


class LanguageUtils:
    """Static helpers for language tags and language detection."""

    @staticmethod
    def normalize_language_code(code: str) -> str:
        """Map a short or platform-style language code to a region-qualified tag.

        Known codes use the mapping table ("en" -> "en-US", "zh-Hant" -> "zh-TW"). Any other
        hyphenated tag maps through its primary code when that code is in the table, so detection
        always lands on one canonical tag per language. Underscores are read as hyphens. Unknown
        codes pass through.

        Args:
            code (str): Language code such as "en", "zh_Hans" or "sr-Latn".

        Returns:
            str: The normalized tag.
        """
        code = code.strip()
        if code in LANGUAGE_MAPPING:
            return LANGUAGE_MAPPING[code]
        if "-" in code:
            return LANGUAGE_MAPPING.get(code.split("-")[0].lower(), code)
        if "_" in code:
            return LanguageUtils.normalize_language_code(code.replace("_", "-"))
        return code

    @staticmethod
    def detect_language(text: str) -> str | None:
        """Guess the primary language code of a text.

        Args:
            text (str): Text to inspect.

        Returns:
            str | None: A primary language code, or None without a dominant language.
        """
        scripts: Counter[str] = Counter()
        for char in text:
            if not char.isalpha():
                continue
            script: str | None = LanguageUtils._classify_char(char)
            if script is not None:
                scripts[script] += 1

        total: int = sum(scripts.values())
        if total == 0:
            return None

        # Kana never occurs outside Japanese, even when mixed with kanji
        if scripts["kana"]:
            return "ja"

        script, count = scripts.most_common(1)[0]
        if count * 2 <= total:
            logger.debug("No dominant script in text: %s", dict(scripts))
            return None
        if script != "latin":
            return _SCRIPT_LANGUAGE[script]
        return LanguageUtils._detect_latin_language(text)

    @staticmethod
    def _classify_char(char: str) -> str | None:
        point: int = ord(char)
        for script, ranges in _SCRIPT_RANGES.items():
            if any(first <= point <= last for first, last in ranges):
                return script
        return None

    @staticmethod
    def _detect_latin_language(text: str) -> str | None:
        if any(char in _VIETNAMESE_LETTERS for char in text):
            return "vi"

        words: list[str] = [word.strip(_WORD_STRIP_CHARS) for word in text.lower().split()]
        scores: Counter[str] = Counter()
        for language, stop_words in _STOP_WORDS.items():
            hits: int = sum(1 for word in words if word in stop_words)
            if hits:
                scores[language] = hits
        if any(char in "äöüß" for char in text.lower()):
            scores["de"] += 2

        ranked: list[tuple[str, int]] = scores.most_common(2)
        if not ranked:
            return None
        if len(ranked) > 1 and ranked[0][1] == ranked[1][1]:
            logger.debug("Ambiguous Latin text, scores: %s", dict(scores))
            return None
        return ranked[0][0]

    @staticmethod
    def describe(language_code: str, region_code: str | None = None) -> str | None:
        """Return an English display name such as "English (United States)".

        Returns:
            str | None: The display name, or None for an unknown language.
        """
        name: str | None = LANGUAGE_NAMES.get(language_code)
        if name is None:
            return None
        if region_code:
            return f"{name} ({REGION_NAMES.get(region_code, region_code)})"
        return name

    @staticmethod
    def preview_text(tag: str) -> str:
        """Return a short sample sentence for auditioning a voice.

        Lookup order: the exact tag, any entry sharing the primary language, then the English sample.
        """
        if tag in PREVIEW_TEXTS:
            return PREVIEW_TEXTS[tag]
        primary: str = tag.split("-")[0].lower()
        for key, text in PREVIEW_TEXTS.items():
            if key.split("-")[0] == primary:
                return text
        return PREVIEW_TEXTS.get("en-US", DEFAULT_PREVIEW_TEXT)
