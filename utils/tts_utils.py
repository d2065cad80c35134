from __future__ import annotations

from typing import TYPE_CHECKING, Final

from models.re_models import (
    ABBREVIATION_PATTERN,
    DECIMAL_PATTERN,
    INTEGER_PATTERN,
    SENTENCE_PATTERN,
    URL_PATTERN,
    WORD_PATTERN,
)
from models.voice_models import Sentence
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterable
    from re import Match

    from models.config_models import Configuration
    from models.voice_models import Voice

__all__: list[str] = ["TTSUtils"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

WORDS_PER_MINUTE: Final[int] = 150
NOMINAL_RATE: Final[float] = 0.5

_ABBREVIATIONS: Final[dict[str, str]] = {
    "Dr": "Doctor",
    "Mr": "Mister",
    "Mrs": "Missus",
    "Ms": "Miss",
    "Prof": "Professor",
    "etc": "etcetera",
    "e.g": "for example",
    "i.e": "that is",
    "vs": "versus",
}

_SYMBOLS: Final[dict[str, str]] = {
    "&": " and ",
    "@": " at ",
    "#": " number ",
    "%": " percent ",
    "$": " dollar ",
    "©": " copyright ",
    "®": " registered ",
    "™": " trademark ",
}

_ONES: Final[tuple[str, ...]] = (
    "zero", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine", "ten",
    "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen", "seventeen", "eighteen", "nineteen",
)  # fmt: skip
_TENS: Final[tuple[str, ...]] = ("", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety")
_SCALES: Final[tuple[tuple[int, str], ...]] = (
    (10**12, "trillion"),
    (10**9, "billion"),
    (10**6, "million"),
    (1000, "thousand"),
    (100, "hundred"),
)


class TTSUtils:
    """Pure text helpers used before and around speech synthesis.

    Covers sentence segmentation, text clean-up for synthesizers, speaking time estimates and
    a reading-friendly layout. None of the methods keep state.
    """

    @staticmethod
    def split_into_sentences(text: str) -> list[str]:
        """Split text into sentences.

        ``.``, ``!``, ``?`` and the full-width ``。！？`` end a sentence and stay attached to it.
        URLs and decimal numbers are masked while splitting so their dots never end a sentence.
        Fragments without any word character are dropped.

        Args:
            text (str): Text to split.

        Returns:
            list[str]: Trimmed sentences in their original order.
        """
        masked, spans = StringUtils.mask(StringUtils.ensure_str(text), URL_PATTERN, DECIMAL_PATTERN)

        sentences: list[str] = []
        for match in SENTENCE_PATTERN.finditer(masked):
            fragment: str = StringUtils.unmask(match.group(0), spans).strip()
            if not WORD_PATTERN.search(fragment):
                continue
            sentences.append(fragment)

        logger.debug("Split text into %d sentence(s)", len(sentences))
        return sentences

    @staticmethod
    def to_sentences(
        texts: Iterable[str],
        voice: Voice | None = None,
        custom_config: Configuration | None = None,
    ) -> list[Sentence]:
        """Wrap plain strings into sentences sharing the same overrides."""
        return [Sentence(text=text, voice=voice, custom_config=custom_config) for text in texts]

    @staticmethod
    def preprocess_text(text: str) -> str:
        """Make text easier for a synthesizer to read aloud.

        Expands common abbreviations and symbols, spells out integers in English and collapses
        whitespace. URLs and decimal numbers are left untouched.
        """
        masked, spans = StringUtils.mask(StringUtils.ensure_str(text), URL_PATTERN, DECIMAL_PATTERN)
        masked = ABBREVIATION_PATTERN.sub(lambda m: _ABBREVIATIONS[m.group("abbr")], masked)
        for symbol, spoken in _SYMBOLS.items():
            masked = masked.replace(symbol, spoken)
        masked = INTEGER_PATTERN.sub(TTSUtils._spell_match, masked)
        return StringUtils.compress_blanks(StringUtils.unmask(masked, spans))

    @staticmethod
    def _spell_match(match: Match[str]) -> str:
        return TTSUtils.spell_out_number(int(match.group(0)))

    @staticmethod
    def spell_out_number(number: int) -> str:
        """Return the English words for a non-negative integer, e.g. 42 -> "forty-two"."""
        if number < 0:
            return f"minus {TTSUtils.spell_out_number(-number)}"
        if number < 20:
            return _ONES[number]
        if number < 100:
            tens, ones = divmod(number, 10)
            return _TENS[tens] if ones == 0 else f"{_TENS[tens]}-{_ONES[ones]}"

        for scale, name in _SCALES:
            if number >= scale:
                head, rest = divmod(number, scale)
                words: str = f"{TTSUtils.spell_out_number(head)} {name}"
                return words if rest == 0 else f"{words} {TTSUtils.spell_out_number(rest)}"
        return str(number)

    @staticmethod
    def estimate_speech_duration(text: str, rate: float = NOMINAL_RATE) -> float:
        """Estimate speaking time in seconds.

        Assumes 150 words per minute at the nominal rate of 0.5; the rate scales linearly.

        Args:
            text (str): Text to be spoken.
            rate (float): Speaking rate on the 0.0-1.0 scale.

        Returns:
            float: Estimated duration in seconds, 0.0 for empty text or a non-positive rate.
        """
        words: int = len(StringUtils.ensure_str(text).split())
        if words == 0 or rate <= 0:
            return 0.0
        words_per_minute: float = WORDS_PER_MINUTE * (rate / NOMINAL_RATE)
        return words / words_per_minute * 60.0

    @staticmethod
    def format_for_reading(text: str) -> str:
        """Put each sentence on its own line and widen paragraph breaks."""
        return text.replace(". ", ". \n").replace("\n\n", "\n\n\n")
