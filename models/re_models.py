"""Regular expressions for text segmentation and speech preprocessing.

Patterns for URLs, decimal numbers, sentence fragments, abbreviations, and language subtags.
"""

from __future__ import annotations

import re
from re import Pattern
from typing import Final

__all__: list[str] = [
    "ABBREVIATION_PATTERN",
    "DECIMAL_PATTERN",
    "INTEGER_PATTERN",
    "MASK_PATTERN",
    "REGION_SUBTAG_PATTERN",
    "SCRIPT_SUBTAG_PATTERN",
    "SENTENCE_PATTERN",
    "SENTENCE_TERMINATORS",
    "URL_PATTERN",
    "WORD_PATTERN",
]

SENTENCE_TERMINATORS: Final[str] = ".!?。！？"

# Explicit URLs only; bare "example.com" is not protected because "end.Next" would match too.
# Examples: "http://example.com", "https://www.example.com/path?q=1", "www.example.com/path"
URL_PATTERN: Final[Pattern[str]] = re.compile(
    r"(?:https?://|www\.)[^\s<>\"']*[^\s<>\"'.,!?;:)。！？]",
    re.IGNORECASE,
)

# Decimal numbers whose dot must not end a sentence
# Examples: "3.14", "0.5", "1,024.75"
DECIMAL_PATTERN: Final[Pattern[str]] = re.compile(r"\d+(?:,\d{3})*\.\d+")

# Placeholder inserted while a URL or number is masked. Uses private-use code points.
# Example: "\ue0003\ue001" stands for the fourth masked span
MASK_PATTERN: Final[Pattern[str]] = re.compile("\\ue000(?P<index>\\d+)\\ue001")

# One sentence: a run of non-terminators followed by the terminator run, or the trailing remainder
# Examples: "Hello world.", " Really?!", "…and no terminator"
SENTENCE_PATTERN: Final[Pattern[str]] = re.compile(
    rf"[^{re.escape(SENTENCE_TERMINATORS)}]*[{re.escape(SENTENCE_TERMINATORS)}]+"
    rf"|[^{re.escape(SENTENCE_TERMINATORS)}]+$"
)

# Standalone integers that are not part of a decimal number
# Examples: "42" in "page 42", not "3" or "14" in "3.14"
INTEGER_PATTERN: Final[Pattern[str]] = re.compile(r"(?<![\d.,\ue000])\d+(?![\d]|[.,]\d)")

# Common English abbreviations expanded before synthesis
# Examples: "Dr.", "e.g.", "vs."
ABBREVIATION_PATTERN: Final[Pattern[str]] = re.compile(
    r"(?<![\w.])(?P<abbr>Dr|Mr|Mrs|Ms|Prof|etc|e\.g|i\.e|vs)\.",
)

WORD_PATTERN: Final[Pattern[str]] = re.compile(r"\w", re.UNICODE)

# BCP 47 subtags after the primary language
# Examples: "Hans" (script), "US" / "419" (region)
SCRIPT_SUBTAG_PATTERN: Final[Pattern[str]] = re.compile(r"^[A-Za-z]{4}$")
REGION_SUBTAG_PATTERN: Final[Pattern[str]] = re.compile(r"^(?:[A-Za-z]{2}|\d{3})$")
