from __future__ import annotations

import hashlib
import unicodedata
from typing import TYPE_CHECKING

from models.re_models import MASK_PATTERN

if TYPE_CHECKING:
    from re import Match, Pattern

__all__: list[str] = ["StringUtils"]


class StringUtils:
    """Utility class for string manipulation used by the text pipeline.

    Provides static methods for ensuring string type, compressing whitespace, temporarily masking
    spans that other regular expressions must not touch, and hashing cache keys.
    """

    @staticmethod
    def ensure_str(value: str | None) -> str:
        """Return the value as a string, or an empty string for None."""
        if not isinstance(value, str):
            value = str(value) if value is not None else ""
        return value

    @staticmethod
    def compress_blanks(value: str) -> str:
        """Collapse runs of whitespace into single spaces and trim both ends.

        Args:
            value (str): The string to compress.

        Returns:
            str: The compressed string.
        """
        return " ".join(StringUtils.ensure_str(value).split())

    @staticmethod
    def mask(value: str, *patterns: Pattern[str]) -> tuple[str, list[str]]:
        """Replace every match of the patterns with an indexed placeholder.

        Patterns are applied in order; a later pattern never sees text already masked by an
        earlier one.

        Args:
            value (str): Text to mask.
            *patterns (Pattern[str]): Patterns whose matches must be protected.

        Returns:
            tuple[str, list[str]]: The masked text and the masked spans in placeholder order.
        """
        spans: list[str] = []

        def _replace(match: Match[str]) -> str:
            spans.append(match.group(0))
            return f"\ue000{len(spans) - 1}\ue001"

        masked: str = StringUtils.ensure_str(value)
        for pattern in patterns:
            masked = pattern.sub(_replace, masked)
        return masked, spans

    @staticmethod
    def unmask(value: str, spans: list[str]) -> str:
        """Restore placeholders produced by ``mask``. Unknown placeholders are left as they are."""
        if not spans:
            return value

        def _restore(match: Match[str]) -> str:
            index: int = int(match.group("index"))
            return spans[index] if index < len(spans) else match.group(0)

        # Spans may contain placeholders of earlier patterns, so restore until stable.
        restored: str = value
        while MASK_PATTERN.search(restored):
            updated: str = MASK_PATTERN.sub(_restore, restored)
            if updated == restored:
                break
            restored = updated
        return restored

    @staticmethod
    def normalize_text(text: str) -> str:
        """Apply Unicode NFC normalization."""
        return unicodedata.normalize("NFC", text)

    @staticmethod
    def generate_hash_key(*parts: object) -> str:
        """Build a SHA-256 key from the given parts joined by ``|``."""
        key_data: str = "|".join(StringUtils.normalize_text(str(part)) for part in parts)
        return hashlib.sha256(key_data.encode("utf-8")).hexdigest()
