from __future__ import annotations

import pytest

from models.re_models import DECIMAL_PATTERN, URL_PATTERN
from utils.string_utils import StringUtils


@pytest.mark.parametrize(("value", "expected"), [(None, ""), (5, "5"), ("text", "text")])
def test_ensure_str(value: object, expected: str) -> None:
    assert StringUtils.ensure_str(value) == expected  # type: ignore[arg-type]


def test_compress_blanks() -> None:
    assert StringUtils.compress_blanks("  a \n\t b  ") == "a b"
    assert StringUtils.compress_blanks("") == ""


def test_mask_and_unmask() -> None:
    text = "Go to https://example.com/x.y at 3.5 pm"

    masked, spans = StringUtils.mask(text, URL_PATTERN, DECIMAL_PATTERN)

    assert spans == ["https://example.com/x.y", "3.5"]
    assert "example" not in masked
    assert "." not in masked
    assert StringUtils.unmask(masked, spans) == text


def test_unmask_leaves_unknown_placeholders() -> None:
    assert StringUtils.unmask("a 5", ["x"]) == "a 5"
    assert StringUtils.unmask("plain", []) == "plain"


def test_generate_hash_key() -> None:
    key = StringUtils.generate_hash_key("a", 1, 0.5)

    assert key == StringUtils.generate_hash_key("a", 1, 0.5)
    assert key != StringUtils.generate_hash_key("a", 1, 0.6)
    assert len(key) == 64
    assert StringUtils.generate_hash_key("café") == StringUtils.generate_hash_key("café")
