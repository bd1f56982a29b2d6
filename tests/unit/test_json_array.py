"""Unit tests for locating the JSON array inside free-form model output."""

import pytest

from order_intake.extraction.normalizer import find_json_array


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ('[{"a": 1}]', '[{"a": 1}]'),
        ('Here you go:\n[{"a": 1}]\nThanks!', '[{"a": 1}]'),
        ('```json\n[{"a": 1}, {"b": 2}]\n```', '[{"a": 1}, {"b": 2}]'),
        ("[]", "[]"),
        ('[{"sizes": [1, 2, 3]}] and [4]', '[{"sizes": [1, 2, 3]}]'),
    ],
)
def test_finds_first_balanced_array(text: str, expected: str) -> None:
    assert find_json_array(text) == expected


def test_brackets_inside_strings_are_ignored() -> None:
    text = '[{"notes": "see ] and [ here", "style_number": "A\\"]"}] trailing ]'

    assert find_json_array(text) == '[{"notes": "see ] and [ here", "style_number": "A\\"]"}]'


def test_no_array_returns_none() -> None:
    assert find_json_array("I could not find any line items in this document.") is None


def test_truncated_array_returns_none() -> None:
    assert find_json_array('[{"vendor_name": "Acme", "sizes": [1, 2]') is None


def test_returns_bracketed_prose_when_it_comes_first() -> None:
    """The first balanced array is returned even if it is not JSON."""
    assert find_json_array("[note] then [1]") == "[note]"
