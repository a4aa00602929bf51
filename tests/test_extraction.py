"""Tests for JSON extraction from model output."""

import pytest

from ojas_pulse.extraction import ExtractionError, extract_json, strip_fences


def test_plain_json() -> None:
    assert extract_json('{"queries": ["a", "b"]}') == {"queries": ["a", "b"]}


def test_json_fence() -> None:
    text = '```json\n{"title": "x"}\n```'
    assert extract_json(text) == {"title": "x"}


def test_bare_fence() -> None:
    text = '```\n{"title": "x"}\n```'
    assert extract_json(text) == {"title": "x"}


def test_prose_around_object() -> None:
    text = 'Here is what I found:\n{"topics": []}\nLet me know if you need more.'
    assert extract_json(text) == {"topics": []}


def test_fence_with_trailing_prose() -> None:
    text = 'Sure!\n```json\n{"a": 1}\n```\nThat is all.'
    assert extract_json(text) == {"a": 1}


def test_unterminated_fence() -> None:
    assert extract_json('```json\n{"a": 1}') == {"a": 1}


def test_control_characters_removed() -> None:
    text = '{"title":\u0007 "Heat\u0000wave"}'
    assert extract_json(text) == {"title": "Heatwave"}


def test_newlines_between_tokens_are_dropped() -> None:
    assert extract_json('{\n  "a": 1,\n  "b": [\n    2\n  ]\n}') == {"a": 1, "b": [2]}


@pytest.mark.parametrize("text", ["", "   ", None])
def test_empty_raises(text: str | None) -> None:
    with pytest.raises(ExtractionError, match="empty"):
        extract_json(text)


def test_no_object_raises() -> None:
    with pytest.raises(ExtractionError, match="no JSON object"):
        extract_json("I could not find anything relevant.")


def test_malformed_object_raises() -> None:
    with pytest.raises(ExtractionError, match="invalid JSON"):
        extract_json('{"a": 1,, }')


def test_array_is_not_an_object() -> None:
    with pytest.raises(ExtractionError, match="expected a JSON object"):
        extract_json("[1, 2, 3]")


def test_extraction_error_is_value_error() -> None:
    assert issubclass(ExtractionError, ValueError)


def test_strip_fences_passthrough() -> None:
    assert strip_fences('  {"a": 1}  ') == '{"a": 1}'
