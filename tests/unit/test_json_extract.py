from __future__ import annotations

import pytest

from llm_gateway import JsonExtractionError, clamp, extract_json_object
from llm_gateway.json_extract import coerce_number, coerce_str_list, first_balanced_object


def test_extract_plain_object() -> None:
    assert extract_json_object('{"score": 80}') == {"score": 80}


def test_extract_from_code_fence_and_prose() -> None:
    text = "Here is my evaluation:\n```json\n{\"score\": 72, \"feedback\": \"ok\"}\n```\nHope this helps!"
    assert extract_json_object(text) == {"score": 72, "feedback": "ok"}


def test_braces_inside_strings_do_not_end_the_object() -> None:
    text = 'Result: {"feedback": "use {} for dicts and \\"quotes\\"", "score": 60} trailing }'
    assert extract_json_object(text) == {"feedback": 'use {} for dicts and "quotes"', "score": 60}


def test_first_object_wins() -> None:
    assert extract_json_object('{"a": 1} {"b": 2}') == {"a": 1}


def test_unbalanced_prefix_is_skipped() -> None:
    assert first_balanced_object('{ broken {"ok": true}') == '{"ok": true}'


@pytest.mark.parametrize(
    "text",
    [None, "", "   ", "no json here", "[1, 2, 3]", '{"score": 80', "{'single': 'quotes'}"],
)
def test_extract_rejects_unusable_output(text) -> None:
    with pytest.raises(JsonExtractionError):
        extract_json_object(text)


def test_clamp_bounds() -> None:
    assert clamp(150, 0, 100) == 100
    assert clamp(-3, 0, 100) == 0
    assert clamp(0.4, 0.0, 1.0) == 0.4


def test_coerce_number_handles_untrusted_values() -> None:
    assert coerce_number(7) == 7.0
    assert coerce_number("85%") == 85.0
    assert coerce_number(" 3.5 ") == 3.5
    assert coerce_number(True) is None
    assert coerce_number("high") is None
    assert coerce_number(float("nan")) is None
    assert coerce_number(None) is None


def test_coerce_str_list_filters_and_limits() -> None:
    assert coerce_str_list("single") == ["single"]
    assert coerce_str_list([" a ", 3, "", "b"]) == ["a", "b"]
    assert coerce_str_list(["x"] * 10, limit=3) == ["x", "x", "x"]
    assert coerce_str_list({"not": "a list"}) == []
