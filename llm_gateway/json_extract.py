"""Defensive parsing of JSON objects embedded in free-form model output."""
from __future__ import annotations

import json
from typing import Any, Dict, Optional


class JsonExtractionError(ValueError):
    """Raised when no JSON object can be recovered from model output."""


def strip_code_fences(content: str) -> str:
    """Remove markdown code fences wrapped around model output."""

    text = content.strip()
    if text.startswith("```"):
        lines = text.splitlines()
        if lines:
            lines = lines[1:]
            while lines and lines[0].strip() == "":
                lines = lines[1:]
            while lines and lines[-1].strip() == "":
                lines = lines[:-1]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            text = "\n".join(lines).strip()
    return text.replace("```json", "").replace("```", "").strip()


def first_balanced_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` span, ignoring braces inside strings."""

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        # Unbalanced from this brace; try the next opening brace
        start = text.find("{", start + 1)
    return None


def extract_json_object(content: Optional[str]) -> Dict[str, Any]:
    """Strip fences, take the first balanced object and parse it.

    Raises:
        JsonExtractionError: If the text holds no parseable JSON object.
    """

    if not content or not content.strip():
        raise JsonExtractionError("model output was empty")
    cleaned = strip_code_fences(content)
    span = first_balanced_object(cleaned)
    if span is None:
        raise JsonExtractionError("no JSON object found in model output")
    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as exc:
        raise JsonExtractionError(f"invalid JSON in model output: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise JsonExtractionError("model output JSON was not an object")
    return parsed


def clamp(value: float, low: float, high: float) -> float:
    """Bound ``value`` to the closed range ``[low, high]``."""

    return max(low, min(high, value))


def coerce_number(value: Any) -> Optional[float]:
    """Best-effort numeric conversion for untrusted fields; ``None`` when impossible."""

    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().rstrip("%"))
        except ValueError:
            return None
    else:
        return None
    if number != number:  # NaN
        return None
    return number


def coerce_str_list(value: Any, *, limit: int = 5, max_chars: int = 200) -> list[str]:
    """Normalize an untrusted list-of-strings field."""

    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    items: list[str] = []
    for entry in value:
        if not isinstance(entry, str):
            continue
        text = entry.strip()
        if text:
            items.append(text[:max_chars])
        if len(items) >= limit:
            break
    return items


__all__ = [
    "JsonExtractionError",
    "clamp",
    "coerce_number",
    "coerce_str_list",
    "extract_json_object",
    "first_balanced_object",
    "strip_code_fences",
]
