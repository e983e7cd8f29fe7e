"""Answer clean-up and plausibility checks applied before scoring."""
from __future__ import annotations

import re
from typing import List

from interview_session.errors import InvalidInput

MIN_ANSWER_CHARS = 3
NOISE_MAX_TOKENS = 5

# Voice-control commands and hesitation sounds that carry no content
FILLER_PATTERNS: List[re.Pattern[str]] = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\b(?:start|stop|pause|resume)(?:\s+(?:recording|answer|answering|interview))?\b",
        r"\bnext\s+question\b",
        r"\bplease\b",
        r"\b(?:u+m+|u+h+|e+r+m+|h+m+|a+h+)\b",
    )
]

NOISE_WORDS = frozenset(
    {
        "ok",
        "okay",
        "k",
        "yeah",
        "yea",
        "yes",
        "yep",
        "yup",
        "no",
        "nope",
        "nah",
        "sure",
        "right",
        "alright",
        "fine",
        "cool",
        "like",
        "so",
        "well",
        "hello",
        "hi",
        "hey",
        "thanks",
        "thank",
        "you",
        "hmm",
        "huh",
    }
)

_WHITESPACE = re.compile(r"\s+")
_TOKEN_STRIP = ".,!?;:'\"()[]-"


def clean_answer(raw: str) -> str:
    """Trim, drop filler tokens and collapse whitespace."""

    text = (raw or "").strip()
    for pattern in FILLER_PATTERNS:
        text = pattern.sub(" ", text)
    text = _WHITESPACE.sub(" ", text).strip()
    return text.strip(" ,;")


def is_noise(text: str) -> bool:
    tokens = [token.strip(_TOKEN_STRIP).lower() for token in text.split()]
    tokens = [token for token in tokens if token]
    if not tokens:
        return True
    return len(tokens) <= NOISE_MAX_TOKENS and all(token in NOISE_WORDS for token in tokens)


def validate_answer(raw: str) -> str:
    """Return the cleaned answer or raise ``InvalidInput`` for junk input."""

    cleaned = clean_answer(raw)
    if len(cleaned) < MIN_ANSWER_CHARS:
        raise InvalidInput("Answer is too short. Please provide a more detailed response.")
    if is_noise(cleaned):
        raise InvalidInput("Answer contains only filler words. Please answer the question.")
    return cleaned


__all__ = ["FILLER_PATTERNS", "NOISE_WORDS", "clean_answer", "is_noise", "validate_answer"]
