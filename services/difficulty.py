"""Adaptive difficulty policy with hysteresis."""
from __future__ import annotations

from typing import Iterable, List, Sequence

from interview_session.models import AnswerRecord, Difficulty

WINDOW = 5
MIN_SCORES = 3
STREAK = 3

PROMOTE_MEAN = {"easy": 90.0, "medium": 80.0}
PROMOTE_STREAK_ABOVE = 85
DEMOTE_MEAN = {"hard": 55.0, "medium": 45.0}
DEMOTE_STREAK_BELOW = 50

_UP = {"easy": "medium", "medium": "hard"}
_DOWN = {"hard": "medium", "medium": "easy"}


def rolling_window(history: Sequence[AnswerRecord], size: int = WINDOW) -> List[int]:
    """Return the last ``size`` recorded scores, oldest first."""

    if size <= 0:
        return []
    return [record.score for record in history[-size:]]


def rolling_average(scores: Iterable[int]) -> float:
    values = list(scores)
    if not values:
        return 0.0
    return round(sum(values) / len(values), 1)


def next_difficulty(current: Difficulty, scores: Sequence[int]) -> Difficulty:
    """Return the difficulty for the next question.

    Needs at least three scores before moving. Promotion is checked before
    demotion and each call moves at most one level. Mean thresholds are
    inclusive; the three-in-a-row triggers are strict.
    """

    window = list(scores)[-WINDOW:]
    if len(window) < MIN_SCORES:
        return current

    mean = sum(window) / len(window)
    last = window[-STREAK:]

    if current in _UP:
        if mean >= PROMOTE_MEAN[current] or all(score > PROMOTE_STREAK_ABOVE for score in last):
            return _UP[current]  # type: ignore[return-value]

    if current in _DOWN:
        if mean <= DEMOTE_MEAN[current] or all(score < DEMOTE_STREAK_BELOW for score in last):
            return _DOWN[current]  # type: ignore[return-value]

    return current


__all__ = ["next_difficulty", "rolling_average", "rolling_window"]
