from __future__ import annotations  # Re-export prompt builders

from .templates import (
    answer_scoring,
    clarification,
    final_report,
    follow_up_question,
    opening_question,
    topic_analysis,
)

__all__ = [
    "answer_scoring",
    "clarification",
    "final_report",
    "follow_up_question",
    "opening_question",
    "topic_analysis",
]
