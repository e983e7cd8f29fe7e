from .evaluation import (
    analyze_topic,
    calculate_final_scores,
    heuristic_report,
    parse_answer_score,
    parse_final_report,
    score_answer,
)

__all__ = [
    "analyze_topic",
    "calculate_final_scores",
    "heuristic_report",
    "parse_answer_score",
    "parse_final_report",
    "score_answer",
]
