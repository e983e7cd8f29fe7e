from __future__ import annotations  # LLM-backed answer scoring and final reports

import logging
from collections import Counter
from typing import Any, Dict, List, Optional

from interview_prompts import templates
from interview_session.errors import ScoringFailed
from interview_session.models import (
    NEXT_TOPICS,
    AnswerScore,
    FinalReport,
    FinalScores,
    InterviewSession,
    TopicAnalysis,
)
from interview_session.questions import generate_text
from llm_gateway import Gateway, GenerationOptions, JsonExtractionError, LlmGatewayError, clamp, extract_json_object
from llm_gateway.json_extract import coerce_number, coerce_str_list


logger = logging.getLogger(__name__)

SCORING_OPTIONS = GenerationOptions(temperature=0.2, max_tokens=400)
TOPIC_OPTIONS = GenerationOptions(temperature=0.3, max_tokens=200)
REPORT_OPTIONS = GenerationOptions(temperature=0.3, max_tokens=800)

SENTIMENTS = {"positive", "neutral", "negative"}
FEEDBACK_MAX_CHARS = 500

_CATEGORY_KEYS = {
    "communication": ("communication",),
    "technical_knowledge": ("technicalKnowledge", "technical_knowledge"),
    "problem_solving": ("problemSolving", "problem_solving"),
    "time_management": ("timeManagement", "time_management"),
    "engagement": ("engagement",),
}


def _bounded_score(value: float) -> int:
    return int(round(clamp(value, 0.0, 100.0)))


def parse_answer_score(text: str) -> AnswerScore:
    """Normalize raw scorer output; raises ``ScoringFailed`` instead of guessing."""

    try:
        data = extract_json_object(text)
    except JsonExtractionError as exc:
        logger.warning("Scoring output unparseable: %s", exc)
        raise ScoringFailed() from exc

    raw_score = coerce_number(data.get("score"))
    if raw_score is None:
        logger.warning("Scoring output missing numeric score keys=%s", sorted(data))
        raise ScoringFailed()

    confidence = coerce_number(data.get("confidence"))
    sentiment = str(data.get("sentiment", "neutral")).strip().lower()
    feedback = data.get("feedback")
    return AnswerScore(
        score=_bounded_score(raw_score),
        feedback=(feedback.strip() if isinstance(feedback, str) else "")[:FEEDBACK_MAX_CHARS],
        sentiment=sentiment if sentiment in SENTIMENTS else "neutral",  # type: ignore[arg-type]
        confidence=clamp(confidence, 0.0, 1.0) if confidence is not None else 0.5,
        strengths=coerce_str_list(data.get("strengths")),
        improvements=coerce_str_list(data.get("improvements")),
    )


def score_answer(
    gateway: Gateway,
    *,
    question: str,
    answer: str,
    topic: str,
    domain: str,
    difficulty: str,
) -> AnswerScore:
    """Score one cleaned answer against its question."""

    prompt = templates.answer_scoring(
        question=question,
        answer=answer,
        topic=topic,
        domain=domain,
        difficulty=difficulty,
    )
    result = generate_text(gateway, prompt, "analytical", SCORING_OPTIONS)
    scored = parse_answer_score(result.text)
    logger.info("Answer scored score=%d sentiment=%s model=%s", scored.score, scored.sentiment, result.model)
    return scored


def analyze_topic(
    gateway: Gateway,
    *,
    answer: str,
    current_topic: str,
    domain: str,
    difficulty: str,
) -> TopicAnalysis:
    """Pick the next topic; any failure keeps the current topic."""

    prompt = templates.topic_analysis(
        answer=answer,
        current_topic=current_topic,
        domain=domain,
        difficulty=difficulty,
    )
    try:
        result = gateway.generate(prompt, "analytical", TOPIC_OPTIONS)
        data = extract_json_object(result.text)
    except (LlmGatewayError, JsonExtractionError) as exc:
        logger.warning("Topic analysis degraded to current topic=%s: %s", current_topic, exc)
        return TopicAnalysis(next_topic=current_topic, confidence=0.5, reasoning="analysis unavailable")

    topic = str(data.get("nextTopic") or data.get("next_topic") or "").strip().lower().replace(" ", "_")
    if topic not in NEXT_TOPICS:
        logger.warning("Topic analysis returned unknown topic=%r", topic)
        return TopicAnalysis(next_topic=current_topic, confidence=0.5, reasoning="unknown topic")
    confidence = coerce_number(data.get("confidence"))
    reasoning = data.get("reasoning")
    return TopicAnalysis(
        next_topic=topic,
        confidence=clamp(confidence, 0.0, 1.0) if confidence is not None else 0.5,
        reasoning=reasoning.strip()[:200] if isinstance(reasoning, str) else "",
    )


def _top_phrases(groups: List[List[str]], limit: int = 3) -> List[str]:
    counts: Counter[str] = Counter(item for group in groups for item in group)
    return [phrase for phrase, _ in counts.most_common(limit)]


def heuristic_report(session: InterviewSession) -> FinalReport:
    """Score from coverage and recorded answer scores when no model report is usable."""

    history = session.history
    answered = len(history)
    topics = len(session.topics_covered)
    duration = session.duration_minutes or 0.0
    if not answered:
        zero = FinalScores(
            communication=0,
            technical_knowledge=0,
            problem_solving=0,
            time_management=0,
            engagement=0,
            overall=0,
        )
        return FinalReport(
            scores=zero,
            feedback="No answers were recorded in this interview.",
            ai_analyzed=False,
        )

    average = sum(record.score for record in history) / answered
    communication = min(100, answered * 10 + topics * 5)
    technical = 85 if topics >= 3 else 70 if topics >= 2 else 60
    problem_solving = 80 if topics >= 2 else 65
    limit = session.time_limit_minutes
    if duration <= limit:
        time_management = 90
    elif duration <= limit * 1.125:
        time_management = 75
    else:
        time_management = 60
    mean_confidence = sum(record.confidence for record in history) / answered
    engagement = min(100, 40 + answered * 10)

    categories = {
        "communication": _bounded_score((communication + average) / 2),
        "technical_knowledge": _bounded_score((technical + average) / 2),
        "problem_solving": _bounded_score((problem_solving + average) / 2),
        "time_management": time_management,
        "engagement": _bounded_score((engagement + mean_confidence * 100) / 2),
    }
    overall = _bounded_score(sum(categories.values()) / len(categories))
    return FinalReport(
        scores=FinalScores(overall=overall, **categories),
        feedback=(
            f"Answered {answered} questions across {topics} topics in {round(duration)} minutes "
            f"with an average answer score of {round(average)}."
        ),
        strengths=_top_phrases([record.strengths for record in history]),
        improvements=_top_phrases([record.improvements for record in history]),
        ai_analyzed=False,
    )


def _category(data: Dict[str, Any], keys: tuple[str, ...]) -> Optional[float]:
    for key in keys:
        value = coerce_number(data.get(key))
        if value is not None:
            return value
    return None


def parse_final_report(text: str, fallback: FinalReport) -> FinalReport:
    """Normalize an aggregate report; missing categories borrow from ``fallback``.

    Raises:
        JsonExtractionError: If no category score can be read at all.
    """

    data = extract_json_object(text)
    if isinstance(data.get("scores"), dict):
        data = {**data, **data["scores"]}
    found = {name: _category(data, keys) for name, keys in _CATEGORY_KEYS.items()}
    if all(value is None for value in found.values()):
        raise JsonExtractionError("report output held no category scores")

    base = fallback.scores.model_dump()
    categories = {
        name: _bounded_score(value) if value is not None else base[name] for name, value in found.items()
    }
    overall = _category(data, ("overall", "overallFit", "overall_score"))
    if overall is None:
        overall = sum(categories.values()) / len(categories)
    feedback = data.get("feedback")
    return FinalReport(
        scores=FinalScores(overall=_bounded_score(overall), **categories),
        feedback=(feedback.strip() if isinstance(feedback, str) and feedback.strip() else fallback.feedback)[:1500],
        strengths=coerce_str_list(data.get("strengths")) or fallback.strengths,
        improvements=coerce_str_list(data.get("improvements")) or fallback.improvements,
        ai_analyzed=True,
    )


def calculate_final_scores(gateway: Gateway, session: InterviewSession) -> FinalReport:
    """Build the aggregate report for a session.

    Generation failure propagates as ``GenerationFailed``; unparseable output
    falls back to the heuristic report.
    """

    fallback = heuristic_report(session)
    if not session.history:
        return fallback
    result = generate_text(gateway, templates.final_report(session), "analytical", REPORT_OPTIONS)
    try:
        return parse_final_report(result.text, fallback)
    except JsonExtractionError as exc:
        logger.warning("Final report unparseable, using heuristic scores: %s", exc)
        return fallback


__all__ = [
    "analyze_topic",
    "calculate_final_scores",
    "heuristic_report",
    "parse_answer_score",
    "parse_final_report",
    "score_answer",
]
