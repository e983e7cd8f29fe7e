"""Pure transforms over ``InterviewSession``; none of them mutate their input."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from services.difficulty import next_difficulty, rolling_window

from .models import (
    OPENING_TOPIC,
    AnswerRecord,
    AnswerScore,
    Difficulty,
    FinalReport,
    InterviewSession,
)


@dataclass(frozen=True)
class Progress:
    elapsed_minutes: float
    remaining_minutes: float
    percent: int


def clamp_time_limit(value: Optional[float], *, default: int = 40, low: int = 10, high: int = 60) -> int:
    if value is None:
        return default
    return max(low, min(high, int(round(value))))


def new_session(
    *,
    subject_id: str,
    domain: str,
    difficulty: Difficulty,
    time_limit_minutes: int,
    welcome_message: str,
    opening_question: str,
    now: datetime,
) -> InterviewSession:
    return InterviewSession(
        subject_id=subject_id,
        domain=domain,
        initial_difficulty=difficulty,
        current_difficulty=difficulty,
        current_topic=OPENING_TOPIC,
        topics_covered=[OPENING_TOPIC],
        current_question=opening_question,
        welcome_message=welcome_message,
        started_at=now,
        time_limit_minutes=time_limit_minutes,
    )


def elapsed_minutes(session: InterviewSession, now: datetime) -> float:
    return max(0.0, (now - session.started_at).total_seconds() / 60.0)


def is_expired(session: InterviewSession, now: datetime) -> bool:
    return elapsed_minutes(session, now) >= session.time_limit_minutes


def progress(session: InterviewSession, now: datetime) -> Progress:
    elapsed = elapsed_minutes(session, now)
    limit = session.time_limit_minutes
    return Progress(
        elapsed_minutes=round(elapsed, 2),
        remaining_minutes=round(max(0.0, limit - elapsed), 2),
        percent=int(round(min(elapsed / limit * 100.0, 100.0))),
    )


def expire(session: InterviewSession, now: datetime) -> InterviewSession:
    """Seal a session whose time limit has passed; no report is attached."""

    return session.model_copy(
        update={
            "status": "completed",
            "completed_at": now,
            "duration_minutes": round(elapsed_minutes(session, now), 2),
        }
    )


def record_answer(
    session: InterviewSession,
    *,
    answer: str,
    score: AnswerScore,
    now: datetime,
    response_time_seconds: Optional[float] = None,
    window: int = 5,
) -> InterviewSession:
    """Append the scored answer and move difficulty from the new rolling window."""

    record = AnswerRecord(
        question=session.current_question,
        answer=answer,
        timestamp=now,
        topic=session.current_topic,
        difficulty=session.current_difficulty,
        score=score.score,
        feedback=score.feedback,
        sentiment=score.sentiment,
        confidence=score.confidence,
        strengths=list(score.strengths),
        improvements=list(score.improvements),
        response_time_seconds=response_time_seconds,
    )
    history = [*session.history, record]
    difficulty = next_difficulty(session.current_difficulty, rolling_window(history, window))
    return session.model_copy(update={"history": history, "current_difficulty": difficulty})


def advance_question(session: InterviewSession, *, question: str, topic: str) -> InterviewSession:
    topics = list(session.topics_covered)
    if topic not in topics:
        topics.append(topic)
    return session.model_copy(
        update={"current_question": question, "current_topic": topic, "topics_covered": topics}
    )


def with_duration(session: InterviewSession, now: datetime) -> InterviewSession:
    return session.model_copy(update={"duration_minutes": round(elapsed_minutes(session, now), 2)})


def finalize(session: InterviewSession, report: FinalReport, now: datetime) -> InterviewSession:
    return session.model_copy(
        update={
            "status": "completed",
            "completed_at": now,
            "duration_minutes": round(elapsed_minutes(session, now), 2),
            "final_report": report,
        }
    )


__all__ = [
    "Progress",
    "advance_question",
    "clamp_time_limit",
    "elapsed_minutes",
    "expire",
    "finalize",
    "is_expired",
    "new_session",
    "progress",
    "record_answer",
    "with_duration",
]
