"""Serializable interview-session records."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Difficulty = Literal["easy", "medium", "hard"]
Status = Literal["in-progress", "completed"]
Sentiment = Literal["positive", "neutral", "negative"]

DIFFICULTIES: tuple[Difficulty, ...] = ("easy", "medium", "hard")
NEXT_TOPICS: tuple[str, ...] = ("technical", "behavioral", "problem_solving")
OPENING_TOPIC = "introduction"


class AnswerScore(BaseModel):
    """Normalized evaluation of a single answer."""

    score: int = Field(ge=0, le=100)
    feedback: str = ""
    sentiment: Sentiment = "neutral"
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)


class AnswerRecord(BaseModel):
    """One answered question; never changed once appended to a session."""

    model_config = ConfigDict(frozen=True)

    question: str
    answer: str
    timestamp: datetime
    topic: str
    difficulty: Difficulty
    score: int = Field(ge=0, le=100)
    feedback: str = ""
    sentiment: Sentiment = "neutral"
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    response_time_seconds: Optional[float] = None


class FinalScores(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    communication: int = Field(ge=0, le=100)
    technical_knowledge: int = Field(ge=0, le=100)
    problem_solving: int = Field(ge=0, le=100)
    time_management: int = Field(ge=0, le=100)
    engagement: int = Field(ge=0, le=100)
    overall: int = Field(ge=0, le=100)


class FinalReport(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    scores: FinalScores
    feedback: str
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    ai_analyzed: bool = True


class TopicAnalysis(BaseModel):
    next_topic: str
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    reasoning: str = ""


class InterviewSession(BaseModel):
    """Full session document as stored by the persistence layer."""

    session_id: str = Field(default_factory=lambda: uuid4().hex)
    subject_id: str
    domain: str
    status: Status = "in-progress"
    initial_difficulty: Difficulty = "medium"
    current_difficulty: Difficulty = "medium"
    current_topic: str = OPENING_TOPIC
    topics_covered: List[str] = Field(default_factory=lambda: [OPENING_TOPIC])
    history: List[AnswerRecord] = Field(default_factory=list)
    current_question: str
    welcome_message: str = ""
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration_minutes: Optional[float] = None
    time_limit_minutes: int = Field(default=40, ge=10, le=60)
    final_report: Optional[FinalReport] = None
    version: int = 0


__all__ = [
    "AnswerRecord",
    "AnswerScore",
    "DIFFICULTIES",
    "Difficulty",
    "FinalReport",
    "FinalScores",
    "InterviewSession",
    "NEXT_TOPICS",
    "OPENING_TOPIC",
    "Sentiment",
    "Status",
    "TopicAnalysis",
]
