from __future__ import annotations  # Interview session lifecycle: start, answer, complete

import logging
import math
from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from config.settings import Settings, settings as default_settings
from interview_evaluation import analyze_topic, calculate_final_scores, score_answer
from llm_gateway import Gateway
from observability import log_event, span
from services.answer_cleaning import validate_answer
from services.difficulty import rolling_average, rolling_window

from . import questions, transitions
from .errors import Forbidden, InvalidInput, NotFound, TimeExpired
from .models import DIFFICULTIES, AnswerScore, Difficulty, FinalReport, FinalScores, InterviewSession


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionRepository(Protocol):  # Persistence collaborator contract
    def find(self, session_id: str) -> Optional[InterviewSession]: ...

    def create(self, session: InterviewSession) -> InterviewSession: ...

    def save(self, session: InterviewSession) -> InterviewSession: ...

    def list_for_subject(self, subject_id: str, *, limit: int = 50) -> List[InterviewSession]: ...


class ResultModel(BaseModel):  # camelCase on the wire
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartResult(ResultModel):
    session_id: str
    welcome_message: str
    current_question: str
    current_topic: str
    difficulty: Difficulty
    time_limit_minutes: int


class SubmitResult(ResultModel):
    next_question: str
    clarification: bool = False
    current_topic: str
    topics_covered: List[str]
    progress_percent: int
    elapsed_minutes: float
    time_remaining_minutes: float
    questions_answered: int
    answer_score: Optional[AnswerScore] = None
    difficulty: Difficulty
    average_score: float


class CompleteResult(ResultModel):
    session_id: str
    duration_minutes: float
    scores: FinalScores
    topics_covered: List[str]
    total_questions: int
    feedback: str
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    ai_analyzed: bool


class SessionSummary(ResultModel):
    session_id: str
    status: str
    domain: str
    difficulty: Difficulty
    current_question: Optional[str]
    current_topic: str
    topics_covered: List[str]
    questions_answered: int
    average_score: float
    progress_percent: int
    time_remaining_minutes: float
    started_at: datetime
    completed_at: Optional[datetime] = None
    report: Optional[FinalReport] = None


class SubjectStats(ResultModel):
    total_interviews: int
    completed_interviews: int
    average_overall_score: Optional[float] = None
    best_overall_score: Optional[int] = None
    last_interview_at: Optional[datetime] = None


class InterviewSessionService:  # Orchestrates gateway, scorer, controller and store
    def __init__(
        self,
        store: SessionRepository,
        gateway: Gateway,
        *,
        settings: Optional[Settings] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._settings = settings or default_settings
        self._clock = clock

    @property
    def gateway(self) -> Gateway:
        return self._gateway

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------
    def start(
        self,
        subject_id: str,
        domain: Optional[str],
        difficulty: Optional[str] = None,
        time_limit_minutes: Optional[float] = None,
    ) -> StartResult:
        if not subject_id:
            raise InvalidInput("Subject id is required")
        domain = (domain or "").strip()
        if not domain:
            raise InvalidInput("Domain is required")
        level = (difficulty or "medium").strip().lower()
        if level not in DIFFICULTIES:
            raise InvalidInput(f"Difficulty must be one of: {', '.join(DIFFICULTIES)}")
        if time_limit_minutes is not None and not math.isfinite(time_limit_minutes):
            raise InvalidInput("Time limit must be a finite number of minutes")
        cfg = self._settings
        limit = transitions.clamp_time_limit(
            time_limit_minutes,
            default=cfg.DEFAULT_TIME_LIMIT_MINUTES,
            low=cfg.MIN_TIME_LIMIT_MINUTES,
            high=cfg.MAX_TIME_LIMIT_MINUTES,
        )

        with span("opening_question", None, difficulty=level):
            welcome, question = questions.opening(self._gateway, domain, level)

        session = transitions.new_session(
            subject_id=subject_id,
            domain=domain,
            difficulty=level,  # type: ignore[arg-type]
            time_limit_minutes=limit,
            welcome_message=welcome,
            opening_question=question,
            now=self._clock(),
        )
        stored = self._store.create(session)
        log_event("session_started", stored.session_id, difficulty=level, topic=stored.current_topic)
        return StartResult(
            session_id=stored.session_id,
            welcome_message=stored.welcome_message,
            current_question=stored.current_question,
            current_topic=stored.current_topic,
            difficulty=stored.current_difficulty,
            time_limit_minutes=stored.time_limit_minutes,
        )

    # ------------------------------------------------------------------
    # Submit answer
    # ------------------------------------------------------------------
    def submit_answer(
        self,
        session_id: str,
        subject_id: str,
        raw_answer: Optional[str],
        response_time_seconds: Optional[float] = None,
    ) -> SubmitResult:
        """Score an answer, adapt difficulty and ask the next question.

        Nothing is written unless every step succeeds, except the forced
        completion when the time limit has already passed.
        """

        session = self._load_active(session_id, subject_id)
        now = self._clock()

        if transitions.is_expired(session, now):
            expired = self._store.save(transitions.expire(session, now))
            log_event("time_expired", expired.session_id, outcome="completed")
            raise TimeExpired()

        if response_time_seconds is not None and not math.isfinite(response_time_seconds):
            raise InvalidInput("Response time must be a finite number of seconds")
        if response_time_seconds is not None and response_time_seconds < 0:
            raise InvalidInput("Response time cannot be negative")
        raw = raw_answer or ""
        answer = validate_answer(raw)

        if len(raw) < self._settings.SHORT_ANSWER_CHARS:
            with span("clarification", session.session_id):
                prompt = questions.clarify(self._gateway, session.current_question, answer, session.domain)
            log_event("clarification_requested", session.session_id, topic=session.current_topic)
            return self._submit_result(session, now, next_question=prompt, clarification=True)

        with span("score_answer", session.session_id, difficulty=session.current_difficulty):
            scored = score_answer(
                self._gateway,
                question=session.current_question,
                answer=answer,
                topic=session.current_topic,
                domain=session.domain,
                difficulty=session.current_difficulty,
            )

        updated = transitions.record_answer(
            session,
            answer=answer,
            score=scored,
            now=now,
            response_time_seconds=response_time_seconds,
            window=self._settings.SCORE_WINDOW,
        )
        if updated.current_difficulty != session.current_difficulty:
            logger.info(
                "Difficulty changed session=%s %s -> %s",
                session.session_id,
                session.current_difficulty,
                updated.current_difficulty,
            )

        analysis = analyze_topic(
            self._gateway,
            answer=answer,
            current_topic=session.current_topic,
            domain=session.domain,
            difficulty=updated.current_difficulty,
        )
        with span("follow_up_question", session.session_id, topic=analysis.next_topic):
            next_question = questions.follow_up(
                self._gateway,
                domain=session.domain,
                difficulty=updated.current_difficulty,
                topic=analysis.next_topic,
                recent=updated.history[-self._settings.FOLLOW_UP_CONTEXT_TURNS :],
                last_score=scored.score,
            )
        updated = transitions.advance_question(updated, question=next_question, topic=analysis.next_topic)
        saved = self._store.save(updated)
        log_event(
            "answer_scored",
            saved.session_id,
            score=scored.score,
            difficulty=saved.current_difficulty,
            topic=saved.current_topic,
        )
        return self._submit_result(saved, now, next_question=next_question, answer_score=scored)

    def _submit_result(
        self,
        session: InterviewSession,
        now: datetime,
        *,
        next_question: str,
        clarification: bool = False,
        answer_score: Optional[AnswerScore] = None,
    ) -> SubmitResult:
        status = transitions.progress(session, now)
        return SubmitResult(
            next_question=next_question,
            clarification=clarification,
            current_topic=session.current_topic,
            topics_covered=list(session.topics_covered),
            progress_percent=status.percent,
            elapsed_minutes=status.elapsed_minutes,
            time_remaining_minutes=status.remaining_minutes,
            questions_answered=len(session.history),
            answer_score=answer_score,
            difficulty=session.current_difficulty,
            average_score=rolling_average(rolling_window(session.history, self._settings.SCORE_WINDOW)),
        )

    # ------------------------------------------------------------------
    # Complete
    # ------------------------------------------------------------------
    def complete(self, session_id: str, subject_id: str) -> CompleteResult:
        """Produce the final report, then seal the session.

        The status flips only after the report exists, so a failed report
        leaves the session in progress and the call can be retried.
        """

        session = self._load_active(session_id, subject_id)
        now = self._clock()
        with span("final_report", session.session_id):
            report = calculate_final_scores(self._gateway, transitions.with_duration(session, now))
        saved = self._store.save(transitions.finalize(session, report, now))
        log_event(
            "session_completed",
            saved.session_id,
            score=report.scores.overall,
            outcome="ai" if report.ai_analyzed else "heuristic",
        )
        return CompleteResult(
            session_id=saved.session_id,
            duration_minutes=saved.duration_minutes or 0.0,
            scores=report.scores,
            topics_covered=list(saved.topics_covered),
            total_questions=len(saved.history),
            feedback=report.feedback,
            strengths=report.strengths,
            improvements=report.improvements,
            ai_analyzed=report.ai_analyzed,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    def get_session(self, session_id: str, subject_id: str) -> SessionSummary:
        session = self._load_owned(session_id, subject_id)
        now = self._clock()
        status = transitions.progress(session, now)
        active = session.status == "in-progress"
        return SessionSummary(
            session_id=session.session_id,
            status=session.status,
            domain=session.domain,
            difficulty=session.current_difficulty,
            current_question=session.current_question if active else None,
            current_topic=session.current_topic,
            topics_covered=list(session.topics_covered),
            questions_answered=len(session.history),
            average_score=rolling_average(record.score for record in session.history),
            progress_percent=status.percent if active else 100,
            time_remaining_minutes=status.remaining_minutes if active else 0.0,
            started_at=session.started_at,
            completed_at=session.completed_at,
            report=session.final_report,
        )

    def subject_stats(self, subject_id: str) -> SubjectStats:
        if not subject_id:
            raise InvalidInput("Subject id is required")
        sessions = self._store.list_for_subject(subject_id)
        completed = [s for s in sessions if s.status == "completed"]
        overall = [s.final_report.scores.overall for s in completed if s.final_report is not None]
        return SubjectStats(
            total_interviews=len(sessions),
            completed_interviews=len(completed),
            average_overall_score=rolling_average(overall) if overall else None,
            best_overall_score=max(overall) if overall else None,
            last_interview_at=max((s.started_at for s in sessions), default=None),
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def _load_owned(self, session_id: str, subject_id: str) -> InterviewSession:
        if not session_id:
            raise InvalidInput("Session id is required")
        session = self._store.find(session_id)
        if session is None:
            raise NotFound()
        if session.subject_id != subject_id:
            logger.warning("Subject %s attempted to access session %s", subject_id, session_id)
            raise Forbidden()
        return session

    def _load_active(self, session_id: str, subject_id: str) -> InterviewSession:
        session = self._load_owned(session_id, subject_id)
        if session.status != "in-progress":
            raise NotFound()
        return session


__all__ = [
    "CompleteResult",
    "InterviewSessionService",
    "SessionRepository",
    "SessionSummary",
    "StartResult",
    "SubjectStats",
    "SubmitResult",
    "utc_now",
]
