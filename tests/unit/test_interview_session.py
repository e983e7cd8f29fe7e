from __future__ import annotations

import json

import pytest

from interview_session.errors import (
    ConcurrentUpdate,
    Forbidden,
    GenerationFailed,
    InvalidInput,
    NotFound,
    ScoringFailed,
    TimeExpired,
)
from interview_session.interview_session import InterviewSessionService
from storage.sqlite import get_conn


ANSWER = "I would use a dictionary keyed by user id and expire entries with a TTL."


def _raw_document(db_path: str, session_id: str):
    with get_conn(db_path) as conn:
        row = conn.execute(
            "SELECT document, version, status FROM interview_sessions WHERE session_id = ?", (session_id,)
        ).fetchone()
    return tuple(row)


def _score(value: int) -> str:
    return json.dumps({"score": value, "feedback": "ok", "sentiment": "neutral", "confidence": 0.7})


class StaleStore:
    """Serves the first snapshot it read, as a request racing another would."""

    def __init__(self, inner, session_id: str) -> None:
        self.inner = inner
        self.snapshot = inner.find(session_id)

    def find(self, session_id):
        return self.snapshot

    def create(self, session):
        return self.inner.create(session)

    def save(self, session):
        return self.inner.save(session)

    def list_for_subject(self, subject_id, *, limit=50):
        return self.inner.list_for_subject(subject_id, limit=limit)


def test_start_persists_opening_question(service, store, fake_gateway) -> None:
    result = service.start("u1", "  Python  ", time_limit_minutes=90)
    assert result.current_question == "Tell me about your experience with Python."
    assert result.welcome_message == "Welcome! Glad to have you."
    assert result.current_topic == "introduction"
    assert result.difficulty == "medium"
    assert result.time_limit_minutes == 60
    stored = store.find(result.session_id)
    assert stored.domain == "Python"
    assert stored.subject_id == "u1"
    assert stored.version == 1


@pytest.mark.parametrize("domain,difficulty", [("", None), ("   ", "easy"), ("Python", "expert")])
def test_start_rejects_bad_input(service, fake_gateway, domain, difficulty) -> None:
    with pytest.raises(InvalidInput):
        service.start("u1", domain, difficulty)
    assert fake_gateway.calls == []


def test_start_without_provider_creates_nothing(service, store, fake_gateway) -> None:
    fake_gateway.failing.add("opening")
    with pytest.raises(GenerationFailed):
        service.start("u1", "Python")
    assert store.list_for_subject("u1") == []


def test_submit_answer_records_and_advances(service, store, fake_gateway, clock) -> None:
    started = service.start("u1", "Python", "easy")
    clock.advance(4)
    result = service.submit_answer(started.session_id, "u1", ANSWER, response_time_seconds=42)

    assert result.clarification is False
    assert result.next_question == "How would you profile a slow Python service?"
    assert result.answer_score.score == 75
    assert result.questions_answered == 1
    assert result.current_topic == "technical"
    assert result.topics_covered == ["introduction", "technical"]
    assert result.progress_percent == 10
    assert result.time_remaining_minutes == 36.0
    assert result.average_score == 75.0
    assert fake_gateway.kinds() == ["opening", "scoring", "topic", "follow_up"]

    stored = store.find(started.session_id)
    assert stored.version == 2
    assert stored.current_question == result.next_question
    record = stored.history[0]
    assert record.question == started.current_question
    assert record.answer == ANSWER
    assert record.topic == "introduction"
    assert record.difficulty == "easy"
    assert record.response_time_seconds == 42


def test_submit_cleans_filler_before_scoring(service, store) -> None:
    started = service.start("u1", "Python")
    service.submit_answer(started.session_id, "u1", "um so basically   please   " + ANSWER)
    assert store.find(started.session_id).history[0].answer == "so basically " + ANSWER


def test_short_answer_asks_for_clarification(service, store, fake_gateway, tmp_db) -> None:
    started = service.start("u1", "Python")
    before = _raw_document(tmp_db, started.session_id)
    result = service.submit_answer(started.session_id, "u1", "use a cache")
    assert result.clarification is True
    assert result.next_question == "Could you expand on that with an example?"
    assert result.answer_score is None
    assert result.questions_answered == 0
    assert "scoring" not in fake_gateway.kinds()
    assert _raw_document(tmp_db, started.session_id) == before


@pytest.mark.parametrize("answer", ["ok yeah", "  ", "um uh"])
def test_junk_answer_is_rejected_without_writes(service, tmp_db, fake_gateway, answer) -> None:
    started = service.start("u1", "Python")
    before = _raw_document(tmp_db, started.session_id)
    with pytest.raises(InvalidInput):
        service.submit_answer(started.session_id, "u1", answer)
    assert _raw_document(tmp_db, started.session_id) == before
    assert fake_gateway.kinds() == ["opening"]


def test_scoring_failure_leaves_session_unchanged(service, tmp_db, fake_gateway) -> None:
    started = service.start("u1", "Python")
    before = _raw_document(tmp_db, started.session_id)
    fake_gateway.reply("scoring", "The answer was decent.")
    with pytest.raises(ScoringFailed):
        service.submit_answer(started.session_id, "u1", ANSWER)
    assert _raw_document(tmp_db, started.session_id) == before


def test_follow_up_failure_leaves_session_unchanged(service, tmp_db, fake_gateway) -> None:
    started = service.start("u1", "Python")
    before = _raw_document(tmp_db, started.session_id)
    fake_gateway.failing.add("follow_up")
    with pytest.raises(GenerationFailed):
        service.submit_answer(started.session_id, "u1", ANSWER)
    assert _raw_document(tmp_db, started.session_id) == before


def test_topic_analysis_failure_keeps_current_topic(service, fake_gateway) -> None:
    started = service.start("u1", "Python")
    fake_gateway.failing.add("topic")
    result = service.submit_answer(started.session_id, "u1", ANSWER)
    assert result.current_topic == "introduction"
    assert result.topics_covered == ["introduction"]


def test_difficulty_adapts_from_rolling_scores(service, fake_gateway) -> None:
    started = service.start("u1", "Python", "medium")
    fake_gateway.reply("scoring", _score(95))
    levels = [service.submit_answer(started.session_id, "u1", ANSWER).difficulty for _ in range(3)]
    assert levels == ["medium", "medium", "hard"]

    # Demotion waits until the low scores dominate the five-answer window
    fake_gateway.reply("scoring", _score(20))
    levels = [service.submit_answer(started.session_id, "u1", ANSWER).difficulty for _ in range(4)]
    assert levels == ["hard", "hard", "medium", "easy"]


def test_other_subject_is_forbidden(service, tmp_db) -> None:
    started = service.start("u1", "Python")
    before = _raw_document(tmp_db, started.session_id)
    with pytest.raises(Forbidden):
        service.submit_answer(started.session_id, "intruder", ANSWER)
    with pytest.raises(Forbidden):
        service.get_session(started.session_id, "intruder")
    assert _raw_document(tmp_db, started.session_id) == before


def test_unknown_session(service) -> None:
    with pytest.raises(NotFound):
        service.submit_answer("nope", "u1", ANSWER)
    with pytest.raises(InvalidInput):
        service.complete("", "u1")


def test_negative_response_time_rejected(service) -> None:
    started = service.start("u1", "Python")
    with pytest.raises(InvalidInput):
        service.submit_answer(started.session_id, "u1", ANSWER, response_time_seconds=-1)


@pytest.mark.parametrize("limit", [float("inf"), float("-inf"), float("nan")])
def test_start_rejects_non_finite_time_limit(service, store, fake_gateway, limit) -> None:
    with pytest.raises(InvalidInput):
        service.start("u1", "Python", time_limit_minutes=limit)
    assert fake_gateway.calls == []
    assert store.list_for_subject("u1") == []


@pytest.mark.parametrize("seconds", [float("inf"), float("nan")])
def test_non_finite_response_time_rejected(service, tmp_db, fake_gateway, seconds) -> None:
    started = service.start("u1", "Python")
    before = _raw_document(tmp_db, started.session_id)
    with pytest.raises(InvalidInput):
        service.submit_answer(started.session_id, "u1", ANSWER, response_time_seconds=seconds)
    assert _raw_document(tmp_db, started.session_id) == before
    assert fake_gateway.kinds() == ["opening"]


def test_time_limit_expiry_completes_session(service, store, fake_gateway, clock) -> None:
    started = service.start("u1", "Python", time_limit_minutes=10)
    clock.advance(10)
    with pytest.raises(TimeExpired) as info:
        service.submit_answer(started.session_id, "u1", ANSWER)
    assert info.value.status_code == 410
    stored = store.find(started.session_id)
    assert stored.status == "completed"
    assert stored.final_report is None
    assert stored.duration_minutes == 10.0
    assert stored.history == []
    assert "scoring" not in fake_gateway.kinds()
    with pytest.raises(NotFound):
        service.submit_answer(started.session_id, "u1", ANSWER)


def test_complete_produces_report(service, store, clock) -> None:
    started = service.start("u1", "Python")
    service.submit_answer(started.session_id, "u1", ANSWER)
    clock.advance(15)
    result = service.complete(started.session_id, "u1")
    assert result.ai_analyzed is True
    assert result.scores.overall == 80
    assert result.total_questions == 1
    assert result.duration_minutes == 15.0
    assert result.topics_covered == ["introduction", "technical"]
    stored = store.find(started.session_id)
    assert stored.status == "completed"
    assert stored.completed_at == clock.now
    assert stored.final_report.scores.overall == 80


def test_complete_twice_is_rejected(service) -> None:
    started = service.start("u1", "Python")
    service.complete(started.session_id, "u1")
    with pytest.raises(NotFound):
        service.complete(started.session_id, "u1")
    with pytest.raises(NotFound):
        service.submit_answer(started.session_id, "u1", ANSWER)


def test_complete_without_answers_skips_report_generation(service, fake_gateway) -> None:
    started = service.start("u1", "Python")
    result = service.complete(started.session_id, "u1")
    assert result.ai_analyzed is False
    assert result.scores.overall == 0
    assert "report" not in fake_gateway.kinds()


def test_complete_failure_keeps_session_open(service, store, fake_gateway) -> None:
    started = service.start("u1", "Python")
    service.submit_answer(started.session_id, "u1", ANSWER)
    fake_gateway.failing.add("report")
    with pytest.raises(GenerationFailed):
        service.complete(started.session_id, "u1")
    assert store.find(started.session_id).status == "in-progress"
    fake_gateway.failing.clear()
    assert service.complete(started.session_id, "u1").ai_analyzed is True


def test_stale_concurrent_submit_is_rejected(store, fake_gateway, clock) -> None:
    service = InterviewSessionService(store, fake_gateway, clock=clock)
    started = service.start("u1", "Python")
    racing = InterviewSessionService(StaleStore(store, started.session_id), fake_gateway, clock=clock)

    racing.submit_answer(started.session_id, "u1", ANSWER)
    with pytest.raises(ConcurrentUpdate):
        racing.submit_answer(started.session_id, "u1", "A different answer that should not be recorded at all.")
    stored = store.find(started.session_id)
    assert len(stored.history) == 1
    assert stored.history[0].answer == ANSWER


def test_get_session_summary(service, clock) -> None:
    started = service.start("u1", "Python", time_limit_minutes=20)
    service.submit_answer(started.session_id, "u1", ANSWER)
    clock.advance(5)
    summary = service.get_session(started.session_id, "u1")
    assert summary.status == "in-progress"
    assert summary.questions_answered == 1
    assert summary.progress_percent == 25
    assert summary.current_question == "How would you profile a slow Python service?"
    service.complete(started.session_id, "u1")
    done = service.get_session(started.session_id, "u1")
    assert done.status == "completed"
    assert done.current_question is None
    assert done.progress_percent == 100
    assert done.report.scores.overall == 80


def test_subject_stats(service, clock) -> None:
    assert service.subject_stats("u1").total_interviews == 0
    first = service.start("u1", "Python")
    service.submit_answer(first.session_id, "u1", ANSWER)
    service.complete(first.session_id, "u1")
    clock.advance(60)
    service.start("u1", "Go")
    service.start("u2", "Rust")
    stats = service.subject_stats("u1")
    assert stats.total_interviews == 2
    assert stats.completed_interviews == 1
    assert stats.average_overall_score == 80.0
    assert stats.best_overall_score == 80
    assert stats.last_interview_at == clock.now
