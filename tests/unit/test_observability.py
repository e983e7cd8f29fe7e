from __future__ import annotations

import json
import logging

import pytest

from config.settings import Settings
from observability import configure_logging, log_event, span


@pytest.fixture
def event_records():
    records = []

    class _Collect(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(record)

    events = logging.getLogger("interview.events")
    handler = _Collect()
    events.addHandler(handler)
    previous = events.level
    events.setLevel(logging.INFO)
    try:
        yield records
    finally:
        events.removeHandler(handler)
        events.setLevel(previous)


def test_log_event_emits_human_and_json_lines(event_records) -> None:
    log_event("answer_scored", "s1", score=80, topic="technical")
    human = [r for r in event_records if not r.is_json]
    machine = [r for r in event_records if r.is_json]
    assert human[0].getMessage() == "session=s1 kind=answer_scored topic=technical score=80"
    payload = json.loads(machine[0].getMessage())
    assert payload["kind"] == "answer_scored"
    assert payload["score"] == 80


def test_span_records_outcome(event_records) -> None:
    with span("score_answer", "s1"):
        pass
    with pytest.raises(ValueError):
        with span("follow_up_question", "s1"):
            raise ValueError("boom")
    payloads = [json.loads(r.getMessage()) for r in event_records if r.is_json]
    assert [(p["node"], p["outcome"]) for p in payloads] == [
        ("score_answer", "ok"),
        ("follow_up_question", "error"),
    ]
    assert all(isinstance(p["ms"], int) for p in payloads)


def test_file_logs_are_written(tmp_path) -> None:
    root = logging.getLogger()
    saved = list(root.handlers)
    log_file = tmp_path / "logs" / "events.log"
    cfg = Settings(_env_file=None, ENABLE_FILE_LOGS=True, LOG_FILE=str(log_file))
    configure_logging(cfg, force=True)
    try:
        log_event("session_started", "s9", difficulty="easy")
        for handler in logging.getLogger("interview.events").handlers:
            handler.flush()
        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert json.loads(lines[-1])["session_id"] == "s9"
        human = (tmp_path / "logs" / "events-human.log").read_text(encoding="utf-8")
        assert "kind=session_started" in human
    finally:
        configure_logging(Settings(_env_file=None), force=True)
        root.handlers[:] = saved
