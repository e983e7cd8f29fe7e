import json
import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.settings import settings
from interview_session.interview_session import InterviewSessionService
from llm_gateway import GenerationResult, LlmGatewayError
from storage.migrate import migrate
from storage.sessions import SessionStore


PROMPT_MARKERS = {
    "opening": "Greet the candidate briefly",
    "clarification": "very short reply",
    "follow_up": "natural follow-up question",
    "scoring": "impartial interview evaluator",
    "topic": "choose the best topic to explore next",
    "report": "final evaluation of a",
}

DEFAULT_REPLIES = {
    "opening": json.dumps(
        {"welcomeMessage": "Welcome! Glad to have you.", "question": "Tell me about your experience with Python."}
    ),
    "clarification": json.dumps({"question": "Could you expand on that with an example?"}),
    "follow_up": json.dumps({"question": "How would you profile a slow Python service?"}),
    "scoring": json.dumps(
        {
            "score": 75,
            "feedback": "Solid answer with room for detail.",
            "sentiment": "positive",
            "confidence": 0.8,
            "strengths": ["clear structure"],
            "improvements": ["more depth"],
        }
    ),
    "topic": json.dumps({"nextTopic": "technical", "confidence": 0.7, "reasoning": "go deeper"}),
    "report": json.dumps(
        {
            "communication": 80,
            "technicalKnowledge": 70,
            "problemSolving": 75,
            "timeManagement": 90,
            "engagement": 85,
            "overall": 80,
            "feedback": "Good interview overall.",
            "strengths": ["communication"],
            "improvements": ["system design depth"],
        }
    ),
}


def prompt_kind(prompt: str) -> str:
    for kind, marker in PROMPT_MARKERS.items():
        if marker in prompt:
            return kind
    return "unknown"


class FakeGateway:
    """Gateway double answering by prompt kind and recording every call."""

    def __init__(self) -> None:
        self.replies = {kind: [text] for kind, text in DEFAULT_REPLIES.items()}
        self.failing: set = set()
        self.calls: list = []
        self.probed = 0

    def reply(self, kind: str, *texts: str) -> None:
        self.replies[kind] = list(texts)

    def probe(self) -> bool:
        self.probed += 1
        return True

    def kinds(self) -> list:
        return [kind for kind, _ in self.calls]

    def generate(self, prompt, task_hint="general", options=None) -> GenerationResult:
        kind = prompt_kind(prompt)
        self.calls.append((kind, task_hint))
        if kind in self.failing:
            raise LlmGatewayError(f"All providers failed. Tried: fake/{kind} error: down", [f"fake/{kind} error: down"])
        queue = self.replies[kind]
        text = queue.pop(0) if len(queue) > 1 else queue[0]
        return GenerationResult(text=text, provider="fake", model="fake-model", elapsed_ms=1)


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now = self.now + timedelta(minutes=minutes)


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text or (json.dumps(payload) if payload is not None else "")

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload


class FakeHttpClient:
    """Routes requests by method, URL suffix and optional model name."""

    def __init__(self) -> None:
        self.routes: list = []
        self.calls: list = []

    def on(self, method: str, suffix: str, *responses, model=None) -> "FakeHttpClient":
        self.routes.append((method, suffix, model, list(responses)))
        return self

    def _dispatch(self, method: str, url: str, payload, headers, timeout):
        self.calls.append({"method": method, "url": url, "json": payload, "headers": headers, "timeout": timeout})
        wanted = (payload or {}).get("model")
        for route_method, suffix, model, queue in self.routes:
            if route_method != method or not url.endswith(suffix):
                continue
            if model is not None and model != wanted:
                continue
            item = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(item, Exception):
                raise item
            return item
        return FakeResponse(404, {"error": f"model '{wanted}' not found"})

    def post(self, url, *, json, headers, timeout):
        return self._dispatch("POST", url, json, headers, timeout)

    def get(self, url, *, headers, timeout):
        return self._dispatch("GET", url, None, headers, timeout)


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def http_client():
    return FakeHttpClient()


@pytest.fixture
def store(tmp_db):
    return SessionStore(Path(tmp_db))


@pytest.fixture
def service(store, fake_gateway, clock):
    return InterviewSessionService(store, fake_gateway, clock=clock)


@pytest.fixture
def fake_response():
    return FakeResponse
