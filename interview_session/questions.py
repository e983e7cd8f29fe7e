"""Question generation steps backed by the gateway."""
from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from interview_prompts import templates
from llm_gateway import Gateway, GenerationOptions, GenerationResult, JsonExtractionError, LlmGatewayError, TaskHint
from llm_gateway.json_extract import extract_json_object, strip_code_fences

from .errors import GenerationFailed
from .models import NEXT_TOPICS, OPENING_TOPIC, AnswerRecord

logger = logging.getLogger(__name__)

DEFAULT_WELCOME = "Welcome to your mock interview! Let's get started."

_TOPIC_HINTS = frozenset(NEXT_TOPICS + (OPENING_TOPIC,))


def generate_text(
    gateway: Gateway,
    prompt: str,
    task_hint: TaskHint,
    options: Optional[GenerationOptions] = None,
) -> GenerationResult:
    """Call the gateway, turning provider exhaustion into ``GenerationFailed``."""

    try:
        return gateway.generate(prompt, task_hint, options)
    except LlmGatewayError as exc:
        logger.error("Generation failed hint=%s: %s", task_hint, exc)
        raise GenerationFailed() from exc


def _question_from(text: str) -> str:
    """Read ``question`` from JSON output, or accept plain text as the question."""
    try:
        data = extract_json_object(text)
    except JsonExtractionError:
        plain = strip_code_fences(text).strip().strip('"').strip()
        if not plain:
            raise GenerationFailed()
        logger.warning("Question output was not JSON; using plain text")
        return plain
    question = data.get("question")
    if not isinstance(question, str) or not question.strip():
        raise GenerationFailed()
    return question.strip()


def opening(gateway: Gateway, domain: str, difficulty: str) -> Tuple[str, str]:
    result = generate_text(
        gateway,
        templates.opening_question(domain, difficulty),
        "introduction",
        GenerationOptions(temperature=0.7, max_tokens=300),
    )
    question = _question_from(result.text)
    welcome = DEFAULT_WELCOME
    try:
        data = extract_json_object(result.text)
        if isinstance(data.get("welcomeMessage"), str) and data["welcomeMessage"].strip():
            welcome = data["welcomeMessage"].strip()
    except JsonExtractionError:
        pass
    return welcome, question


def clarify(gateway: Gateway, question: str, answer: str, domain: str) -> str:
    result = generate_text(
        gateway,
        templates.clarification(question, answer, domain),
        "creative",
        GenerationOptions(temperature=0.6, max_tokens=150),
    )
    return _question_from(result.text)


def follow_up(
    gateway: Gateway,
    *,
    domain: str,
    difficulty: str,
    topic: str,
    recent: Sequence[AnswerRecord],
    last_score: Optional[int],
) -> str:
    prompt = templates.follow_up_question(
        domain=domain,
        difficulty=difficulty,
        topic=topic,
        recent=recent,
        last_score=last_score,
    )
    hint: TaskHint = topic if topic in _TOPIC_HINTS else "creative"  # type: ignore[assignment]
    result = generate_text(gateway, prompt, hint, GenerationOptions(temperature=0.8, max_tokens=300))
    return _question_from(result.text)


__all__ = ["DEFAULT_WELCOME", "clarify", "follow_up", "generate_text", "opening"]
