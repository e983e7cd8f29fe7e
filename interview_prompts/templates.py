from __future__ import annotations  # Prompt builders for interview generation steps

from textwrap import dedent
from typing import Optional, Sequence

from interview_session.models import AnswerRecord, InterviewSession

_JSON_ONLY = (
    "Respond with a single JSON object only. Do not wrap it in markdown, "
    "do not add commentary before or after it."
)

DIFFICULTY_GUIDANCE = {
    "easy": "fundamental concepts and definitions a beginner should know",
    "medium": "practical application, trade-offs and common pitfalls",
    "hard": "deep internals, system-level reasoning, edge cases and optimization",
}


def _format_exchanges(history: Sequence[AnswerRecord]) -> str:
    if not history:
        return "(no previous exchanges)"
    return "\n\n".join(f"Interviewer: {item.question}\nCandidate: {item.answer}" for item in history)


def opening_question(domain: str, difficulty: str) -> str:  # Welcome message plus first question
    return dedent(
        f"""
        You are a friendly interviewer starting a {difficulty} level mock interview for the domain "{domain}".
        Greet the candidate briefly and ask one opening question that invites them to introduce
        themselves and their experience with {domain}.

        {_JSON_ONLY}
        Schema: {{"welcomeMessage": "<one or two sentences>", "question": "<the opening question>"}}
        """
    ).strip()


def clarification(question: str, answer: str, domain: str) -> str:  # Nudge for an incomplete answer
    return dedent(
        f"""
        You are interviewing a candidate for "{domain}". They gave a very short reply that looks incomplete.

        Question asked: {question}
        Candidate reply: {answer}

        Ask one short, encouraging clarification that invites them to expand on their answer.
        Do not ask a new question and do not evaluate the reply.

        {_JSON_ONLY}
        Schema: {{"question": "<clarification prompt>"}}
        """
    ).strip()


def follow_up_question(
    *,
    domain: str,
    difficulty: str,
    topic: str,
    recent: Sequence[AnswerRecord],
    last_score: Optional[int],
) -> str:  # Next question at the adapted difficulty and topic
    return dedent(
        """
        You are conducting a {difficulty} level {domain} interview.

        Recent conversation (oldest first):
        {exchanges}

        Score of the last answer: {score_line}
        Next topic: {topic}
        Target difficulty: {difficulty} ({focus})

        Ask exactly one natural follow-up question that builds on the candidate's last answer,
        moves the conversation towards the next topic and matches the target difficulty.
        Do not repeat a question that was already asked.

        {json_only}
        Schema: {{"question": "<the next question>"}}
        """
    ).strip().format(
        difficulty=difficulty,
        domain=domain,
        exchanges=_format_exchanges(recent),
        score_line=f"{last_score}/100" if last_score is not None else "not scored yet",
        topic=topic.replace("_", " "),
        focus=DIFFICULTY_GUIDANCE.get(difficulty, DIFFICULTY_GUIDANCE["medium"]),
        json_only=_JSON_ONLY,
    )


def answer_scoring(*, question: str, answer: str, topic: str, domain: str, difficulty: str) -> str:
    return dedent(
        f"""
        You are an impartial interview evaluator for a {difficulty} level {domain} interview.

        Topic: {topic}
        Question: {question}
        Candidate answer:
        {answer}

        Score the answer from 0 to 100 for correctness, depth and clarity relative to the difficulty.
        Judge only what was said; an off-topic or empty answer scores below 30.

        {_JSON_ONLY}
        Schema:
        {{
          "score": <integer 0-100>,
          "feedback": "<one or two sentences of actionable feedback>",
          "sentiment": "positive" | "neutral" | "negative",
          "confidence": <number 0.0-1.0, how sure you are of the score>,
          "strengths": ["<short phrase>", ...],
          "improvements": ["<short phrase>", ...]
        }}
        """
    ).strip()


def topic_analysis(*, answer: str, current_topic: str, domain: str, difficulty: str) -> str:
    return dedent(
        f"""
        Analyze this candidate's interview answer and choose the best topic to explore next.

        Candidate answer: "{answer}"
        Current topic: {current_topic}
        Domain: {domain}
        Difficulty: {difficulty}

        Allowed topics: technical, behavioral, problem_solving.

        {_JSON_ONLY}
        Schema: {{"nextTopic": "technical" | "behavioral" | "problem_solving", "confidence": <0.0-1.0>, "reasoning": "<short reason>"}}
        """
    ).strip()


def final_report(session: InterviewSession) -> str:
    lines = [
        f"Q{index} [{item.topic}, {item.difficulty}, scored {item.score}/100]: {item.question}\nA{index}: {item.answer}"
        for index, item in enumerate(session.history, start=1)
    ]
    transcript = "\n\n".join(lines) or "(no answers recorded)"
    return dedent(
        """
        You are writing the final evaluation of a {difficulty} level {domain} mock interview.
        Topics covered: {topics}
        Duration so far: {duration} minutes of a {limit} minute limit.

        Transcript:
        {transcript}

        Rate the candidate from 0 to 100 in each category and summarize the interview.

        {json_only}
        Schema:
        {{
          "communication": <0-100>,
          "technicalKnowledge": <0-100>,
          "problemSolving": <0-100>,
          "timeManagement": <0-100>,
          "engagement": <0-100>,
          "overall": <0-100>,
          "feedback": "<three to five sentences>",
          "strengths": ["<short phrase>", ...],
          "improvements": ["<short phrase>", ...]
        }}
        """
    ).strip().format(
        difficulty=session.initial_difficulty,
        domain=session.domain,
        topics=", ".join(session.topics_covered),
        duration=round(session.duration_minutes or 0.0, 1),
        limit=session.time_limit_minutes,
        transcript=transcript,
        json_only=_JSON_ONLY,
    )
