from __future__ import annotations  # Error taxonomy surfaced by interview operations


class InterviewError(Exception):  # Base error carrying an HTTP-facing kind
    kind = "InterviewError"
    status_code = 500
    public_message = "Something went wrong with the interview."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)

    @property
    def message(self) -> str:
        return str(self)


class InvalidInput(InterviewError):
    kind = "InvalidInput"
    status_code = 400
    public_message = "The request was missing or had malformed fields."


class Forbidden(InterviewError):
    kind = "Forbidden"
    status_code = 403
    public_message = "This interview belongs to someone else."


class NotFound(InterviewError):
    kind = "NotFound"
    status_code = 404
    public_message = "Interview not found or already completed."


class ConcurrentUpdate(InterviewError):
    kind = "ConcurrentUpdate"
    status_code = 409
    public_message = "The interview was updated by another request. Please retry."


class TimeExpired(InterviewError):
    kind = "TimeExpired"
    status_code = 410
    public_message = "Interview time limit exceeded."


class ScoringFailed(InterviewError):
    kind = "ScoringFailed"
    status_code = 502
    public_message = "We couldn't evaluate that answer right now, please retry."


class GenerationFailed(InterviewError):
    kind = "GenerationFailed"
    status_code = 503
    public_message = "We couldn't generate a question right now, please retry."


__all__ = [
    "ConcurrentUpdate",
    "Forbidden",
    "GenerationFailed",
    "InterviewError",
    "InvalidInput",
    "NotFound",
    "ScoringFailed",
    "TimeExpired",
]
