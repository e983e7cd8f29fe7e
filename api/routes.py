"""FastAPI routes for adaptive interview sessions."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Request

from api.schemas import CompleteReq, ErrorResp, StartReq, SubmitAnswerReq
from interview_session.interview_session import (
    CompleteResult,
    InterviewSessionService,
    SessionSummary,
    StartResult,
    SubjectStats,
    SubmitResult,
)


router = APIRouter(
    prefix="/api/interviews",
    responses={
        400: {"model": ErrorResp},
        403: {"model": ErrorResp},
        404: {"model": ErrorResp},
        409: {"model": ErrorResp},
        410: {"model": ErrorResp},
        502: {"model": ErrorResp},
        503: {"model": ErrorResp},
    },
)


def get_service(request: Request) -> InterviewSessionService:
    return request.app.state.interview_service


def subject_id(x_subject_id: str = Header(..., min_length=1)) -> str:
    return x_subject_id.strip()


@router.post("/start", response_model=StartResult, status_code=201)
def start(
    req: StartReq,
    subject: str = Depends(subject_id),
    service: InterviewSessionService = Depends(get_service),
) -> StartResult:
    return service.start(subject, req.domain, req.difficulty, req.time_limit_minutes)


@router.post("/submit-answer", response_model=SubmitResult)
def submit_answer(
    req: SubmitAnswerReq,
    subject: str = Depends(subject_id),
    service: InterviewSessionService = Depends(get_service),
) -> SubmitResult:
    return service.submit_answer(req.session_id, subject, req.answer, req.response_time_seconds)


@router.post("/complete", response_model=CompleteResult)
def complete(
    req: CompleteReq,
    subject: str = Depends(subject_id),
    service: InterviewSessionService = Depends(get_service),
) -> CompleteResult:
    return service.complete(req.session_id, subject)


@router.get("/stats", response_model=SubjectStats)
def stats(
    subject: str = Depends(subject_id),
    service: InterviewSessionService = Depends(get_service),
) -> SubjectStats:
    return service.subject_stats(subject)


@router.get("/{session_id}", response_model=SessionSummary)
def get_session(
    session_id: str,
    subject: str = Depends(subject_id),
    service: InterviewSessionService = Depends(get_service),
) -> SessionSummary:
    return service.get_session(session_id, subject)
