"""Pydantic schemas for the interview API."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartReq(CamelModel):
    domain: str = Field(min_length=1, max_length=200)
    difficulty: Optional[str] = None
    time_limit_minutes: Optional[float] = Field(default=None, allow_inf_nan=False)


class SubmitAnswerReq(CamelModel):
    session_id: str = Field(min_length=1)
    answer: str
    response_time_seconds: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class CompleteReq(CamelModel):
    session_id: str = Field(min_length=1)


class HealthResp(BaseModel):
    status: str
    model_server: bool


class ErrorResp(BaseModel):
    success: bool = False
    error: str
    message: str
