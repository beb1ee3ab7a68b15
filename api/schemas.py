"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class LoginReq(BaseModel):
    interview_id: str
    password: str


class ValidateReq(BaseModel):
    token: str


class ValidateResp(BaseModel):
    valid: bool = True
    interview_id: str


class NextQuestionReq(BaseModel):
    last_answer: Optional[str] = None
    is_first_question: bool = False


class CountersReq(BaseModel):
    tab_warnings: int = Field(default=0, ge=0)
    fullscreen_warnings: int = Field(default=0, ge=0)


class AbandonReq(CountersReq):
    reason: Optional[str] = None


class EvaluateReq(CountersReq):
    is_failed: bool = False
    is_incomplete: bool = False


class StatusReq(BaseModel):
    status: str


class StatusResp(BaseModel):
    interview_id: str
    status: str


class ErrorResp(BaseModel):
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
