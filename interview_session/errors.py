"""Typed failures raised by the interview session engine.

Every failure carries a stable ``code`` so callers (the HTTP adapter, job
runners, tests) can branch on the outcome without string matching.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class InterviewError(RuntimeError):  # Base failure for all engine operations
    code = "interview_error"

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details: Dict[str, Any] = details or {}
        super().__init__(f"[{self.code}] {self.message}")


class NotFound(InterviewError):
    code = "not_found"


class CandidateNotFound(NotFound):
    code = "candidate_not_found"


class Expired(InterviewError):
    code = "expired"


class AlreadyCompleted(InterviewError):
    code = "already_completed"


class AlreadyLoggedIn(InterviewError):
    code = "already_logged_in"


class InvalidCredentials(InterviewError):
    code = "invalid_credentials"


class SessionInvalidated(InterviewError):
    code = "session_invalidated"


class UnknownQuestion(InterviewError):
    code = "unknown_question"


class InvalidRequest(InterviewError):
    code = "invalid_request"


class InvalidTransition(InvalidRequest):
    code = "invalid_transition"


class NoAnswers(InterviewError):
    code = "no_answers"


class NoValidAnswers(InterviewError):
    code = "no_valid_answers"


class InsufficientContent(InterviewError):
    code = "insufficient_content"


class GenerationFailed(InterviewError):
    code = "generation_failed"


class MalformedEvaluation(InterviewError):
    code = "malformed_evaluation"


class ConfigurationError(InterviewError):
    code = "configuration_error"


__all__ = [
    "AlreadyCompleted",
    "AlreadyLoggedIn",
    "CandidateNotFound",
    "ConfigurationError",
    "Expired",
    "GenerationFailed",
    "InsufficientContent",
    "InterviewError",
    "InvalidCredentials",
    "InvalidRequest",
    "InvalidTransition",
    "MalformedEvaluation",
    "NoAnswers",
    "NoValidAnswers",
    "NotFound",
    "SessionInvalidated",
    "UnknownQuestion",
]
