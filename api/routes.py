"""FastAPI routes for interview sessions and provisioning."""
from __future__ import annotations

from functools import lru_cache
from typing import Dict, Type

from fastapi import APIRouter, Depends, HTTPException, Response

from agents.types import NextQuestion
from api.schemas import (
    AbandonReq,
    ErrorResp,
    EvaluateReq,
    LoginReq,
    NextQuestionReq,
    StatusReq,
    StatusResp,
    ValidateReq,
    ValidateResp,
)
from interview_session.errors import (
    AlreadyCompleted,
    AlreadyLoggedIn,
    ConfigurationError,
    Expired,
    GenerationFailed,
    InsufficientContent,
    InterviewError,
    InvalidCredentials,
    InvalidRequest,
    MalformedEvaluation,
    NoAnswers,
    NoValidAnswers,
    NotFound,
    SessionInvalidated,
    UnknownQuestion,
)
from interview_session.models import EvaluationOutcome, ViolationCounters
from services.answers import SaveAnswerRequest, SaveAnswerResult
from services.interviews import AbandonmentResult, InterviewService, InterviewView, build_service
from services.provisioning import CompanyInterviews, ProvisionRequest, ProvisionResult, StatusSummary
from services.sessions import LoginResult

STATUS_BY_ERROR: Dict[Type[InterviewError], int] = {
    NotFound: 404,
    Expired: 410,
    AlreadyCompleted: 409,
    AlreadyLoggedIn: 403,
    InvalidCredentials: 401,
    SessionInvalidated: 401,
    UnknownQuestion: 400,
    InvalidRequest: 400,
    NoAnswers: 422,
    NoValidAnswers: 422,
    InsufficientContent: 422,
    GenerationFailed: 502,
    MalformedEvaluation: 502,
    ConfigurationError: 500,
}

router = APIRouter(prefix="/api/interview")
integration_router = APIRouter(prefix="/api/integration")


@lru_cache(maxsize=1)
def get_service() -> InterviewService:
    return build_service()


def status_for(exc: InterviewError) -> int:
    # Subclasses fall back to their nearest mapped ancestor.
    for cls in type(exc).__mro__:
        status = STATUS_BY_ERROR.get(cls)
        if status is not None:
            return status
    return 500


def _http_error(exc: InterviewError) -> HTTPException:
    body = ErrorResp(code=exc.code, message=exc.message, details=exc.details)
    return HTTPException(status_code=status_for(exc), detail=body.model_dump(mode="json"))


@router.post("/login", response_model=LoginResult)
def login(req: LoginReq, service: InterviewService = Depends(get_service)) -> LoginResult:
    try:
        return service.login(req.interview_id, req.password)
    except InterviewError as exc:
        raise _http_error(exc) from exc


@router.post("/validate-session", response_model=ValidateResp)
def validate_session(req: ValidateReq, service: InterviewService = Depends(get_service)) -> ValidateResp:
    try:
        return ValidateResp(interview_id=service.validate_session(req.token))
    except InterviewError as exc:
        raise _http_error(exc) from exc


@router.post("/{interview_id}/logout", status_code=204)
def logout(interview_id: str, service: InterviewService = Depends(get_service)) -> Response:
    try:
        service.logout(interview_id)
    except InterviewError as exc:
        raise _http_error(exc) from exc
    return Response(status_code=204)


@router.get("/by-token/{token}", response_model=InterviewView)
def get_interview_by_token(token: str, service: InterviewService = Depends(get_service)) -> InterviewView:
    try:
        return service.get_interview_by_token(token)
    except InterviewError as exc:
        raise _http_error(exc) from exc


@router.get("/{interview_id}", response_model=InterviewView)
def get_interview(interview_id: str, service: InterviewService = Depends(get_service)) -> InterviewView:
    try:
        return service.get_interview(interview_id)
    except InterviewError as exc:
        raise _http_error(exc) from exc


@router.post("/{interview_id}/next-question", response_model=NextQuestion)
def next_question(
    interview_id: str, req: NextQuestionReq, service: InterviewService = Depends(get_service)
) -> NextQuestion:
    try:
        return service.next_question(
            interview_id,
            last_answer=req.last_answer or "",
            is_first_turn=req.is_first_question,
        )
    except InterviewError as exc:
        raise _http_error(exc) from exc


@router.post("/{interview_id}/answer", response_model=SaveAnswerResult)
def save_answer(
    interview_id: str, req: SaveAnswerRequest, service: InterviewService = Depends(get_service)
) -> SaveAnswerResult:
    try:
        return service.save_answer(interview_id, req)
    except InterviewError as exc:
        raise _http_error(exc) from exc


@router.post("/{interview_id}/complete-on-close", response_model=AbandonmentResult)
def complete_on_close(
    interview_id: str, req: AbandonReq, service: InterviewService = Depends(get_service)
) -> AbandonmentResult:
    counters = ViolationCounters(tab_warnings=req.tab_warnings, fullscreen_warnings=req.fullscreen_warnings)
    try:
        return service.complete_on_abandonment(interview_id, counters, reason=req.reason)
    except InterviewError as exc:
        raise _http_error(exc) from exc


@router.post("/{interview_id}/status", response_model=StatusResp)
def set_status(interview_id: str, req: StatusReq, service: InterviewService = Depends(get_service)) -> StatusResp:
    try:
        status = service.set_status(interview_id, req.status)
    except InterviewError as exc:
        raise _http_error(exc) from exc
    return StatusResp(interview_id=interview_id, status=status.value)


@router.post("/{interview_id}/evaluate", response_model=EvaluationOutcome)
def evaluate(
    interview_id: str, req: EvaluateReq, service: InterviewService = Depends(get_service)
) -> EvaluationOutcome:
    counters = ViolationCounters(tab_warnings=req.tab_warnings, fullscreen_warnings=req.fullscreen_warnings)
    try:
        return service.evaluate(
            interview_id,
            counters,
            is_failed=req.is_failed,
            is_incomplete=req.is_incomplete,
        )
    except InterviewError as exc:
        raise _http_error(exc) from exc


@integration_router.post("/create-interview", response_model=ProvisionResult, status_code=201)
def create_interview(req: ProvisionRequest, service: InterviewService = Depends(get_service)) -> ProvisionResult:
    try:
        return service.provision_interview(req)
    except InterviewError as exc:
        raise _http_error(exc) from exc


@integration_router.get("/interview-status/{interview_id}", response_model=StatusSummary)
def interview_status(interview_id: str, service: InterviewService = Depends(get_service)) -> StatusSummary:
    try:
        return service.interview_status(interview_id)
    except InterviewError as exc:
        raise _http_error(exc) from exc


@integration_router.get("/company-interviews/{company_id}", response_model=CompanyInterviews)
def company_interviews(company_id: str, service: InterviewService = Depends(get_service)) -> CompanyInterviews:
    try:
        return service.company_interviews(company_id)
    except InterviewError as exc:
        raise _http_error(exc) from exc
