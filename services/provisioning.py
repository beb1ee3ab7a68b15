"""Interview provisioning and status summaries for integrating systems."""
from __future__ import annotations

import logging
import re
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, Field, field_validator

from interview_session.errors import InvalidRequest, NotFound
from interview_session.models import (
    DEFAULT_COMPANY_ID,
    Evaluation,
    Interview,
    InterviewStatus,
    Question,
    Result,
    Session,
)
from observability import log_event, log_failure
from storage.candidates import CandidateStore
from storage.interviews import InterviewStore

from .security import generate_temp_password, hash_password

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_ID_ALPHABET = string.ascii_lowercase + string.digits
DEFAULT_COMPANY_NAME = "Your Company"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_interview_id(now: datetime) -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"INT-{int(now.timestamp() * 1000)}-{suffix}"


class ProvisionRequest(BaseModel):
    candidate_id: str
    candidate_name: str
    candidate_email: str
    role: str
    skills: List[str] = Field(default_factory=list)
    experience: float = 0.0
    questions: List[Question] = Field(default_factory=list)
    external_company_id: Optional[str] = None
    company_name: Optional[str] = None

    @field_validator("skills", mode="before")
    @classmethod
    def _wrap_single_skill(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class Invitation(BaseModel):  # Everything a notifier needs to invite the candidate
    to: str
    candidate_name: str
    company_name: str
    role: str
    interview_id: str
    temp_password: str
    skills: List[str]
    login_url: str


class ProvisionResult(BaseModel):
    interview_id: str
    candidate_id: str
    login_url: str
    temp_password: str
    expires_at: datetime


class StatusSummary(BaseModel):
    interview_id: str
    candidate_id: str
    status: InterviewStatus
    scheduled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    result: Optional[Result] = None
    evaluation: Optional[Evaluation] = None


class CompanyInterview(BaseModel):  # One row of a company's interview listing
    interview_id: str
    candidate_id: str
    role: str
    status: InterviewStatus
    overall_score: Optional[float] = None
    recommendation: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CompanyInterviews(BaseModel):
    company_id: str
    count: int
    interviews: List[CompanyInterview] = Field(default_factory=list)


Notifier = Callable[[Invitation], None]


class Provisioner:
    """Creates candidates and scheduled interviews with a fresh temporary password.

    The invitation is handed to ``notifier`` after the interview is stored; a
    failing notifier is logged and never undoes the provisioning.
    """

    def __init__(
        self,
        interviews: InterviewStore,
        candidates: CandidateStore,
        *,
        client_origin: str,
        interview_ttl: timedelta = timedelta(hours=24),
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._interviews = interviews
        self._candidates = candidates
        self._client_origin = client_origin.rstrip("/")
        self._interview_ttl = interview_ttl
        self._notifier = notifier
        self._clock = clock

    def provision(self, request: ProvisionRequest) -> ProvisionResult:
        missing = [
            name
            for name in ("candidate_id", "candidate_name", "candidate_email", "role")
            if not getattr(request, name).strip()
        ]
        if missing:
            raise InvalidRequest("Missing required fields", {"missing": missing})
        if not _EMAIL_RE.match(request.candidate_email):
            raise InvalidRequest("Invalid email format", {"email": request.candidate_email})

        candidate = self._candidates.upsert(
            candidate_id=request.candidate_id,
            email=request.candidate_email,
            name=request.candidate_name,
        )
        temp_password = generate_temp_password(12)
        self._candidates.set_password_hash(candidate.candidate_id, hash_password(temp_password))

        now = self._clock()
        interview = Interview(
            interview_id=new_interview_id(now),
            candidate_id=candidate.candidate_id,
            role=request.role,
            external_company_id=(request.external_company_id or "").strip() or DEFAULT_COMPANY_ID,
            skills=request.skills,
            experience=request.experience,
            status=InterviewStatus.SCHEDULED,
            session=Session(),
            questions=request.questions,
            scheduled_at=now,
            expires_at=now + self._interview_ttl,
            created_at=now,
        )
        self._interviews.create(interview)
        login_url = f"{self._client_origin}/login?interviewId={interview.interview_id}"
        log_event(
            "provisioned",
            interview.interview_id,
            status=interview.status.value,
            company_id=interview.external_company_id,
        )

        self._notify(
            Invitation(
                to=candidate.email,
                candidate_name=candidate.name,
                company_name=(request.company_name or "").strip() or DEFAULT_COMPANY_NAME,
                role=interview.role,
                interview_id=interview.interview_id,
                temp_password=temp_password,
                skills=interview.skills,
                login_url=login_url,
            )
        )
        return ProvisionResult(
            interview_id=interview.interview_id,
            candidate_id=candidate.candidate_id,
            login_url=login_url,
            temp_password=temp_password,
            expires_at=interview.expires_at,
        )

    def status(self, interview_id: str) -> StatusSummary:
        interview = self._interviews.get(interview_id)
        if interview is None:
            raise NotFound("Interview not found", {"interview_id": interview_id})
        return StatusSummary(
            interview_id=interview.interview_id,
            candidate_id=interview.candidate_id,
            status=interview.status,
            scheduled_at=interview.scheduled_at,
            completed_at=interview.completed_at,
            result=interview.result if interview.result.status else None,
            evaluation=interview.evaluation,
        )

    def company_interviews(self, company_id: str) -> CompanyInterviews:
        if not company_id.strip():
            raise InvalidRequest("Company ID required")
        rows = [
            CompanyInterview(
                interview_id=interview.interview_id,
                candidate_id=interview.candidate_id,
                role=interview.role,
                status=interview.status,
                overall_score=interview.evaluation.overall_score if interview.evaluation else None,
                recommendation=(interview.evaluation.recommendation or None) if interview.evaluation else None,
                scheduled_at=interview.scheduled_at,
                completed_at=interview.completed_at,
            )
            for interview in self._interviews.list_by_company(company_id)
        ]
        logger.info("listed %d interviews for company %s", len(rows), company_id)
        return CompanyInterviews(company_id=company_id, count=len(rows), interviews=rows)

    def _notify(self, invitation: Invitation) -> None:
        if self._notifier is None:
            logger.info("no notifier configured; invitation for %s not sent", invitation.interview_id)
            return
        try:
            self._notifier(invitation)
        except Exception as exc:  # noqa: BLE001
            log_failure("notification_failed", invitation.interview_id, exc)


__all__ = [
    "CompanyInterview",
    "CompanyInterviews",
    "DEFAULT_COMPANY_NAME",
    "Invitation",
    "Notifier",
    "ProvisionRequest",
    "ProvisionResult",
    "Provisioner",
    "StatusSummary",
    "new_interview_id",
]
