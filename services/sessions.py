"""Single-use session issuance, validation and release."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, NoReturn, Optional, Tuple

from pydantic import BaseModel

from config.session import SessionConfig
from interview_session.errors import (
    AlreadyCompleted,
    AlreadyLoggedIn,
    CandidateNotFound,
    Expired,
    InvalidCredentials,
    InvalidRequest,
    NotFound,
    SessionInvalidated,
)
from interview_session.models import Candidate, Interview
from observability import log_event
from storage.candidates import CandidateStore
from storage.interviews import InterviewStore

from .security import decode_token, issue_token, token_preview, verify_password

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LoginResult(BaseModel):  # Issued token plus the identity it is bound to
    token: str
    interview_id: str
    candidate_id: str
    candidate_name: str
    candidate_email: str
    role: str


class SessionManager:
    """Issues, validates and revokes the one login token bound to an interview.

    ``login`` claims the session slot with a single conditional update, so two
    concurrent logins cannot both succeed. ``validate`` accepts a signed token
    registered on the interview or, when ``allow_raw_id`` is enabled, a bare
    interview id. The raw-id path skips the registered-token check and exists
    only for convenience links; disable it via ``SessionConfig`` or per call.
    """

    def __init__(
        self,
        config: SessionConfig,
        interviews: InterviewStore,
        candidates: CandidateStore,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._interviews = interviews
        self._candidates = candidates
        self._clock = clock

    def login(self, interview_id: str, password: str) -> LoginResult:
        if not interview_id:
            raise InvalidRequest("Interview ID required")
        if not password:
            raise InvalidRequest("Password required")
        interview = self._require(interview_id)
        now = self._clock()
        if interview.expires_at is not None and now > interview.expires_at:
            self._reject(interview_id, "expired")
            raise Expired("Interview link expired", {"expires_at": interview.expires_at.isoformat()})
        if interview.is_completed:
            self._reject(interview_id, "completed")
            raise AlreadyCompleted("This interview has already been completed")
        if interview.session.active_token:
            self._reject(interview_id, "already_logged_in")
            raise AlreadyLoggedIn("This interview session is already active. You can only login once.")

        candidate = self._candidates.get(interview.candidate_id)
        if candidate is None:
            self._reject(interview_id, "candidate_missing")
            raise CandidateNotFound("Candidate not found", {"candidate_id": interview.candidate_id})
        if not verify_password(password, candidate.password_hash):
            self._reject(interview_id, "bad_password")
            raise InvalidCredentials("Invalid password")

        token = issue_token(
            self._config,
            interview_id=interview.interview_id,
            candidate_id=candidate.candidate_id,
            issued_at=now,
        )
        if not self._interviews.try_activate_session(interview_id, token, now):
            self._raise_lost_claim(interview_id)

        log_event("login", interview_id, status="in_progress", token=token_preview(token))
        return _login_result(token, interview, candidate)

    def validate(self, token: str, *, allow_raw_id: Optional[bool] = None) -> str:
        interview, _ = self.resolve(token, allow_raw_id=allow_raw_id)
        return interview.interview_id

    def resolve(self, token: str, *, allow_raw_id: Optional[bool] = None) -> Tuple[Interview, bool]:
        """Return the interview for ``token`` and whether a registered token proved it."""

        if not token:
            raise InvalidRequest("Token required")
        claims = decode_token(self._config, token)
        if claims is not None:
            interview = self._require(claims["interviewId"])
            if interview.session.active_token != token:
                self._reject(interview.interview_id, "stale_token")
                raise SessionInvalidated("Your session is no longer valid.")
            if interview.is_completed:
                raise AlreadyCompleted("Interview already completed")
            log_event("session_validated", interview.interview_id, mode="token")
            return interview, True

        allow = self._config.allow_raw_id_links if allow_raw_id is None else allow_raw_id
        if not allow:
            raise SessionInvalidated("Invalid or expired token")
        interview = self._interviews.get(token)
        if interview is None:
            raise NotFound("Interview not found")
        if interview.is_completed:
            raise AlreadyCompleted("Interview already completed")
        logger.info("raw interview id accepted in place of a session token: %s", interview.interview_id)
        log_event("session_validated", interview.interview_id, mode="raw_id")
        return interview, False

    def logout(self, interview_id: str) -> None:
        if not interview_id:
            raise InvalidRequest("Interview ID required")
        # Unknown ids are ignored so repeated logouts stay harmless.
        self._interviews.clear_session(interview_id)
        log_event("logout", interview_id)

    def _require(self, interview_id: str) -> Interview:
        interview = self._interviews.get(interview_id)
        if interview is None:
            raise NotFound("Interview not found", {"interview_id": interview_id})
        return interview

    def _raise_lost_claim(self, interview_id: str) -> NoReturn:
        latest = self._require(interview_id)
        if latest.is_completed:
            raise AlreadyCompleted("This interview has already been completed")
        self._reject(interview_id, "already_logged_in")
        raise AlreadyLoggedIn("This interview session is already active. You can only login once.")

    def _reject(self, interview_id: str, reason: str) -> None:
        log_event("login_rejected", interview_id, level=logging.WARNING, reason=reason)


def _login_result(token: str, interview: Interview, candidate: Candidate) -> LoginResult:
    return LoginResult(
        token=token,
        interview_id=interview.interview_id,
        candidate_id=candidate.candidate_id,
        candidate_name=candidate.name,
        candidate_email=candidate.email,
        role=interview.role,
    )


__all__ = ["LoginResult", "SessionManager"]
