"""Interview service facade exposing every engine operation."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from agents.conversation import ConversationEngine
from agents.evaluator import EvaluationEngine
from agents.types import NextQuestion
from config import SessionConfig, route_from_settings
from config.settings import Settings, settings as default_settings
from interview_session.errors import AlreadyCompleted, NotFound
from interview_session.models import (
    Answer,
    ConversationExchange,
    EvaluationOutcome,
    Interview,
    InterviewStatus,
    Question,
    Result,
    ViolationCounters,
)
from llm_gateway import GatewayCompletion, TextCompletion
from observability import log_event, log_failure
from storage.candidates import CandidateStore
from storage.interviews import InterviewStore

from .answers import AnswerRecorder, SaveAnswerRequest, SaveAnswerResult
from .provisioning import (
    CompanyInterviews,
    Notifier,
    ProvisionRequest,
    ProvisionResult,
    Provisioner,
    StatusSummary,
)
from .sessions import LoginResult, SessionManager
from .status import StatusStateMachine

logger = logging.getLogger(__name__)

DEFAULT_ABANDON_REASON = "User closed browser"

EvaluationTrigger = Callable[[str, ViolationCounters], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InterviewView(BaseModel):  # What the candidate client sees of an interview
    interview_id: str
    role: str
    experience: float
    skills: List[str] = Field(default_factory=list)
    questions: List[Question] = Field(default_factory=list)
    conversation: List[ConversationExchange] = Field(default_factory=list)
    answers: List[Answer] = Field(default_factory=list)
    status: InterviewStatus
    expires_at: Optional[datetime] = None

    @classmethod
    def of(cls, interview: Interview) -> "InterviewView":
        return cls(
            interview_id=interview.interview_id,
            role=interview.role,
            experience=interview.experience,
            skills=interview.skills,
            questions=interview.questions,
            conversation=interview.conversation,
            answers=interview.answers,
            status=interview.status,
            expires_at=interview.expires_at,
        )


class AbandonmentResult(BaseModel):
    interview_id: str
    status: InterviewStatus
    result: Result
    evaluation_triggered: bool


class InterviewService:
    """Single entry point for the HTTP adapter and job runners.

    Each method takes plain arguments, returns a pydantic model (or nothing)
    and raises an ``InterviewError`` subclass on failure.
    """

    def __init__(
        self,
        *,
        interviews: InterviewStore,
        sessions: SessionManager,
        status: StatusStateMachine,
        conversation: ConversationEngine,
        answers: AnswerRecorder,
        evaluator: EvaluationEngine,
        provisioner: Provisioner,
        evaluation_trigger: Optional[EvaluationTrigger] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._interviews = interviews
        self._sessions = sessions
        self._status = status
        self._conversation = conversation
        self._answers = answers
        self._evaluator = evaluator
        self._provisioner = provisioner
        self._evaluation_trigger = evaluation_trigger or self._evaluate_abandoned
        self._clock = clock

    # Session
    def login(self, interview_id: str, password: str) -> LoginResult:
        return self._sessions.login(interview_id, password)

    def validate_session(self, token: str, *, allow_raw_id: Optional[bool] = None) -> str:
        return self._sessions.validate(token, allow_raw_id=allow_raw_id)

    def logout(self, interview_id: str) -> None:
        self._sessions.logout(interview_id)

    # Views
    def get_interview(self, interview_id: str) -> InterviewView:
        return InterviewView.of(self._require(interview_id))

    def get_interview_by_token(self, token: str, *, allow_raw_id: Optional[bool] = None) -> InterviewView:
        interview, _ = self._sessions.resolve(token, allow_raw_id=allow_raw_id)
        return InterviewView.of(interview)

    # Conversation and answers
    def next_question(self, interview_id: str, *, last_answer: str = "", is_first_turn: bool = False) -> NextQuestion:
        return self._conversation.next_question(interview_id, last_answer, is_first_turn)

    def save_answer(self, interview_id: str, request: SaveAnswerRequest) -> SaveAnswerResult:
        return self._answers.save(interview_id, request)

    # Lifecycle
    def set_status(self, interview_id: str, status: InterviewStatus | str) -> InterviewStatus:
        return self._status.set_status(interview_id, status)

    def evaluate(
        self,
        interview_id: str,
        counters: Optional[ViolationCounters] = None,
        *,
        is_failed: bool = False,
        is_incomplete: bool = False,
    ) -> EvaluationOutcome:
        return self._evaluator.evaluate(interview_id, counters, is_failed=is_failed, is_incomplete=is_incomplete)

    def complete_on_abandonment(
        self,
        interview_id: str,
        counters: Optional[ViolationCounters] = None,
        *,
        reason: Optional[str] = None,
    ) -> AbandonmentResult:
        """Close the interview immediately, then fire the incomplete evaluation.

        The terminal write stands even when the follow-up evaluation fails.
        """

        counters = counters or ViolationCounters()
        interview = self._require(interview_id)
        self._status.ensure_mutable(interview)

        now = self._clock()
        result = Result(
            status="INCOMPLETE",
            reason=reason or DEFAULT_ABANDON_REASON,
            tab_warnings=counters.tab_warnings,
            fullscreen_warnings=counters.fullscreen_warnings,
            completed_at=now,
        )
        if not self._interviews.mark_abandoned(interview_id, result, now):
            raise AlreadyCompleted("This interview is already completed", {"interview_id": interview_id})
        log_event("abandoned", interview_id, status=InterviewStatus.COMPLETED.value, reason=result.reason)

        triggered = True
        try:
            self._evaluation_trigger(interview_id, counters)
        except Exception as exc:  # noqa: BLE001
            triggered = False
            log_failure("evaluation_trigger_failed", interview_id, exc)

        return AbandonmentResult(
            interview_id=interview_id,
            status=InterviewStatus.COMPLETED,
            result=result,
            evaluation_triggered=triggered,
        )

    # Provisioning
    def provision_interview(self, request: ProvisionRequest) -> ProvisionResult:
        return self._provisioner.provision(request)

    def interview_status(self, interview_id: str) -> StatusSummary:
        return self._provisioner.status(interview_id)

    def company_interviews(self, company_id: str) -> CompanyInterviews:
        return self._provisioner.company_interviews(company_id)

    def _evaluate_abandoned(self, interview_id: str, counters: ViolationCounters) -> None:
        self._evaluator.evaluate(interview_id, counters, is_incomplete=True)

    def _require(self, interview_id: str) -> Interview:
        interview = self._interviews.get(interview_id)
        if interview is None:
            raise NotFound("Interview not found", {"interview_id": interview_id})
        return interview


def build_service(
    cfg: Optional[Settings] = None,
    *,
    completion: Optional[TextCompletion] = None,
    notifier: Optional[Notifier] = None,
    evaluation_trigger: Optional[EvaluationTrigger] = None,
    session_config: Optional[SessionConfig] = None,
    clock: Callable[[], datetime] = _utcnow,
) -> InterviewService:
    """Wire stores, engines and the default completion route from settings.

    Raises ``ConfigurationError`` when no signing secret is configured.
    """

    cfg = cfg or default_settings
    session_config = session_config or SessionConfig.from_settings(cfg)
    completion = completion or GatewayCompletion(route_from_settings(cfg))
    interviews = InterviewStore(cfg.DB_PATH)
    candidates = CandidateStore(cfg.DB_PATH)
    return InterviewService(
        interviews=interviews,
        sessions=SessionManager(session_config, interviews, candidates, clock=clock),
        status=StatusStateMachine(interviews, clock=clock),
        conversation=ConversationEngine.from_settings(interviews, completion, cfg),
        answers=AnswerRecorder(interviews, clock=clock),
        evaluator=_evaluator(interviews, completion, cfg, clock),
        provisioner=Provisioner(
            interviews,
            candidates,
            client_origin=cfg.CLIENT_ORIGIN,
            interview_ttl=timedelta(hours=cfg.INTERVIEW_TTL_HOURS),
            notifier=notifier,
            clock=clock,
        ),
        evaluation_trigger=evaluation_trigger,
        clock=clock,
    )


def _evaluator(
    interviews: InterviewStore, completion: TextCompletion, cfg: Settings, clock: Callable[[], datetime]
) -> EvaluationEngine:
    return EvaluationEngine(
        interviews,
        completion,
        pass_threshold=cfg.PASS_THRESHOLD,
        min_answer_chars=cfg.MIN_ANSWER_CHARS,
        min_transcript_chars=cfg.MIN_TRANSCRIPT_CHARS,
        clock=clock,
    )


__all__ = ["AbandonmentResult", "EvaluationTrigger", "InterviewService", "InterviewView", "build_service"]
