from __future__ import annotations  # Interview aggregate and its embedded records

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class InterviewStatus(str, Enum):  # Lifecycle states of an interview
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


VerdictLiteral = Literal["PASS", "FAIL", "INCOMPLETE"]

DEFAULT_COMPANY_ID = "default-company"


class Candidate(BaseModel):  # Identity record owned by the system of record
    candidate_id: str
    email: str
    name: str = ""
    password_hash: Optional[str] = None


class Session(BaseModel):  # Single login slot embedded in the interview
    active_token: Optional[str] = None
    login_at: Optional[datetime] = None
    login_count: int = 0


class Question(BaseModel):  # Fixed question used in traditional mode
    id: str
    text: str


class ConversationExchange(BaseModel):  # One dynamic-mode turn
    question: str
    answer: str
    duration: float = 0.0
    timestamp: datetime


class Answer(BaseModel):  # Traditional-mode answer against a fixed question
    question_id: str
    text: str
    attempt: int = 1
    duration: float = 0.0
    timestamp: datetime


class AnswerScore(BaseModel):  # Per-answer feedback inside an evaluation
    question_index: Optional[int] = None
    question: Optional[str] = None
    score: Optional[float] = None
    feedback: str = ""


class Evaluation(BaseModel):  # Scored assessment of the transcript
    overall_score: float
    answers: List[AnswerScore] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    summary: str = ""
    recommendation: str = ""
    evaluated_at: datetime


class ViolationCounters(BaseModel):  # Proctoring counters supplied by the client
    tab_warnings: int = Field(default=0, ge=0)
    fullscreen_warnings: int = Field(default=0, ge=0)


class Result(BaseModel):  # Terminal verdict summary
    status: Optional[VerdictLiteral] = None
    reason: str = ""
    tab_warnings: int = 0
    fullscreen_warnings: int = 0
    completed_at: Optional[datetime] = None


class Interview(BaseModel):  # Aggregate root for a timed interview
    interview_id: str
    candidate_id: str
    role: str
    external_company_id: str = DEFAULT_COMPANY_ID
    skills: List[str] = Field(default_factory=list)
    experience: float = 0.0
    status: InterviewStatus = InterviewStatus.SCHEDULED
    session: Session = Field(default_factory=Session)
    questions: List[Question] = Field(default_factory=list)
    answers: List[Answer] = Field(default_factory=list)
    conversation: List[ConversationExchange] = Field(default_factory=list)
    evaluation: Optional[Evaluation] = None
    result: Result = Field(default_factory=Result)
    scheduled_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status == InterviewStatus.COMPLETED

    def question_text(self, question_id: str) -> Optional[str]:
        for question in self.questions:
            if question.id == question_id:
                return question.text
        return None


class EvaluationOutcome(BaseModel):  # Evaluation plus verdict written together
    evaluation: Evaluation
    result: Result


__all__ = [
    "Answer",
    "AnswerScore",
    "Candidate",
    "ConversationExchange",
    "DEFAULT_COMPANY_ID",
    "Evaluation",
    "EvaluationOutcome",
    "Interview",
    "InterviewStatus",
    "Question",
    "Result",
    "Session",
    "VerdictLiteral",
    "ViolationCounters",
]
