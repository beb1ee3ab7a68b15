"""Interview aggregate models and the engine's failure taxonomy."""
from .errors import (
    AlreadyCompleted,
    AlreadyLoggedIn,
    CandidateNotFound,
    ConfigurationError,
    Expired,
    GenerationFailed,
    InsufficientContent,
    InterviewError,
    InvalidCredentials,
    InvalidRequest,
    InvalidTransition,
    MalformedEvaluation,
    NoAnswers,
    NoValidAnswers,
    NotFound,
    SessionInvalidated,
    UnknownQuestion,
)
from .models import (
    Answer,
    AnswerScore,
    Candidate,
    ConversationExchange,
    Evaluation,
    EvaluationOutcome,
    Interview,
    InterviewStatus,
    Question,
    Result,
    Session,
    ViolationCounters,
)

__all__ = [
    "AlreadyCompleted",
    "AlreadyLoggedIn",
    "Answer",
    "AnswerScore",
    "Candidate",
    "CandidateNotFound",
    "ConfigurationError",
    "ConversationExchange",
    "Evaluation",
    "EvaluationOutcome",
    "Expired",
    "GenerationFailed",
    "InsufficientContent",
    "Interview",
    "InterviewError",
    "InterviewStatus",
    "InvalidCredentials",
    "InvalidRequest",
    "InvalidTransition",
    "MalformedEvaluation",
    "NoAnswers",
    "NoValidAnswers",
    "NotFound",
    "Question",
    "Result",
    "Session",
    "SessionInvalidated",
    "UnknownQuestion",
    "ViolationCounters",
]
