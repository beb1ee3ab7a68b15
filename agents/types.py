"""Shared type definitions for agents."""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _strict_number(value: Any, label: str) -> Any:
    # Strings and booleans would otherwise coerce silently.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{label} must be a number")
    return value


class NextQuestion(BaseModel):
    question: Optional[str] = None
    is_complete: bool
    turn_number: int


class AnswerScorePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    question_index: Optional[int] = Field(default=None, alias="questionIndex")
    question: Optional[str] = None
    score: Optional[float] = None
    feedback: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def _numeric_score(cls, value: Any) -> Any:
        if value is None:
            return value
        return _strict_number(value, "score")


class EvaluationPayload(BaseModel):
    """JSON object the evaluator model is asked to return."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    overall_score: float = Field(alias="overallScore", ge=0, le=100)
    answers: List[AnswerScorePayload] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    summary: str = ""
    recommendation: str = ""

    @field_validator("overall_score", mode="before")
    @classmethod
    def _numeric_score(cls, value: Any) -> Any:
        return _strict_number(value, "overallScore")
