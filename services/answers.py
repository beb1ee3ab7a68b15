"""Answer recording for dynamic and traditional interview modes."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Literal, NoReturn, Optional

from pydantic import BaseModel

from interview_session.errors import AlreadyCompleted, InvalidRequest, NotFound, UnknownQuestion
from interview_session.models import Interview
from observability import log_event
from storage.interviews import InterviewStore

from .locks import interview_lock

AnswerMode = Literal["dynamic", "traditional"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SaveAnswerRequest(BaseModel):
    """Either a ``question``/``answer`` pair or a ``question_id``/``text`` pair."""

    question: Optional[str] = None
    answer: Optional[str] = None
    question_id: Optional[str] = None
    text: Optional[str] = None
    attempt: Optional[int] = None
    duration: Optional[float] = None


class SaveAnswerResult(BaseModel):
    mode: AnswerMode
    count: int


class AnswerRecorder:
    """Appends answers to an interview that is not yet completed.

    When both pairs are supplied the dynamic pair wins. Dynamic exchanges are
    stored as given; traditional answers must reference a known question id.
    """

    def __init__(self, store: InterviewStore, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._clock = clock

    def save(self, interview_id: str, request: SaveAnswerRequest) -> SaveAnswerResult:
        self._require(interview_id)
        with interview_lock(interview_id):
            interview = self._require(interview_id)
            if interview.is_completed:
                raise AlreadyCompleted("Cannot save answers to a completed interview")
            if request.question and request.answer:
                return self._save_exchange(interview, request)
            if request.question_id and request.text:
                return self._save_answer(interview, request)
        raise InvalidRequest("Either question+answer or questionId+text is required")

    def _save_exchange(self, interview: Interview, request: SaveAnswerRequest) -> SaveAnswerResult:
        count = self._store.append_exchange(
            interview.interview_id,
            question=request.question or "",
            answer=request.answer or "",
            duration=request.duration or 0.0,
            now=self._clock(),
        )
        if count is None:
            self._raise_rejected(interview.interview_id)
        log_event("answer_saved", interview.interview_id, mode="dynamic", count=count)
        return SaveAnswerResult(mode="dynamic", count=count)

    def _save_answer(self, interview: Interview, request: SaveAnswerRequest) -> SaveAnswerResult:
        question_id = request.question_id or ""
        if interview.question_text(question_id) is None:
            raise UnknownQuestion("Invalid question ID", {"question_id": question_id})
        count = self._store.append_answer(
            interview.interview_id,
            question_id=question_id,
            text=request.text or "",
            attempt=request.attempt or 1,
            duration=request.duration or 0.0,
            now=self._clock(),
        )
        if count is None:
            self._raise_rejected(interview.interview_id)
        log_event("answer_saved", interview.interview_id, mode="traditional", count=count)
        return SaveAnswerResult(mode="traditional", count=count)

    def _require(self, interview_id: str) -> Interview:
        interview = self._store.get(interview_id)
        if interview is None:
            raise NotFound("Interview not found", {"interview_id": interview_id})
        return interview

    def _raise_rejected(self, interview_id: str) -> NoReturn:
        # The conditional insert lost to a concurrent completion or deletion.
        self._require(interview_id)
        raise AlreadyCompleted("Cannot save answers to a completed interview")


__all__ = ["AnswerMode", "AnswerRecorder", "SaveAnswerRequest", "SaveAnswerResult"]
