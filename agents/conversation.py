"""Adaptive question generation for dynamic-mode interviews."""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from config.settings import Settings, settings as default_settings
from interview_session.errors import AlreadyCompleted, GenerationFailed, NotFound
from interview_session.models import ConversationExchange, Interview
from llm_gateway import LlmGatewayError, TextCompletion
from observability import log_event
from storage.interviews import InterviewStore

from .prompts import RETRY_SUFFIX, introduction_prompt, next_question_prompt
from .types import NextQuestion

logger = logging.getLogger(__name__)


def is_duplicate(candidate: str, history: Sequence[ConversationExchange], prefix_chars: int) -> bool:
    """True when the candidate's leading characters already appear inside a prior question."""

    prefix = candidate.lower()[:prefix_chars]
    if not prefix:
        return False
    return any(prefix in item.question.lower() for item in history)


class ConversationEngine:
    """Produces the next interviewer question from the running transcript.

    The turn cap is checked before the model is called, so once the transcript
    holds ``max_turns`` exchanges the engine reports completion without any
    completion request. A duplicate question earns exactly one retry whose
    output is returned as-is.
    """

    def __init__(
        self,
        store: InterviewStore,
        completion: TextCompletion,
        *,
        max_turns: int = 15,
        sentinel: str = "INTERVIEW_COMPLETE",
        prefix_chars: int = 50,
    ) -> None:
        self._store = store
        self._completion = completion
        self._max_turns = max_turns
        self._sentinel = sentinel
        self._prefix_chars = prefix_chars

    @classmethod
    def from_settings(
        cls, store: InterviewStore, completion: TextCompletion, cfg: Optional[Settings] = None
    ) -> "ConversationEngine":
        cfg = cfg or default_settings
        return cls(
            store,
            completion,
            max_turns=cfg.MAX_CONVERSATION_TURNS,
            sentinel=cfg.COMPLETION_SENTINEL,
            prefix_chars=cfg.DUPLICATE_PREFIX_CHARS,
        )

    def next_question(self, interview_id: str, last_answer: str = "", is_first_turn: bool = False) -> NextQuestion:
        interview = self._store.get(interview_id)
        if interview is None:
            raise NotFound("Interview not found", {"interview_id": interview_id})
        if interview.is_completed:
            raise AlreadyCompleted("Interview already completed")

        history = interview.conversation
        turn = len(history) + 1
        if len(history) >= self._max_turns:
            return self._complete(interview, turn, reason="turn_cap")

        if is_first_turn:
            prompt = introduction_prompt(interview)
        else:
            prompt = next_question_prompt(interview, history, last_answer or "", self._sentinel)

        question = self._generate(interview, prompt)
        if question == self._sentinel:
            return self._complete(interview, turn, reason="sentinel")

        if is_duplicate(question, history, self._prefix_chars):
            logger.info("duplicate question detected for %s, regenerating", interview_id)
            question = self._generate(interview, prompt + RETRY_SUFFIX)
            if question == self._sentinel:
                return self._complete(interview, turn, reason="sentinel")

        log_event("question_generated", interview_id, turn=turn)
        return NextQuestion(question=question, is_complete=False, turn_number=turn)

    def _generate(self, interview: Interview, prompt: str) -> str:
        try:
            text = self._completion.generate(prompt)
        except LlmGatewayError as exc:
            raise GenerationFailed("Completion service unavailable", {"interview_id": interview.interview_id}) from exc
        except Exception as exc:  # noqa: BLE001
            logger.error("completion capability raised for %s: %s", interview.interview_id, exc)
            raise GenerationFailed("Question generation failed", {"interview_id": interview.interview_id}) from exc
        question = (text or "").strip()
        if not question:
            raise GenerationFailed("Model returned an empty question", {"interview_id": interview.interview_id})
        return question

    def _complete(self, interview: Interview, turn: int, *, reason: str) -> NextQuestion:
        log_event("conversation_complete", interview.interview_id, turn=turn, reason=reason)
        return NextQuestion(question=None, is_complete=True, turn_number=turn)


__all__ = ["ConversationEngine", "is_duplicate"]
