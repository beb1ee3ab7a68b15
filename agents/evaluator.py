"""Transcript evaluation and verdict assignment."""
from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError

from interview_session.errors import (
    GenerationFailed,
    InsufficientContent,
    MalformedEvaluation,
    NoAnswers,
    NoValidAnswers,
    NotFound,
)
from interview_session.models import (
    AnswerScore,
    Evaluation,
    EvaluationOutcome,
    Interview,
    Result,
    ViolationCounters,
)
from llm_gateway import LlmGatewayError, TextCompletion, strip_code_fences
from observability import log_event
from services.locks import interview_lock
from storage.interviews import InterviewStore

from .prompts import evaluation_prompt
from .types import EvaluationPayload

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

VIOLATION_WEAKNESS = "Failed to maintain focus"
VIOLATION_SUMMARY = "Interview terminated due to violations."
VIOLATION_REASON = "Security violations"
INCOMPLETE_WEAKNESS = "Interview not completed"
INCOMPLETE_SUMMARY = "Interview was closed early."
INCOMPLETE_REASON = "Closed early"
AUTO_REASON = "Auto-evaluated"
UNKNOWN_QUESTION = "Unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def extract_json_object(text: str) -> str:
    """Return the outermost ``{...}`` span, stripping code fences once if needed."""

    match = _JSON_OBJECT_RE.search(text or "")
    if match is None:
        match = _JSON_OBJECT_RE.search(strip_code_fences(text or ""))
    if match is None:
        raise MalformedEvaluation("Invalid AI response format")
    return match.group(0)


def parse_evaluation(text: str) -> EvaluationPayload:
    raw = extract_json_object(text)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedEvaluation("Evaluation was not valid JSON", {"error": str(exc)}) from exc
    if not isinstance(data, dict):
        raise MalformedEvaluation("Evaluation must be a JSON object")
    try:
        return EvaluationPayload.model_validate(data)
    except ValidationError as exc:
        raise MalformedEvaluation("Evaluation fields were invalid", {"error": str(exc)}) from exc


def _format_block(index: int, question: str, answer: str, duration: float) -> str:
    return f"Q{index}: {question}\nA{index}: {answer} ({duration:g}s)"


class EvaluationEngine:
    """Scores a finished interview and writes the evaluation with its verdict.

    Violation and abandonment outcomes are synthesized without a model call.
    Otherwise exactly one transcript source is used: the dynamic conversation
    when it has any exchanges, the traditional answers when it does not.
    """

    def __init__(
        self,
        store: InterviewStore,
        completion: TextCompletion,
        *,
        pass_threshold: float = 75.0,
        min_answer_chars: int = 10,
        min_transcript_chars: int = 50,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._completion = completion
        self._pass_threshold = pass_threshold
        self._min_answer_chars = min_answer_chars
        self._min_transcript_chars = min_transcript_chars
        self._clock = clock

    def evaluate(
        self,
        interview_id: str,
        counters: Optional[ViolationCounters] = None,
        *,
        is_failed: bool = False,
        is_incomplete: bool = False,
    ) -> EvaluationOutcome:
        counters = counters or ViolationCounters()
        self._require(interview_id)
        with interview_lock(interview_id):
            interview = self._require(interview_id)
            if is_failed:
                outcome = self._synthesize(
                    counters,
                    weakness=VIOLATION_WEAKNESS,
                    summary=VIOLATION_SUMMARY,
                    verdict="FAIL",
                    reason=VIOLATION_REASON,
                )
            elif is_incomplete:
                outcome = self._synthesize(
                    counters,
                    weakness=INCOMPLETE_WEAKNESS,
                    summary=INCOMPLETE_SUMMARY,
                    verdict="INCOMPLETE",
                    reason=INCOMPLETE_REASON,
                )
            else:
                outcome = self._score(interview, counters)
            self._store.write_evaluation(interview_id, outcome.evaluation, outcome.result)

        log_event(
            "evaluated",
            interview_id,
            verdict=outcome.result.status,
            score=outcome.evaluation.overall_score,
            reason=outcome.result.reason,
        )
        return outcome

    def _require(self, interview_id: str) -> Interview:
        interview = self._store.get(interview_id)
        if interview is None:
            raise NotFound("Interview not found", {"interview_id": interview_id})
        return interview

    def transcript(self, interview: Interview) -> str:
        """Serialize the preferred answer source as ``Qn/An (duration s)`` blocks."""

        answers = [item for item in interview.answers if item.text.strip()]
        if not interview.conversation and not answers:
            raise NoAnswers("No answers to evaluate")

        if interview.conversation:
            blocks = self._dynamic_blocks(interview)
        else:
            blocks = [
                (interview.question_text(item.question_id) or UNKNOWN_QUESTION, item.text.strip(), item.duration)
                for item in answers
            ]
        return "\n\n".join(
            _format_block(index, question, answer, duration)
            for index, (question, answer, duration) in enumerate(blocks, start=1)
        )

    def _dynamic_blocks(self, interview: Interview) -> List[Tuple[str, str, float]]:
        valid = [
            (item.question, item.answer.strip(), item.duration)
            for item in interview.conversation
            if len(item.answer.strip()) > self._min_answer_chars
        ]
        if not valid:
            raise NoValidAnswers("No valid answers to evaluate")
        return valid

    def _score(self, interview: Interview, counters: ViolationCounters) -> EvaluationOutcome:
        transcript = self.transcript(interview)
        if len(transcript.strip()) <= self._min_transcript_chars:
            raise InsufficientContent("Insufficient content to evaluate", {"chars": len(transcript.strip())})

        prompt = evaluation_prompt(interview, transcript)
        try:
            text = self._completion.generate(prompt)
        except LlmGatewayError as exc:
            raise GenerationFailed("Evaluation request failed", {"interview_id": interview.interview_id}) from exc
        except Exception as exc:  # noqa: BLE001
            logger.error("completion capability raised during evaluation of %s: %s", interview.interview_id, exc)
            raise GenerationFailed("Evaluation request failed", {"interview_id": interview.interview_id}) from exc

        payload = parse_evaluation(text)
        now = self._clock()
        evaluation = Evaluation(
            overall_score=payload.overall_score,
            answers=[
                AnswerScore(
                    question_index=item.question_index,
                    question=item.question,
                    score=item.score,
                    feedback=item.feedback,
                )
                for item in payload.answers
            ],
            strengths=payload.strengths,
            weaknesses=payload.weaknesses,
            summary=payload.summary,
            recommendation=payload.recommendation,
            evaluated_at=now,
        )
        verdict = "PASS" if payload.overall_score >= self._pass_threshold else "FAIL"
        return EvaluationOutcome(evaluation=evaluation, result=self._result(counters, verdict, AUTO_REASON, now))

    def _synthesize(
        self,
        counters: ViolationCounters,
        *,
        weakness: str,
        summary: str,
        verdict: str,
        reason: str,
    ) -> EvaluationOutcome:
        now = self._clock()
        evaluation = Evaluation(
            overall_score=0,
            weaknesses=[weakness],
            summary=summary,
            recommendation=verdict,
            evaluated_at=now,
        )
        return EvaluationOutcome(evaluation=evaluation, result=self._result(counters, verdict, reason, now))

    @staticmethod
    def _result(counters: ViolationCounters, verdict: str, reason: str, now: datetime) -> Result:
        return Result(
            status=verdict,
            reason=reason,
            tab_warnings=counters.tab_warnings,
            fullscreen_warnings=counters.fullscreen_warnings,
            completed_at=now,
        )


__all__ = ["EvaluationEngine", "extract_json_object", "parse_evaluation"]
