"""Tests for transcript evaluation, response extraction and verdicts."""
from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from agents.evaluator import extract_json_object, parse_evaluation
from interview_session.errors import (
    GenerationFailed,
    InsufficientContent,
    MalformedEvaluation,
    NoAnswers,
    NoValidAnswers,
    NotFound,
)
from interview_session.models import InterviewStatus, Question, ViolationCounters
from services.answers import SaveAnswerRequest
from storage.interviews import InterviewStore


def _evaluation_json(score, **extra):
    body = {
        "overallScore": score,
        "answers": [{"questionIndex": 1, "score": 80, "feedback": "Clear"}],
        "strengths": ["Concise"],
        "weaknesses": ["Shallow on SQL"],
        "summary": "Solid",
        "recommendation": "PASS",
    }
    body.update(extra)
    return json.dumps(body)


def _now():
    return datetime.now(timezone.utc)


def _seed_dynamic(service, interview_id, answers):
    for n, answer in enumerate(answers, start=1):
        service.save_answer(interview_id, SaveAnswerRequest(question=f"Question {n}?", answer=answer, duration=n * 10))


@pytest.fixture
def answered(service, seed_interview):
    seed_interview("INT-1", status=InterviewStatus.IN_PROGRESS)
    _seed_dynamic(
        service,
        "INT-1",
        ["I designed the ingestion pipeline in Go.", "We sharded Postgres by tenant id."],
    )
    return "INT-1"


def test_violation_short_circuits_without_model(service, answered, completion):
    outcome = service.evaluate(answered, ViolationCounters(tab_warnings=3), is_failed=True)

    assert completion.prompts == []
    assert outcome.evaluation.overall_score == 0
    assert outcome.evaluation.recommendation == "FAIL"
    assert outcome.evaluation.weaknesses == ["Failed to maintain focus"]
    assert outcome.result.status == "FAIL"
    assert outcome.result.reason == "Security violations"
    assert outcome.result.tab_warnings == 3

    stored = InterviewStore().get(answered)
    assert stored.status == InterviewStatus.COMPLETED
    assert stored.result.status == "FAIL"
    assert stored.evaluation.recommendation == "FAIL"


def test_failed_flag_wins_over_incomplete(service, answered, completion):
    outcome = service.evaluate(answered, is_failed=True, is_incomplete=True)
    assert outcome.result.status == "FAIL"


def test_incomplete_short_circuits_without_model(service, seed_interview, completion):
    seed_interview("INT-2")

    outcome = service.evaluate("INT-2", ViolationCounters(fullscreen_warnings=2), is_incomplete=True)

    assert completion.prompts == []
    assert outcome.evaluation.overall_score == 0
    assert outcome.evaluation.recommendation == "INCOMPLETE"
    assert outcome.result.status == "INCOMPLETE"
    assert outcome.result.fullscreen_warnings == 2


@pytest.mark.parametrize("score,verdict", [(75, "PASS"), (75.0, "PASS"), (100, "PASS"), (74.999, "FAIL"), (74, "FAIL"), (0, "FAIL")])
def test_verdict_threshold(service, answered, completion, score, verdict):
    completion.queue(_evaluation_json(score))

    outcome = service.evaluate(answered)

    assert outcome.result.status == verdict
    assert outcome.result.reason == "Auto-evaluated"
    assert outcome.evaluation.overall_score == score
    assert InterviewStore().get(answered).result.status == verdict


def test_prompt_contains_filtered_renumbered_transcript(service, seed_interview, completion):
    seed_interview("INT-1")
    _seed_dynamic(
        service,
        "INT-1",
        ["too short", "Channels let goroutines communicate safely.", "  Indexes speed reads.  "],
    )
    completion.queue(_evaluation_json(80))

    service.evaluate("INT-1")

    prompt = completion.prompts[0]
    assert "too short" not in prompt
    assert "Q1: Question 2?\nA1: Channels let goroutines communicate safely. (20s)" in prompt
    assert "Q2: Question 3?\nA2: Indexes speed reads. (30s)" in prompt
    assert "Backend Engineer" in prompt


def test_dynamic_preferred_over_traditional(service, seed_interview, completion):
    seed_interview("INT-1", questions=[Question(id="q1", text="Fixed question?")])
    service.save_answer("INT-1", SaveAnswerRequest(question_id="q1", text="Traditional answer text that is long"))
    _seed_dynamic(service, "INT-1", ["Dynamic answer that is long enough to count."])
    completion.queue(_evaluation_json(90))

    service.evaluate("INT-1")

    assert "Dynamic answer" in completion.prompts[0]
    assert "Traditional answer" not in completion.prompts[0]


def test_traditional_source_labels_unknown_questions(service, seed_interview, completion):
    seed_interview("INT-1", questions=[Question(id="q1", text="What is a goroutine?")])
    store = InterviewStore()
    store.append_answer("INT-1", question_id="q1", text="A lightweight thread of execution", attempt=1, duration=5, now=_now())
    store.append_answer("INT-1", question_id="gone", text="Answer to a removed question", attempt=1, duration=0, now=_now())
    completion.queue(_evaluation_json(60))

    outcome = service.evaluate("INT-1")

    prompt = completion.prompts[0]
    assert "Q1: What is a goroutine?\nA1: A lightweight thread of execution (5s)" in prompt
    assert "Q2: Unknown\nA2: Answer to a removed question (0s)" in prompt
    assert outcome.result.status == "FAIL"


def test_no_answers(service, seed_interview, completion):
    seed_interview("INT-1")
    with pytest.raises(NoAnswers):
        service.evaluate("INT-1")
    assert completion.prompts == []


def test_only_short_dynamic_answers(service, seed_interview, completion):
    seed_interview("INT-1")
    _seed_dynamic(service, "INT-1", ["hello"])

    with pytest.raises(NoValidAnswers):
        service.evaluate("INT-1")
    assert completion.prompts == []


def test_insufficient_content(service, seed_interview, completion):
    seed_interview("INT-1")
    service.save_answer("INT-1", SaveAnswerRequest(question="Q?", answer="Twelve chars"))

    with pytest.raises(InsufficientContent):
        service.evaluate("INT-1")
    assert completion.prompts == []


def test_missing_interview(service):
    with pytest.raises(NotFound):
        service.evaluate("INT-NOPE")


def test_model_failure_is_generation_failed(service, answered, completion):
    completion.queue(RuntimeError("upstream down"))
    with pytest.raises(GenerationFailed):
        service.evaluate(answered)
    assert InterviewStore().get(answered).status == InterviewStatus.IN_PROGRESS


@pytest.mark.parametrize(
    "reply",
    [
        "I cannot evaluate this interview.",
        "{not json at all}",
        '{"overallScore": "eighty"}',
        '{"overallScore": true}',
        '{"overallScore": 140}',
        '{"summary": "missing score"}',
    ],
)
def test_malformed_responses(service, answered, completion, reply):
    completion.queue(reply)
    with pytest.raises(MalformedEvaluation):
        service.evaluate(answered)
    assert InterviewStore().get(answered).evaluation is None


def test_re_evaluation_overwrites(service, answered, completion):
    completion.queue(_evaluation_json(50), _evaluation_json(90))

    service.evaluate(answered)
    second = service.evaluate(answered)

    stored = InterviewStore().get(answered)
    assert second.result.status == "PASS"
    assert stored.evaluation.overall_score == 90


def test_extract_json_from_wrapped_text():
    wrapped = 'Here you go:\n```json\n{"overallScore": 80, "nested": {"a": 1}}\n```\nThanks'
    assert json.loads(extract_json_object(wrapped)) == {"overallScore": 80, "nested": {"a": 1}}


def test_parse_evaluation_maps_fields():
    payload = parse_evaluation(_evaluation_json(82.5))
    assert payload.overall_score == 82.5
    assert payload.answers[0].question_index == 1
    assert payload.strengths == ["Concise"]


@pytest.mark.parametrize("score", ["9", True])
def test_answer_scores_are_not_coerced(score):
    with pytest.raises(MalformedEvaluation):
        parse_evaluation(_evaluation_json(80, answers=[{"questionIndex": 1, "score": score, "feedback": "ok"}]))


def test_answer_score_may_be_omitted():
    payload = parse_evaluation(_evaluation_json(80, answers=[{"question": "Q1?", "feedback": "ok"}]))
    assert payload.answers[0].score is None
