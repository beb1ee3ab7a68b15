from __future__ import annotations

import pytest

from interview_session.errors import AlreadyCompleted, InvalidRequest, NotFound, UnknownQuestion
from interview_session.models import InterviewStatus, Question
from services.answers import SaveAnswerRequest
from services.locks import tracked_lock_count
from storage.interviews import InterviewStore

QUESTIONS = [Question(id="q1", text="What is a goroutine?"), Question(id="q2", text="Explain SQL joins.")]


def test_dynamic_append_returns_transcript_length(service, seed_interview):
    seed_interview("INT-1")

    first = service.save_answer("INT-1", SaveAnswerRequest(question="Intro?", answer="I am Ada", duration=8))
    second = service.save_answer("INT-1", SaveAnswerRequest(question="Next?", answer="More detail"))

    assert (first.mode, first.count) == ("dynamic", 1)
    assert second.count == 2
    stored = InterviewStore().get("INT-1").conversation
    assert [item.question for item in stored] == ["Intro?", "Next?"]
    assert stored[0].duration == 8
    assert stored[1].duration == 0


def test_traditional_append_defaults(service, seed_interview):
    seed_interview("INT-1", questions=QUESTIONS)

    result = service.save_answer("INT-1", SaveAnswerRequest(question_id="q2", text="Inner joins match rows"))

    assert (result.mode, result.count) == ("traditional", 1)
    answer = InterviewStore().get("INT-1").answers[0]
    assert answer.question_id == "q2"
    assert answer.attempt == 1
    assert answer.duration == 0


def test_dynamic_pair_wins_when_both_supplied(service, seed_interview):
    seed_interview("INT-1", questions=QUESTIONS)

    result = service.save_answer(
        "INT-1",
        SaveAnswerRequest(question="Q?", answer="A!", question_id="q1", text="ignored"),
    )

    assert result.mode == "dynamic"
    assert InterviewStore().get("INT-1").answers == []


def test_modes_coexist(service, seed_interview):
    seed_interview("INT-1", questions=QUESTIONS)
    service.save_answer("INT-1", SaveAnswerRequest(question="Q?", answer="A!"))
    service.save_answer("INT-1", SaveAnswerRequest(question_id="q1", text="Lightweight thread", attempt=2))

    stored = InterviewStore().get("INT-1")
    assert len(stored.conversation) == 1
    assert stored.answers[0].attempt == 2


def test_rejections(service, seed_interview):
    seed_interview("INT-1", questions=QUESTIONS)
    seed_interview("INT-DONE", candidate_id="cand-2", status=InterviewStatus.COMPLETED)

    with pytest.raises(UnknownQuestion):
        service.save_answer("INT-1", SaveAnswerRequest(question_id="q9", text="?"))
    with pytest.raises(InvalidRequest):
        service.save_answer("INT-1", SaveAnswerRequest(question="only a question"))
    with pytest.raises(NotFound):
        service.save_answer("INT-NOPE", SaveAnswerRequest(question="Q?", answer="A"))
    with pytest.raises(AlreadyCompleted):
        service.save_answer("INT-DONE", SaveAnswerRequest(question="Q?", answer="A"))


def test_unknown_ids_leave_no_lock_entries(service, seed_interview):
    seed_interview("INT-1")
    baseline = tracked_lock_count()

    for n in range(200):
        with pytest.raises(NotFound):
            service.save_answer(f"INT-BOGUS-{n}", SaveAnswerRequest(question="Q?", answer="A"))
        with pytest.raises(NotFound):
            service.evaluate(f"INT-BOGUS-{n}")
    for n in range(5):
        service.save_answer("INT-1", SaveAnswerRequest(question=f"Q{n}?", answer="Answer"))

    assert tracked_lock_count() == baseline
