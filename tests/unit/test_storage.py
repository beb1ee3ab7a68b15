"""Tests for the SQLite schema and conditional writes."""
from __future__ import annotations

import os
import sqlite3
from datetime import datetime, timedelta, timezone

from interview_session.models import DEFAULT_COMPANY_ID, Evaluation, Interview, InterviewStatus, Result
from storage.candidates import CandidateStore
from storage.interviews import InterviewStore
from storage.migrate import migrate

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
S = InterviewStatus


def test_migrate_is_idempotent(tmp_db: str):
    migrate(tmp_db)
    assert os.path.exists(tmp_db)
    with sqlite3.connect(tmp_db) as conn:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert {"candidates", "interviews", "conversation_exchanges", "interview_answers"} <= tables


def test_candidate_upsert_keeps_password_hash():
    store = CandidateStore()
    store.upsert(candidate_id="c1", email="a@example.com", name="A")
    assert store.set_password_hash("c1", "digest")

    updated = store.upsert(candidate_id="c1", email="b@example.com", name="B")

    assert updated.password_hash == "digest"
    assert store.get("c1").email == "b@example.com"
    assert store.get("missing") is None
    assert not store.set_password_hash("missing", "x")


def test_session_slot_is_single_writer(seed_interview):
    seed_interview("INT-1")
    store = InterviewStore()

    assert store.try_activate_session("INT-1", "tok-a", NOW)
    assert not store.try_activate_session("INT-1", "tok-b", NOW)

    stored = store.get("INT-1")
    assert stored.session.active_token == "tok-a"
    assert stored.session.login_count == 1
    assert stored.status == S.IN_PROGRESS

    assert store.clear_session("INT-1")
    assert store.try_activate_session("INT-1", "tok-b", NOW)
    assert store.get("INT-1").session.login_count == 2


def test_activation_refused_on_completed(seed_interview):
    seed_interview("INT-1", status=S.COMPLETED)
    assert not InterviewStore().try_activate_session("INT-1", "tok", NOW)


def test_compare_and_set_status(seed_interview):
    seed_interview("INT-1")
    store = InterviewStore()

    assert not store.compare_and_set_status("INT-1", expected=S.IN_PROGRESS, target=S.COMPLETED, now=NOW)
    assert store.compare_and_set_status("INT-1", expected=S.SCHEDULED, target=S.IN_PROGRESS, now=NOW)
    assert store.get("INT-1").completed_at is None
    assert store.compare_and_set_status("INT-1", expected=S.IN_PROGRESS, target=S.COMPLETED, now=NOW)
    assert store.get("INT-1").completed_at == NOW


def test_appends_refused_after_completion(seed_interview):
    seed_interview("INT-1")
    store = InterviewStore()

    assert store.append_exchange("INT-1", question="Q", answer="A", duration=1.5, now=NOW) == 1
    assert store.append_answer("INT-1", question_id="q1", text="T", attempt=1, duration=0, now=NOW) == 1
    assert store.mark_abandoned("INT-1", Result(status="INCOMPLETE", reason="closed"), NOW)

    assert store.append_exchange("INT-1", question="Q2", answer="A2", duration=0, now=NOW) is None
    assert store.append_answer("INT-1", question_id="q1", text="T2", attempt=2, duration=0, now=NOW) is None
    assert store.append_exchange("INT-NOPE", question="Q", answer="A", duration=0, now=NOW) is None
    assert not store.mark_abandoned("INT-1", Result(status="INCOMPLETE"), NOW)


def test_snapshot_round_trips_transcripts_and_evaluation(seed_interview):
    seed_interview("INT-1")
    store = InterviewStore()
    store.append_exchange("INT-1", question="First?", answer="One", duration=3, now=NOW)
    store.append_exchange("INT-1", question="Second?", answer="Two", duration=4, now=NOW)
    evaluation = Evaluation(overall_score=81, strengths=["Depth"], evaluated_at=NOW)
    result = Result(status="PASS", reason="Auto-evaluated", tab_warnings=1, completed_at=NOW)

    assert store.write_evaluation("INT-1", evaluation, result)

    stored = store.get("INT-1")
    assert [item.question for item in stored.conversation] == ["First?", "Second?"]
    assert stored.conversation[0].timestamp == NOW
    assert stored.evaluation.overall_score == 81
    assert stored.result.tab_warnings == 1
    assert stored.status == S.COMPLETED
    assert stored.completed_at == NOW
    assert stored.skills == ["Go", "SQL"]
    assert store.get("INT-NOPE") is None


def test_list_by_company_newest_first():
    store = InterviewStore()
    for n, company in enumerate(["acme", "acme", "globex", "acme"]):
        store.create(
            Interview(
                interview_id=f"INT-{n}",
                candidate_id=f"c{n}",
                role="Engineer",
                external_company_id=company,
                scheduled_at=NOW + timedelta(hours=n),
                created_at=NOW,
            )
        )
    store.create(Interview(interview_id="INT-default", candidate_id="c9", role="Engineer", scheduled_at=NOW))

    listed = store.list_by_company("acme")

    assert [item.interview_id for item in listed] == ["INT-3", "INT-1", "INT-0"]
    assert all(item.external_company_id == "acme" for item in listed)
    assert [item.interview_id for item in store.list_by_company(DEFAULT_COMPANY_ID)] == ["INT-default"]
    assert store.list_by_company("initech") == []
