"""Interview persistence with single-statement conditional updates.

Every mutation that has a precondition (session slot empty, status equal to
an expected value, interview not completed) is expressed as one ``UPDATE`` or
``INSERT ... SELECT`` whose ``WHERE`` clause carries the precondition. The
affected row count tells the caller whether it won; no read-then-write pairs.
"""
from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

from interview_session.models import (
    Answer,
    ConversationExchange,
    Evaluation,
    Interview,
    InterviewStatus,
    Question,
    Result,
    Session,
)

from .sqlite import from_iso, get_conn, to_iso

_COMPLETED = InterviewStatus.COMPLETED.value


class InterviewStore:  # SQLite-backed interview aggregate storage
    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path

    def create(self, interview: Interview) -> None:  # Insert a freshly provisioned interview
        with get_conn(self._db_path) as conn:
            conn.execute(
                """
                INSERT INTO interviews (
                    interview_id, candidate_id, role, external_company_id, skills_json, experience, questions_json,
                    status, active_token, login_at, login_count, scheduled_at, expires_at, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    interview.interview_id,
                    interview.candidate_id,
                    interview.role,
                    interview.external_company_id,
                    json.dumps(interview.skills),
                    interview.experience,
                    json.dumps([question.model_dump() for question in interview.questions]),
                    interview.status.value,
                    interview.session.active_token,
                    to_iso(interview.session.login_at),
                    interview.session.login_count,
                    to_iso(interview.scheduled_at),
                    to_iso(interview.expires_at),
                    to_iso(interview.created_at or interview.scheduled_at),
                ),
            )

    def get(self, interview_id: str) -> Optional[Interview]:  # Consistent snapshot of row plus transcripts
        with get_conn(self._db_path) as conn:
            conn.execute("BEGIN")
            row = conn.execute("SELECT * FROM interviews WHERE interview_id = ?", (interview_id,)).fetchone()
            if row is None:
                return None
            exchanges = conn.execute(
                """
                SELECT question, answer, duration, timestamp FROM conversation_exchanges
                WHERE interview_id = ? ORDER BY id ASC
                """,
                (interview_id,),
            ).fetchall()
            answers = conn.execute(
                """
                SELECT question_id, text, attempt, duration, timestamp FROM interview_answers
                WHERE interview_id = ? ORDER BY id ASC
                """,
                (interview_id,),
            ).fetchall()
        return _interview_from_rows(row, exchanges, answers)

    def list_by_company(self, company_id: str) -> List[Interview]:
        """Interviews provisioned for one company, newest ``scheduled_at`` first.

        Only the interview rows are read; conversation and answers come back empty.
        """

        with get_conn(self._db_path) as conn:
            rows = conn.execute(
                """
                SELECT * FROM interviews WHERE external_company_id = ?
                ORDER BY scheduled_at DESC, rowid DESC
                """,
                (company_id,),
            ).fetchall()
        return [_interview_from_rows(row, [], []) for row in rows]

    def try_activate_session(self, interview_id: str, token: str, now: datetime) -> bool:
        """Claim the session slot; False when it is taken or the interview is terminal."""

        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                """
                UPDATE interviews
                SET active_token = ?,
                    login_at = ?,
                    login_count = login_count + 1,
                    status = CASE WHEN status = 'scheduled' THEN 'in_progress' ELSE status END
                WHERE interview_id = ? AND active_token IS NULL AND status != ?
                """,
                (token, to_iso(now), interview_id, _COMPLETED),
            )
            return cur.rowcount == 1

    def clear_session(self, interview_id: str) -> bool:  # Release the session slot unconditionally
        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                "UPDATE interviews SET active_token = NULL WHERE interview_id = ?",
                (interview_id,),
            )
            return cur.rowcount == 1

    def compare_and_set_status(
        self,
        interview_id: str,
        *,
        expected: InterviewStatus,
        target: InterviewStatus,
        now: datetime,
    ) -> bool:  # Move status only if nobody changed it since it was read
        completed_at = to_iso(now) if target == InterviewStatus.COMPLETED else None
        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                "UPDATE interviews SET status = ?, completed_at = ? WHERE interview_id = ? AND status = ?",
                (target.value, completed_at, interview_id, expected.value),
            )
            return cur.rowcount == 1

    def append_exchange(
        self,
        interview_id: str,
        *,
        question: str,
        answer: str,
        duration: float,
        now: datetime,
    ) -> Optional[int]:  # Append a turn; None when the interview is missing or completed
        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                """
                INSERT INTO conversation_exchanges (interview_id, question, answer, duration, timestamp)
                SELECT ?, ?, ?, ?, ?
                WHERE EXISTS (SELECT 1 FROM interviews WHERE interview_id = ? AND status != ?)
                """,
                (interview_id, question, answer, duration, to_iso(now), interview_id, _COMPLETED),
            )
            if cur.rowcount != 1:
                return None
            return _count(conn, "conversation_exchanges", interview_id)

    def append_answer(
        self,
        interview_id: str,
        *,
        question_id: str,
        text: str,
        attempt: int,
        duration: float,
        now: datetime,
    ) -> Optional[int]:  # Append a traditional answer; None when missing or completed
        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                """
                INSERT INTO interview_answers (interview_id, question_id, text, attempt, duration, timestamp)
                SELECT ?, ?, ?, ?, ?, ?
                WHERE EXISTS (SELECT 1 FROM interviews WHERE interview_id = ? AND status != ?)
                """,
                (interview_id, question_id, text, attempt, duration, to_iso(now), interview_id, _COMPLETED),
            )
            if cur.rowcount != 1:
                return None
            return _count(conn, "interview_answers", interview_id)

    def mark_abandoned(self, interview_id: str, result: Result, now: datetime) -> bool:
        """Write the abandonment verdict directly, bypassing the status machine."""

        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                """
                UPDATE interviews
                SET status = ?, completed_at = ?, result_json = ?
                WHERE interview_id = ? AND status != ?
                """,
                (_COMPLETED, to_iso(now), result.model_dump_json(), interview_id, _COMPLETED),
            )
            return cur.rowcount == 1

    def write_evaluation(self, interview_id: str, evaluation: Evaluation, result: Result) -> bool:
        """Persist evaluation and verdict together and lock the interview."""

        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                """
                UPDATE interviews
                SET evaluation_json = ?,
                    result_json = ?,
                    status = ?,
                    completed_at = COALESCE(completed_at, ?)
                WHERE interview_id = ?
                """,
                (
                    evaluation.model_dump_json(),
                    result.model_dump_json(),
                    _COMPLETED,
                    to_iso(result.completed_at),
                    interview_id,
                ),
            )
            return cur.rowcount == 1


def _count(conn: sqlite3.Connection, table: str, interview_id: str) -> int:
    row = conn.execute(f"SELECT COUNT(*) FROM {table} WHERE interview_id = ?", (interview_id,)).fetchone()
    return int(row[0])


def _load_json(raw: Optional[str], default: Any) -> Any:
    if not raw:
        return default
    return json.loads(raw)


def _interview_from_rows(row: sqlite3.Row, exchanges: List[sqlite3.Row], answers: List[sqlite3.Row]) -> Interview:
    evaluation_data: Optional[Dict[str, Any]] = _load_json(row["evaluation_json"], None)
    result_data: Dict[str, Any] = _load_json(row["result_json"], {})
    return Interview(
        interview_id=row["interview_id"],
        candidate_id=row["candidate_id"],
        role=row["role"],
        external_company_id=row["external_company_id"],
        skills=_load_json(row["skills_json"], []),
        experience=row["experience"],
        status=InterviewStatus(row["status"]),
        session=Session(
            active_token=row["active_token"],
            login_at=from_iso(row["login_at"]),
            login_count=row["login_count"],
        ),
        questions=[Question.model_validate(item) for item in _load_json(row["questions_json"], [])],
        answers=[
            Answer(
                question_id=item["question_id"],
                text=item["text"],
                attempt=item["attempt"],
                duration=item["duration"],
                timestamp=from_iso(item["timestamp"]),
            )
            for item in answers
        ],
        conversation=[
            ConversationExchange(
                question=item["question"],
                answer=item["answer"],
                duration=item["duration"],
                timestamp=from_iso(item["timestamp"]),
            )
            for item in exchanges
        ],
        evaluation=Evaluation.model_validate(evaluation_data) if evaluation_data else None,
        result=Result.model_validate(result_data),
        scheduled_at=from_iso(row["scheduled_at"]),
        expires_at=from_iso(row["expires_at"]),
        completed_at=from_iso(row["completed_at"]),
        created_at=from_iso(row["created_at"]),
    )


__all__ = ["InterviewStore"]
