from __future__ import annotations  # Candidate storage helpers

from datetime import datetime, timezone
from typing import Optional

from interview_session.models import Candidate

from .sqlite import get_conn, to_iso


class CandidateStore:  # SQLite-backed candidate identity records
    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path

    def get(self, candidate_id: str) -> Optional[Candidate]:  # Load a candidate by external id
        with get_conn(self._db_path) as conn:
            row = conn.execute(
                "SELECT candidate_id, email, name, password_hash FROM candidates WHERE candidate_id = ?",
                (candidate_id,),
            ).fetchone()
        if row is None:
            return None
        return Candidate(
            candidate_id=row["candidate_id"],
            email=row["email"],
            name=row["name"],
            password_hash=row["password_hash"],
        )

    def upsert(self, *, candidate_id: str, email: str, name: str) -> Candidate:  # Create or refresh contact details
        now = to_iso(datetime.now(timezone.utc))
        with get_conn(self._db_path) as conn:
            conn.execute(
                """
                INSERT INTO candidates (candidate_id, email, name, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(candidate_id) DO UPDATE SET
                    email = excluded.email,
                    name = excluded.name,
                    updated_at = excluded.updated_at
                """,
                (candidate_id, email, name, now, now),
            )
            row = conn.execute(
                "SELECT password_hash FROM candidates WHERE candidate_id = ?",
                (candidate_id,),
            ).fetchone()
        return Candidate(candidate_id=candidate_id, email=email, name=name, password_hash=row["password_hash"])

    def set_password_hash(self, candidate_id: str, password_hash: str) -> bool:  # Replace the stored credential digest
        now = to_iso(datetime.now(timezone.utc))
        with get_conn(self._db_path) as conn:
            cur = conn.execute(
                "UPDATE candidates SET password_hash = ?, updated_at = ? WHERE candidate_id = ?",
                (password_hash, now, candidate_id),
            )
            return cur.rowcount == 1


__all__ = ["CandidateStore"]
