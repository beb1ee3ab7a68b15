"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS candidates (
  candidate_id TEXT PRIMARY KEY,
  email TEXT NOT NULL,
  name TEXT NOT NULL DEFAULT '',
  password_hash TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS interviews (
  interview_id TEXT PRIMARY KEY,
  candidate_id TEXT NOT NULL,
  role TEXT NOT NULL,
  external_company_id TEXT NOT NULL DEFAULT 'default-company',
  skills_json TEXT NOT NULL DEFAULT '[]',
  experience REAL NOT NULL DEFAULT 0,
  questions_json TEXT NOT NULL DEFAULT '[]',
  status TEXT NOT NULL DEFAULT 'scheduled',
  active_token TEXT,
  login_at TEXT,
  login_count INTEGER NOT NULL DEFAULT 0,
  evaluation_json TEXT,
  result_json TEXT,
  scheduled_at TEXT,
  expires_at TEXT,
  completed_at TEXT,
  created_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS conversation_exchanges (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  interview_id TEXT NOT NULL,
  question TEXT NOT NULL,
  answer TEXT NOT NULL,
  duration REAL NOT NULL DEFAULT 0,
  timestamp TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS interview_answers (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  interview_id TEXT NOT NULL,
  question_id TEXT NOT NULL,
  text TEXT NOT NULL,
  attempt INTEGER NOT NULL DEFAULT 1,
  duration REAL NOT NULL DEFAULT 0,
  timestamp TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS idx_interviews_candidate ON interviews(candidate_id);",
    "CREATE INDEX IF NOT EXISTS idx_interviews_company ON interviews(external_company_id, scheduled_at);",
    "CREATE INDEX IF NOT EXISTS idx_exchanges_interview ON conversation_exchanges(interview_id, id);",
    "CREATE INDEX IF NOT EXISTS idx_answers_interview ON interview_answers(interview_id, id);",
]


def migrate(db_path: str = "data/interview.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    from config.settings import settings

    migrate(settings.DB_PATH)
