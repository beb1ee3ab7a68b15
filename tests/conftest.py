import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List, Optional, Union

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.session import SessionConfig
from config.settings import settings
from interview_session.models import Interview, InterviewStatus, Question
from services.interviews import InterviewService, build_service
from services.security import hash_password
from storage.candidates import CandidateStore
from storage.interviews import InterviewStore
from storage.migrate import migrate

TEST_SECRET = "unit-test-signing-secret"

Reply = Union[str, BaseException]


class ScriptedCompletion:
    """Text completion that replays queued replies and records every prompt."""

    def __init__(self, replies: Optional[List[Reply]] = None, default: Optional[Callable[[str], str]] = None):
        self.replies: List[Reply] = list(replies or [])
        self.default = default
        self.prompts: List[str] = []

    def queue(self, *replies: Reply) -> "ScriptedCompletion":
        self.replies.extend(replies)
        return self

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.replies:
            reply = self.replies.pop(0)
        elif self.default is not None:
            reply = self.default(prompt)
        else:
            raise AssertionError("unexpected completion call")
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FrozenClock:
    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now = self.now + timedelta(**delta)


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig(secret=TEST_SECRET)


@pytest.fixture
def completion() -> ScriptedCompletion:
    return ScriptedCompletion()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def make_service(completion, clock, session_config):
    def _make(**overrides) -> InterviewService:
        overrides.setdefault("completion", completion)
        overrides.setdefault("clock", clock)
        overrides.setdefault("session_config", session_config)
        return build_service(settings, **overrides)

    return _make


@pytest.fixture
def service(make_service) -> InterviewService:
    return make_service()


@pytest.fixture
def seed_interview(clock):
    """Insert a candidate plus interview with a known password."""

    def _seed(
        interview_id: str = "INT-TEST",
        *,
        password: str = "s3cret-pass",
        candidate_id: str = "cand-1",
        role: str = "Backend Engineer",
        skills: Optional[List[str]] = None,
        experience: float = 3,
        status: InterviewStatus = InterviewStatus.SCHEDULED,
        questions: Optional[List[Question]] = None,
        expires_in: Optional[timedelta] = timedelta(hours=24),
        with_candidate: bool = True,
    ) -> Interview:
        if with_candidate:
            candidates = CandidateStore()
            candidates.upsert(candidate_id=candidate_id, email=f"{candidate_id}@example.com", name="Ada Lovelace")
            candidates.set_password_hash(candidate_id, hash_password(password))
        now = clock()
        interview = Interview(
            interview_id=interview_id,
            candidate_id=candidate_id,
            role=role,
            skills=skills if skills is not None else ["Go", "SQL"],
            experience=experience,
            status=status,
            questions=questions or [],
            scheduled_at=now,
            expires_at=now + expires_in if expires_in is not None else None,
            created_at=now,
        )
        InterviewStore().create(interview)
        return interview

    return _seed
