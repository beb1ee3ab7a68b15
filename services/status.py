"""Lifecycle transitions for interviews."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, Optional

from interview_session.errors import AlreadyCompleted, InvalidRequest, InvalidTransition, NotFound
from interview_session.models import Interview, InterviewStatus
from observability import log_event
from storage.interviews import InterviewStore

S = InterviewStatus

# Forward-only edges; completed has no way out.
TRANSITIONS: Dict[InterviewStatus, FrozenSet[InterviewStatus]] = {
    S.SCHEDULED: frozenset({S.IN_PROGRESS, S.COMPLETED}),
    S.IN_PROGRESS: frozenset({S.COMPLETED}),
    S.COMPLETED: frozenset(),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_status(value: str) -> InterviewStatus:
    try:
        return InterviewStatus(value)
    except ValueError as exc:
        raise InvalidRequest(f"Invalid status '{value}'", {"allowed": [s.value for s in InterviewStatus]}) from exc


class StatusStateMachine:
    """Enforces the transition table on explicit status changes.

    Setting the current status again is a no-op. Moving backwards, or out of
    ``completed``, is rejected.
    """

    def __init__(self, store: InterviewStore, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._store = store
        self._clock = clock

    @staticmethod
    def can_transition(current: InterviewStatus, target: InterviewStatus) -> bool:
        return target in TRANSITIONS[current]

    @staticmethod
    def ensure_mutable(interview: Interview) -> None:
        if interview.is_completed:
            raise AlreadyCompleted("This interview is already completed", {"interview_id": interview.interview_id})

    def set_status(self, interview_id: str, target: InterviewStatus | str) -> InterviewStatus:
        target = parse_status(target) if isinstance(target, str) else target
        interview = self._require(interview_id)
        self.ensure_mutable(interview)
        current = interview.status
        if current == target:
            return current
        if not self.can_transition(current, target):
            raise InvalidTransition(
                f"Cannot move interview from {current.value} to {target.value}",
                {"from": current.value, "to": target.value},
            )
        if not self._store.compare_and_set_status(interview_id, expected=current, target=target, now=self._clock()):
            # Lost a race; report against whatever state won.
            latest = self._require(interview_id)
            self.ensure_mutable(latest)
            if latest.status == target:
                return target
            raise InvalidTransition(
                f"Interview status changed concurrently to {latest.status.value}",
                {"from": latest.status.value, "to": target.value},
            )
        log_event("status_changed", interview_id, status=target.value, previous=current.value)
        return target

    def _require(self, interview_id: str) -> Interview:
        interview: Optional[Interview] = self._store.get(interview_id)
        if interview is None:
            raise NotFound("Interview not found", {"interview_id": interview_id})
        return interview


__all__ = ["StatusStateMachine", "TRANSITIONS", "parse_status"]
