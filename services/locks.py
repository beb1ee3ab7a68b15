from __future__ import annotations  # Per-interview mutual exclusion within one process

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple

# interview id -> (lock, number of callers holding or waiting on it)
_INTERVIEW_LOCKS: Dict[str, Tuple[threading.RLock, int]] = {}
_INTERVIEW_LOCKS_GUARD = threading.Lock()


def _checkout(interview_id: str) -> threading.RLock:
    with _INTERVIEW_LOCKS_GUARD:
        lock, users = _INTERVIEW_LOCKS.get(interview_id, (None, 0))
        if lock is None:
            lock = threading.RLock()
        _INTERVIEW_LOCKS[interview_id] = (lock, users + 1)
    return lock


def _checkin(interview_id: str) -> None:
    with _INTERVIEW_LOCKS_GUARD:
        lock, users = _INTERVIEW_LOCKS[interview_id]
        if users <= 1:
            del _INTERVIEW_LOCKS[interview_id]
        else:
            _INTERVIEW_LOCKS[interview_id] = (lock, users - 1)


def tracked_lock_count() -> int:
    with _INTERVIEW_LOCKS_GUARD:
        return len(_INTERVIEW_LOCKS)


@contextmanager
def interview_lock(interview_id: str) -> Iterator[None]:
    """Serialize transcript appends and evaluation for one interview.

    Entries live only while someone holds or waits for them. Only guards
    callers in this process; across processes the store's conditional
    statements are the sole guarantee.
    """

    lock = _checkout(interview_id)
    try:
        with lock:
            yield
    finally:
        _checkin(interview_id)


__all__ = ["interview_lock", "tracked_lock_count"]
