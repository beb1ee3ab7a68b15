from __future__ import annotations

import threading

from services.locks import interview_lock, tracked_lock_count


def test_entry_dropped_after_release():
    baseline = tracked_lock_count()

    with interview_lock("INT-1"):
        with interview_lock("INT-1"):
            assert tracked_lock_count() == baseline + 1
        assert tracked_lock_count() == baseline + 1

    assert tracked_lock_count() == baseline


def test_contended_lock_serializes_then_is_dropped():
    baseline = tracked_lock_count()
    entered = threading.Event()
    release = threading.Event()
    order = []

    def holder():
        with interview_lock("INT-1"):
            entered.set()
            release.wait(timeout=5)
            order.append("holder")

    def waiter():
        entered.wait(timeout=5)
        with interview_lock("INT-1"):
            order.append("waiter")

    threads = [threading.Thread(target=holder), threading.Thread(target=waiter)]
    for thread in threads:
        thread.start()
    entered.wait(timeout=5)
    release.set()
    for thread in threads:
        thread.join(timeout=5)

    assert order == ["holder", "waiter"]
    assert tracked_lock_count() == baseline
