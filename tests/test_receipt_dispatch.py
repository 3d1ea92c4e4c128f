from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

from folio_receipts.modules.receipts.dispatch import (
    InMemoryJobTracker,
    ReceiptDispatcher,
    run_receipt_job,
    thread_submitter,
)


def test_duplicate_enqueue_runs_once():
    tracker = InMemoryJobTracker()
    release = threading.Event()
    calls: list[str] = []

    def _runner(*, receipt_id: str, user_id: str) -> None:
        calls.append(receipt_id)
        release.wait(timeout=5)

    with ThreadPoolExecutor(max_workers=2) as executor:
        dispatcher = ReceiptDispatcher(
            tracker=tracker, submit=thread_submitter(tracker, executor, runner=_runner)
        )
        assert dispatcher.enqueue(receipt_id="r1", user_id="u1") is True
        assert dispatcher.enqueue(receipt_id="r1", user_id="u1") is False
        assert tracker.in_flight() == {"r1"}
        release.set()

    assert calls == ["r1"]
    assert tracker.in_flight() == set()


def test_receipt_can_be_enqueued_again_after_finishing():
    tracker = InMemoryJobTracker()
    submitted: list[tuple[str, str]] = []
    dispatcher = ReceiptDispatcher(
        tracker=tracker, submit=lambda rid, uid: submitted.append((rid, uid))
    )

    assert dispatcher.enqueue(receipt_id="r1", user_id="u1") is True
    tracker.finish("r1")
    assert dispatcher.enqueue(receipt_id="r1", user_id="u1") is True
    assert dispatcher.enqueue(receipt_id="r2", user_id="u1") is True
    assert submitted == [("r1", "u1"), ("r1", "u1"), ("r2", "u1")]


def test_job_errors_are_contained_and_release_the_id():
    tracker = InMemoryJobTracker()
    assert tracker.try_start("r1")

    def _runner(*, receipt_id: str, user_id: str) -> None:
        raise RuntimeError("pipeline exploded")

    run_receipt_job(receipt_id="r1", user_id="u1", tracker=tracker, runner=_runner)

    assert tracker.in_flight() == set()


def test_submit_failure_releases_the_id():
    tracker = InMemoryJobTracker()

    def _submit(receipt_id: str, user_id: str) -> None:
        raise ConnectionError("broker down")

    dispatcher = ReceiptDispatcher(tracker=tracker, submit=_submit)

    assert dispatcher.enqueue(receipt_id="r1", user_id="u1") is False
    assert tracker.in_flight() == set()


def test_redis_tracker_uses_set_nx():
    from folio_receipts.modules.receipts.dispatch import RedisJobTracker

    class _FakeRedis:
        def __init__(self) -> None:
            self.keys: dict[str, int] = {}

        def set(self, key, value, *, nx, ex):
            assert nx is True
            if key in self.keys:
                return None
            self.keys[key] = ex
            return True

        def delete(self, key):
            self.keys.pop(key, None)

    client = _FakeRedis()
    tracker = RedisJobTracker(client, ttl_seconds=30)

    assert tracker.try_start("r1") is True
    assert tracker.try_start("r1") is False
    assert client.keys == {"receipt-job:r1": 30}
    tracker.finish("r1")
    assert tracker.try_start("r1") is True
