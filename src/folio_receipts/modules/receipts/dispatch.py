"""
Fire-and-forget scheduling of receipt processing.

At most one job per receipt id is in flight: ``JobTracker.try_start`` claims the
id before submission and the job wrapper always releases it, whatever the
outcome. The in-memory tracker only deduplicates within one process; use the
Redis tracker when several API or worker processes enqueue the same receipts.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from folio_receipts.core.config import settings
from folio_receipts.core.logging import (
    get_logger,
    log_event,
    log_exception,
    monotonic_ms,
    reset_task_context,
    set_task_context,
)

logger = get_logger(__name__)

Runner = Callable[..., None]
Submit = Callable[[str, str], None]


class JobTracker:
    def try_start(self, job_id: str) -> bool:  # pragma: no cover
        raise NotImplementedError

    def finish(self, job_id: str) -> None:  # pragma: no cover
        raise NotImplementedError


class InMemoryJobTracker(JobTracker):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._in_flight: set[str] = set()

    def try_start(self, job_id: str) -> bool:
        with self._lock:
            if job_id in self._in_flight:
                return False
            self._in_flight.add(job_id)
            return True

    def finish(self, job_id: str) -> None:
        with self._lock:
            self._in_flight.discard(job_id)

    def in_flight(self) -> set[str]:
        with self._lock:
            return set(self._in_flight)


class RedisJobTracker(JobTracker):
    """Cross-process dedup via ``SET NX EX``; the TTL frees ids of crashed workers."""

    def __init__(self, client, *, ttl_seconds: int | None = None, prefix: str = "receipt-job:"):
        self._client = client
        self._ttl = int(ttl_seconds or settings.dispatch_lock_ttl_seconds)
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str | None = None) -> RedisJobTracker:
        import redis

        return cls(redis.Redis.from_url(url or settings.redis_url))

    def try_start(self, job_id: str) -> bool:
        return bool(self._client.set(self._prefix + job_id, "1", nx=True, ex=self._ttl))

    def finish(self, job_id: str) -> None:
        self._client.delete(self._prefix + job_id)


def _default_runner(*, receipt_id: str, user_id: str) -> None:
    from folio_receipts.modules.receipts.service import process_receipt_now

    process_receipt_now(receipt_id=receipt_id, user_id=user_id)


def run_receipt_job(
    *,
    receipt_id: str,
    user_id: str,
    tracker: JobTracker,
    runner: Runner | None = None,
    task_id: str | None = None,
) -> None:
    """Runs the pipeline and releases the tracker; nothing escapes to the scheduler."""
    token = set_task_context(task_id or f"receipt:{receipt_id}")
    start = time.monotonic()
    try:
        (runner or _default_runner)(receipt_id=receipt_id, user_id=user_id)
    except Exception:
        log_exception(
            logger,
            "receipt.dispatch.error",
            receipt_id=receipt_id,
            duration_ms=monotonic_ms(start),
        )
    finally:
        tracker.finish(receipt_id)
        reset_task_context(token)


class ReceiptDispatcher:
    def __init__(self, *, tracker: JobTracker, submit: Submit):
        self.tracker = tracker
        self._submit = submit

    def enqueue(self, *, receipt_id: str, user_id: str) -> bool:
        receipt_id = str(receipt_id)
        user_id = str(user_id)
        if not self.tracker.try_start(receipt_id):
            log_event(logger, "receipt.dispatch.deduplicated", receipt_id=receipt_id)
            return False
        try:
            self._submit(receipt_id, user_id)
        except Exception:
            self.tracker.finish(receipt_id)
            log_exception(logger, "receipt.dispatch.error", receipt_id=receipt_id)
            return False
        log_event(logger, "receipt.dispatch.enqueued", receipt_id=receipt_id)
        return True


def thread_submitter(
    tracker: JobTracker, executor: ThreadPoolExecutor, runner: Runner | None = None
) -> Submit:
    def _submit(receipt_id: str, user_id: str) -> None:
        executor.submit(
            run_receipt_job,
            receipt_id=receipt_id,
            user_id=user_id,
            tracker=tracker,
            runner=runner,
        )

    return _submit


def celery_submitter() -> Submit:
    def _submit(receipt_id: str, user_id: str) -> None:
        from folio_receipts.worker.tasks import process_receipt_task

        process_receipt_task.delay(receipt_id, user_id)

    return _submit


_dispatcher: ReceiptDispatcher | None = None
_dispatcher_lock = threading.Lock()


def get_dispatcher() -> ReceiptDispatcher:
    global _dispatcher  # noqa: PLW0603
    with _dispatcher_lock:
        if _dispatcher is not None:
            return _dispatcher
        if settings.dispatch_backend == "celery":
            _dispatcher = ReceiptDispatcher(
                tracker=RedisJobTracker.from_url(), submit=celery_submitter()
            )
        else:
            tracker = InMemoryJobTracker()
            executor = ThreadPoolExecutor(
                max_workers=max(1, settings.dispatch_max_workers),
                thread_name_prefix="receipt-dispatch",
            )
            _dispatcher = ReceiptDispatcher(
                tracker=tracker, submit=thread_submitter(tracker, executor)
            )
        return _dispatcher


def enqueue_receipt_processing(*, receipt_id: str, user_id: str) -> bool:
    return get_dispatcher().enqueue(receipt_id=receipt_id, user_id=user_id)
