from __future__ import annotations

# Ensure all models are registered before any task runs
# isort: off
import folio_receipts.models  # noqa: F401
# isort: on

import time

from folio_receipts.core.logging import get_logger, log_event, monotonic_ms
from folio_receipts.worker.celery_app import celery_app

logger = get_logger(__name__)


@celery_app.task(name="process_receipt", bind=True)
def process_receipt_task(self, receipt_id: str, user_id: str) -> None:
    from folio_receipts.modules.receipts.dispatch import get_dispatcher, run_receipt_job

    task_id = getattr(self.request, "id", None)
    start = time.monotonic()
    log_event(
        logger,
        "celery.task.start",
        task_name="process_receipt",
        celery_task_id=task_id,
        receipt_id=receipt_id,
    )
    # The job wrapper logs pipeline errors and always releases the dedup lock.
    run_receipt_job(
        receipt_id=receipt_id,
        user_id=user_id,
        tracker=get_dispatcher().tracker,
        task_id=task_id,
    )
    log_event(
        logger,
        "celery.task.finish",
        task_name="process_receipt",
        celery_task_id=task_id,
        receipt_id=receipt_id,
        duration_ms=monotonic_ms(start),
    )
