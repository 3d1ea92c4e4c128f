from __future__ import annotations

from celery import Celery

from folio_receipts.core.config import settings


def make_celery() -> Celery:
    app = Celery("folio_receipts", broker=settings.redis_url, backend=settings.redis_url)
    app.conf.update(
        task_always_eager=settings.environment == "dev",
        task_eager_propagates=True,
        task_track_started=True,
        task_acks_late=True,
    )
    app.autodiscover_tasks(["folio_receipts.worker.tasks"])
    return app


celery_app = make_celery()
