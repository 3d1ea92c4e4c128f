from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.orm import Session

from folio_receipts.core.config import settings
from folio_receipts.core.db import SessionLocal
from folio_receipts.core.logging import get_logger, log_event, log_exception
from folio_receipts.modules.feedback.models import CategoryFeedback

logger = get_logger(__name__)


@dataclass(frozen=True)
class UnresolvedCategory:
    description: str
    raw_category: str
    locale: str | None
    store_name: str | None
    file_name: str | None


class FeedbackLogger:
    """
    Collects unresolved category labels during one processing run.

    Entries beyond the cap are dropped. ``flush`` writes through its own session
    so a failure never touches the caller's transaction, and never raises.
    """

    def __init__(
        self,
        *,
        user_id: uuid.UUID,
        receipt_id: uuid.UUID | None = None,
        cap: int | None = None,
        session_factory: Callable[[], Session] = SessionLocal,
    ):
        self.user_id = user_id
        self.receipt_id = receipt_id
        self.cap = settings.receipt_feedback_cap if cap is None else cap
        self._session_factory = session_factory
        self._entries: list[UnresolvedCategory] = []
        self.dropped = 0

    @property
    def entries(self) -> list[UnresolvedCategory]:
        return list(self._entries)

    def record(
        self,
        *,
        description: str,
        raw_category: str,
        locale: str | None,
        store_name: str | None,
        file_name: str | None,
    ) -> bool:
        if len(self._entries) >= self.cap:
            self.dropped += 1
            return False
        self._entries.append(
            UnresolvedCategory(
                description=description[:500],
                raw_category=raw_category[:200],
                locale=locale,
                store_name=store_name[:200] if store_name else None,
                file_name=file_name[:255] if file_name else None,
            )
        )
        return True

    def flush(self) -> int:
        if not self._entries:
            return 0
        entries, self._entries = self._entries, []
        try:
            with self._session_factory() as session:
                session.add_all(
                    [
                        CategoryFeedback(
                            user_id=self.user_id,
                            receipt_id=self.receipt_id,
                            description=entry.description,
                            raw_category=entry.raw_category,
                            locale=entry.locale,
                            store_name=entry.store_name,
                            file_name=entry.file_name,
                        )
                        for entry in entries
                    ]
                )
                session.commit()
        except Exception:
            log_exception(logger, "receipt.feedback.flush_failed", count=len(entries))
            return 0
        log_event(
            logger,
            "receipt.feedback.flush",
            count=len(entries),
            dropped=self.dropped or None,
        )
        return len(entries)
