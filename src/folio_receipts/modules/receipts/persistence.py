from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from folio_receipts.core.logging import get_logger, log_event
from folio_receipts.modules.receipts.models import Receipt, ReceiptStatus, ReceiptTransaction

logger = get_logger(__name__)


@dataclass(frozen=True)
class LineItem:
    description: str
    quantity: float
    price_per_unit: float
    total_price: float
    category_id: uuid.UUID | None
    category_type_id: uuid.UUID | None
    category_source: str | None = None


@dataclass(frozen=True)
class ReceiptHeader:
    store_name: str | None
    receipt_date: date
    receipt_time: time
    currency: str
    total_amount: float


def _decimal(value: float, places: str = "0.01") -> Decimal:
    return Decimal(str(value)).quantize(Decimal(places))


def persist_receipt(
    session: Session,
    *,
    receipt_id: uuid.UUID,
    user_id: uuid.UUID,
    header: ReceiptHeader,
    items: list[LineItem],
    diagnostics: dict[str, Any],
) -> int:
    """
    Replace the receipt's line items and flip it to completed, in one transaction.

    Existing rows are always deleted; nothing is inserted for an empty item list.
    On any error the transaction is rolled back and the exception propagates.
    """
    try:
        session.execute(
            delete(ReceiptTransaction).where(
                ReceiptTransaction.receipt_id == receipt_id,
                ReceiptTransaction.user_id == user_id,
            )
        )
        if items:
            session.add_all(
                [
                    ReceiptTransaction(
                        receipt_id=receipt_id,
                        user_id=user_id,
                        description=item.description,
                        quantity=_decimal(item.quantity, "0.001"),
                        price_per_unit=_decimal(item.price_per_unit),
                        total_price=_decimal(item.total_price),
                        category_id=item.category_id,
                        category_type_id=item.category_type_id,
                        category_source=item.category_source,
                        receipt_date=header.receipt_date,
                        receipt_time=header.receipt_time,
                    )
                    for item in items
                ]
            )
            session.flush()
        session.execute(
            update(Receipt)
            .where(Receipt.id == receipt_id, Receipt.user_id == user_id)
            .values(
                store_name=header.store_name,
                receipt_date=header.receipt_date,
                receipt_time=header.receipt_time,
                total_amount=_decimal(header.total_amount),
                currency=header.currency,
                status=ReceiptStatus.COMPLETED,
                error_message=None,
                ai_extraction_data=diagnostics,
                updated_at=datetime.now(UTC),
            )
        )
        session.commit()
    except Exception:
        session.rollback()
        raise

    log_event(
        logger,
        "receipt.persisted",
        item_count=len(items),
        total_amount=header.total_amount,
    )
    return len(items)


def mark_receipt_failed(
    session: Session,
    *,
    receipt_id: uuid.UUID,
    user_id: uuid.UUID,
    error: str,
    meta: dict[str, Any] | None = None,
) -> None:
    diagnostics: dict[str, Any] = {"status": "failed", "error": error}
    diagnostics.update(meta or {})
    diagnostics["processedAt"] = datetime.now(UTC).isoformat()

    session.rollback()
    session.execute(
        update(Receipt)
        .where(Receipt.id == receipt_id, Receipt.user_id == user_id)
        .values(
            status=ReceiptStatus.FAILED,
            error_message=error[:2000],
            ai_extraction_data=diagnostics,
            updated_at=datetime.now(UTC),
        )
    )
    session.commit()
    log_event(logger, "receipt.processing.failed", error=error[:500])
