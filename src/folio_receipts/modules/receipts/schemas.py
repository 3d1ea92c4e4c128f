from __future__ import annotations

import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from folio_receipts.modules.receipts.models import ReceiptStatus


class ReceiptTransactionOut(BaseModel):
    id: uuid.UUID
    description: str
    quantity: Decimal
    price_per_unit: Decimal
    total_price: Decimal
    category_id: uuid.UUID | None
    category_type_id: uuid.UUID | None
    category_source: str | None


class ReceiptOut(BaseModel):
    id: uuid.UUID
    receipt_file_id: uuid.UUID
    store_name: str | None
    receipt_date: date | None
    receipt_time: time | None
    currency: str
    total_amount: Decimal
    status: ReceiptStatus
    error_message: str | None
    ai_extraction_data: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime
    transactions: list[ReceiptTransactionOut] = []


class ProcessReceiptOut(BaseModel):
    receipt_id: uuid.UUID
    status: ReceiptStatus
    enqueued: bool
