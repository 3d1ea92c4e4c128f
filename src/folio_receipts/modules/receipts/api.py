from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from folio_receipts.api.deps import get_current_user_id
from folio_receipts.core.db import db_session
from folio_receipts.modules.receipts.dispatch import enqueue_receipt_processing
from folio_receipts.modules.receipts.models import Receipt
from folio_receipts.modules.receipts.schemas import ProcessReceiptOut, ReceiptOut

router = APIRouter(tags=["receipts"])


def _get_receipt_for_user(session: Session, *, receipt_id: uuid.UUID, user_id: uuid.UUID) -> Receipt:
    receipt = session.scalar(
        select(Receipt)
        .options(selectinload(Receipt.transactions))
        .where(Receipt.id == receipt_id, Receipt.user_id == user_id)
    )
    if receipt is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receipt not found")
    return receipt


@router.post(
    "/receipts/{receipt_id}/process",
    response_model=ProcessReceiptOut,
    status_code=status.HTTP_202_ACCEPTED,
)
def process_receipt_endpoint(
    receipt_id: uuid.UUID,
    session: Session = Depends(db_session),
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> ProcessReceiptOut:
    receipt = _get_receipt_for_user(session, receipt_id=receipt_id, user_id=user_id)
    enqueued = enqueue_receipt_processing(receipt_id=str(receipt.id), user_id=str(user_id))
    return ProcessReceiptOut(receipt_id=receipt.id, status=receipt.status, enqueued=enqueued)


@router.get("/receipts/{receipt_id}", response_model=ReceiptOut)
def get_receipt_endpoint(
    receipt_id: uuid.UUID,
    session: Session = Depends(db_session),
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> ReceiptOut:
    receipt = _get_receipt_for_user(session, receipt_id=receipt_id, user_id=user_id)
    return ReceiptOut.model_validate(receipt, from_attributes=True)
