from __future__ import annotations

import hashlib
import uuid
from decimal import Decimal

from sqlalchemy import func, select

from folio_receipts.core.db import SessionLocal
from folio_receipts.modules.receipts.models import (
    Receipt,
    ReceiptFile,
    ReceiptStatus,
    ReceiptTransaction,
)


def _create_receipt(user_id: uuid.UUID, *, body: bytes = b"%PDF-1.4 stub", store: bool = True) -> uuid.UUID:
    from folio_receipts.core.storage import get_storage

    key = f"receipts/{user_id}/{uuid.uuid4()}/ticket.pdf"
    if store:
        get_storage().put(key=key, body=body)
    with SessionLocal() as session:
        receipt_file = ReceiptFile(
            user_id=user_id,
            file_name="ticket.pdf",
            content_type="application/pdf",
            byte_size=len(body),
            sha256=hashlib.sha256(body).hexdigest(),
            storage_key=key,
        )
        session.add(receipt_file)
        session.flush()
        receipt = Receipt(user_id=user_id, receipt_file_id=receipt_file.id)
        session.add(receipt)
        session.commit()
        return receipt.id


def _extracted(**overrides) -> dict:
    data = {
        "store_name": "MERCADONA",
        "receipt_date": "15/01/2026",
        "receipt_time": "18:45",
        "currency": "eur",
        "total_amount": 5.40,
        "items": [
            {"description": "LECHE ENTERA", "quantity": 1, "price_per_unit": 0.95, "total_price": 0.95, "category": "Dairy"},
            {"description": "PAN BARRA", "quantity": 2, "price_per_unit": 0.60, "total_price": 1.20, "category": "Bread & Bakery"},
            {"description": "ARTICULO 123", "quantity": 1, "price_per_unit": 3.25, "total_price": 3.25, "category": "Snacks & Chips"},
        ],
    }
    data.update(overrides)
    return data


def _stub_extraction(monkeypatch, extracted: dict | None = None, *, error: Exception | None = None) -> list[dict]:
    from folio_receipts.modules.extraction.service import ExtractionResult
    from folio_receipts.modules.receipts import service as receipts_service

    calls: list[dict] = []

    def _extract(session, *, body, file_name, content_type, allowed_categories):
        calls.append(
            {"body": body, "file_name": file_name, "allowed_categories": allowed_categories}
        )
        if error is not None:
            raise error
        return ExtractionResult(
            extracted=extracted if extracted is not None else _extracted(),
            raw_text="raw",
            method="ai_only",
            parser=None,
            model="test-model",
            warnings=[],
            meta={"quality": "high"},
        )

    monkeypatch.setattr(receipts_service, "extract_receipt", _extract)
    return calls


def _load(receipt_id: uuid.UUID) -> tuple[Receipt, list[tuple]]:
    from folio_receipts.modules.categories.models import ReceiptCategory

    with SessionLocal() as session:
        receipt = session.get(Receipt, receipt_id)
        rows = session.execute(
            select(ReceiptTransaction, ReceiptCategory.name)
            .outerjoin(ReceiptCategory, ReceiptCategory.id == ReceiptTransaction.category_id)
            .where(ReceiptTransaction.receipt_id == receipt_id)
            .order_by(ReceiptTransaction.description)
        ).all()
        session.expunge(receipt)
    items = [
        (tx.description, tx.quantity, tx.price_per_unit, tx.total_price, name, tx.category_source)
        for tx, name in rows
    ]
    return receipt, items


def test_successful_processing_persists_items(monkeypatch):
    from folio_receipts.modules.receipts.service import process_receipt_now

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id, body=b"%PDF-1.4 body")
    calls = _stub_extraction(monkeypatch)

    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    assert calls[0]["body"] == b"%PDF-1.4 body"
    assert calls[0]["file_name"] == "ticket.pdf"
    assert "Dairy" in calls[0]["allowed_categories"]
    assert "Other" not in calls[0]["allowed_categories"]

    receipt, items = _load(receipt_id)
    assert receipt.status == ReceiptStatus.COMPLETED
    assert receipt.error_message is None
    assert receipt.store_name == "MERCADONA"
    assert receipt.receipt_date.isoformat() == "2026-01-15"
    assert receipt.receipt_time.isoformat() == "18:45:00"
    assert receipt.currency == "EUR"
    assert receipt.total_amount == Decimal("5.40")

    assert [(d, q, u, t) for d, q, u, t, _, _ in items] == [
        ("ARTICULO 123", Decimal("1.000"), Decimal("3.25"), Decimal("3.25")),
        ("LECHE ENTERA", Decimal("1.000"), Decimal("0.95"), Decimal("0.95")),
        ("PAN BARRA", Decimal("2.000"), Decimal("0.60"), Decimal("1.20")),
    ]
    categories = {d: name for d, _, _, _, name, _ in items}
    assert categories["LECHE ENTERA"] == "Dairy"
    assert categories["PAN BARRA"] == "Bread & Bakery"

    diagnostics = receipt.ai_extraction_data
    assert diagnostics["status"] == "completed"
    assert diagnostics["extractionMethod"] == "ai_only"
    assert diagnostics["model"] == "test-model"
    assert diagnostics["normalized"]["itemCount"] == 3


def test_unresolved_category_falls_back_to_other_with_feedback(monkeypatch):
    from folio_receipts.modules.feedback.models import CategoryFeedback
    from folio_receipts.modules.receipts.service import process_receipt_now

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id)
    _stub_extraction(monkeypatch)

    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    _, items = _load(receipt_id)
    unresolved = [i for i in items if i[0] == "ARTICULO 123"][0]
    assert unresolved[4] == "Other"
    assert unresolved[5] == "other"

    with SessionLocal() as session:
        feedback = session.scalars(select(CategoryFeedback)).all()
    assert len(feedback) == 1
    assert feedback[0].user_id == user_id
    assert feedback[0].receipt_id == receipt_id
    assert feedback[0].description == "ARTICULO 123"
    assert feedback[0].raw_category == "Snacks & Chips"
    assert feedback[0].file_name == "ticket.pdf"


def test_reprocessing_replaces_line_items(monkeypatch):
    from folio_receipts.modules.receipts.service import process_receipt_now

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id)
    _stub_extraction(monkeypatch)

    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))
    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    with SessionLocal() as session:
        count = session.scalar(
            select(func.count())
            .select_from(ReceiptTransaction)
            .where(ReceiptTransaction.receipt_id == receipt_id)
        )
    assert count == 3


def test_total_is_never_below_item_sum(monkeypatch):
    from folio_receipts.modules.receipts.service import process_receipt_now

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id)
    _stub_extraction(monkeypatch, _extracted(total_amount=1.00))

    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    receipt, _ = _load(receipt_id)
    assert receipt.total_amount == Decimal("5.40")


def test_missing_date_and_time_default_to_processing_time(monkeypatch):
    from folio_receipts.modules.receipts.service import process_receipt_now

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id)
    _stub_extraction(monkeypatch, _extracted(receipt_date="sometime", receipt_time=None, currency=None))

    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    receipt, _ = _load(receipt_id)
    assert receipt.status == ReceiptStatus.COMPLETED
    assert receipt.receipt_date is not None
    assert receipt.receipt_time is not None
    assert receipt.currency == "EUR"


def test_extraction_failure_marks_receipt_failed(monkeypatch):
    from folio_receipts.modules.extraction.service import ExtractionError
    from folio_receipts.modules.receipts.service import process_receipt_now

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id)
    _stub_extraction(
        monkeypatch,
        error=ExtractionError(
            "AI extraction is not configured",
            failures=["ai_text:ai_unavailable"],
            warnings=[{"code": "LOW_TEXT_DENSITY", "message": "sparse"}],
            meta={"quality": "medium"},
        ),
    )

    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    receipt, items = _load(receipt_id)
    assert receipt.status == ReceiptStatus.FAILED
    assert receipt.error_message == "AI extraction is not configured"
    assert items == []
    diagnostics = receipt.ai_extraction_data
    assert diagnostics["status"] == "failed"
    assert diagnostics["fileName"] == "ticket.pdf"
    assert diagnostics["warnings"][0]["code"] == "LOW_TEXT_DENSITY"
    assert diagnostics["parseMeta"] == {"quality": "medium"}


def test_failure_after_success_keeps_previous_items(monkeypatch):
    from folio_receipts.modules.extraction.service import ExtractionError
    from folio_receipts.modules.receipts.service import process_receipt_now

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id)
    _stub_extraction(monkeypatch)
    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    _stub_extraction(monkeypatch, error=ExtractionError("Could not extract receipt data"))
    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    receipt, items = _load(receipt_id)
    assert receipt.status == ReceiptStatus.FAILED
    assert len(items) == 3


def test_missing_blob_marks_receipt_failed(monkeypatch):
    from folio_receipts.modules.receipts.service import process_receipt_now

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id, store=False)
    calls = _stub_extraction(monkeypatch)

    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    receipt, _ = _load(receipt_id)
    assert receipt.status == ReceiptStatus.FAILED
    assert receipt.error_message.startswith("Object not found")
    assert calls == []


def test_unexpected_error_marks_receipt_failed(monkeypatch):
    from folio_receipts.modules.receipts.service import process_receipt_now

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id)
    _stub_extraction(monkeypatch, error=KeyError("boom"))

    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    receipt, _ = _load(receipt_id)
    assert receipt.status == ReceiptStatus.FAILED
    assert receipt.error_message == "'boom'"


def test_store_language_preference_overrides_detection(monkeypatch):
    from folio_receipts.modules.preferences.service import upsert_store_language_preference
    from folio_receipts.modules.receipts.service import process_receipt_now

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id)
    _stub_extraction(monkeypatch)
    with SessionLocal() as session:
        upsert_store_language_preference(
            session, user_id=user_id, store_name="Mercadona", language="en"
        )

    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    receipt, _ = _load(receipt_id)
    assert receipt.ai_extraction_data["language"] == {"locale": "en", "source": "preference"}


def test_item_preference_is_applied(monkeypatch):
    from folio_receipts.modules.categories.models import ReceiptCategory
    from folio_receipts.modules.categories.service import ensure_receipt_categories
    from folio_receipts.modules.preferences.service import upsert_item_category_preferences
    from folio_receipts.modules.receipts.service import process_receipt_now

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id)
    _stub_extraction(monkeypatch)
    with SessionLocal() as session:
        ensure_receipt_categories(session, user_id=user_id)
        snacks_id = session.scalar(
            select(ReceiptCategory.id).where(
                ReceiptCategory.user_id == user_id, ReceiptCategory.name == "Snacks"
            )
        )
        upsert_item_category_preferences(
            session,
            user_id=user_id,
            store_name="MERCADONA",
            description="ARTICULO 123",
            category_id=snacks_id,
        )

    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    _, items = _load(receipt_id)
    unresolved = [i for i in items if i[0] == "ARTICULO 123"][0]
    assert unresolved[4] == "Snacks"
    assert unresolved[5] == "preference"


def test_receipt_of_another_user_is_skipped(monkeypatch):
    from folio_receipts.modules.receipts.service import process_receipt_now

    owner = uuid.uuid4()
    receipt_id = _create_receipt(owner)
    calls = _stub_extraction(monkeypatch)

    process_receipt_now(receipt_id=str(receipt_id), user_id=str(uuid.uuid4()))
    process_receipt_now(receipt_id="not-a-uuid", user_id=str(owner))

    receipt, _ = _load(receipt_id)
    assert receipt.status == ReceiptStatus.PENDING
    assert calls == []


def test_empty_ai_responses_end_in_failed_status(monkeypatch):
    from folio_receipts.core.config import settings
    from folio_receipts.modules.extraction import service as extraction_service
    from folio_receipts.modules.extraction.documents import OcrResult, analyze_ocr_text
    from folio_receipts.modules.receipts.service import process_receipt_now

    class _Empty:
        status_code = 200
        text = ""

        def json(self):
            return {"choices": [{"message": {"content": ""}}]}

    posts: list[str] = []

    def _post(url, **_kwargs):
        posts.append(url)
        return _Empty()

    monkeypatch.setattr(settings, "ai_api_key", "test-key")
    monkeypatch.setattr(settings, "receipt_ai_enabled", True)
    monkeypatch.setattr("httpx.post", _post)
    monkeypatch.setattr(
        extraction_service, "ocr_image_bytes", lambda _body: OcrResult(text="", metrics=analyze_ocr_text(""))
    )

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id, body=b"\xff\xd8\xff\xe0photo")

    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    receipt, items = _load(receipt_id)
    assert posts
    assert receipt.status == ReceiptStatus.FAILED
    assert receipt.error_message == "AI response was empty"
    assert items == []
    assert receipt.ai_extraction_data["model"] == settings.receipt_ai_model


def test_store_language_lookup_failure_falls_back_to_detection(monkeypatch):
    from folio_receipts.modules.receipts import service as receipts_service

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id)
    _stub_extraction(monkeypatch)
    rollbacks: list[bool] = []

    def _lookup_fails(session, *, user_id, store_name):
        real_rollback = session.rollback

        def _rollback():
            rollbacks.append(True)
            real_rollback()

        monkeypatch.setattr(session, "rollback", _rollback)
        raise RuntimeError("preferences table unavailable")

    monkeypatch.setattr(receipts_service, "get_store_language_preference", _lookup_fails)

    receipts_service.process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    receipt, items = _load(receipt_id)
    assert receipt.status == ReceiptStatus.COMPLETED
    assert receipt.ai_extraction_data["language"]["source"] == "detected"
    assert len(items) == 3
    assert rollbacks == [True]


def test_long_store_name_still_completes(monkeypatch):
    from folio_receipts.modules.receipts.service import process_receipt_now

    user_id = uuid.uuid4()
    receipt_id = _create_receipt(user_id)
    _stub_extraction(monkeypatch, _extracted(store_name="MERCADONA S.A. " * 20))

    process_receipt_now(receipt_id=str(receipt_id), user_id=str(user_id))

    receipt, _ = _load(receipt_id)
    assert receipt.status == ReceiptStatus.COMPLETED
    assert len(receipt.store_name) == 200
