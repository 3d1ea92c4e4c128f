from __future__ import annotations

import pytest

from folio_receipts.core.db import SessionLocal
from folio_receipts.modules.extraction.ai import AIExtraction, ReceiptAIError
from folio_receipts.modules.extraction.documents import OcrResult, PdfText, analyze_ocr_text

MERCADONA_TEXT = """MERCADONA, S.A. A-46103834
C/ MAYOR 1, VALENCIA
TELEFONO: 963000000
15/01/2026 18:45 OP: 12345
FACTURA SIMPLIFICADA: 2345-012-123456
Descripción P. Unit Importe
1 LECHE ENTERA 0,95
2 PAN BARRA 0,60 1,20
1 QUESO TIERNO 3,25
TOTAL (€) 5,40
TARJETA BANCARIA 5,40
"""

CORNER_SHOP_TEXT = """CORNER SHOP
CALLE MAYOR 12 MADRID
TICKET 0042
1 APPLES 1,20
1 BREAD 0,90
1 MILK 0,80
TOTAL 2,90
CASHIER: ANA
THANK YOU
"""

STATEMENT_TEXT = """ACCOUNT STATEMENT
IBAN ES12 3456 7890
Opening balance 1.000,00
01/01/2026 CARD PAYMENT 12,50 987,50
02/01/2026 TRANSFER 100,00 887,50
03/01/2026 DIRECT DEBIT 20,00 867,50
Closing balance 867,50
"""

_AI_EXTRACTED = {
    "store_name": "CORNER SHOP",
    "receipt_date": "2026-01-15",
    "currency": "EUR",
    "total_amount": 2.90,
    "items": [
        {"description": "APPLES", "quantity": 1, "price_per_unit": 1.2, "total_price": 1.2, "category": "Fruits"},
        {"description": "BREAD", "quantity": 1, "price_per_unit": 0.9, "total_price": 0.9, "category": "Bread & Bakery"},
        {"description": "MILK", "quantity": 1, "price_per_unit": 0.8, "total_price": 0.8, "category": "Dairy"},
    ],
}


def _ai_result(**_kwargs) -> AIExtraction:
    return AIExtraction(extracted=dict(_AI_EXTRACTED), raw_text="{}", model="test-model")


def _use_pdf_text(monkeypatch, svc, pages: list[str], *, native: list[str] | None = None) -> None:
    monkeypatch.setattr(
        svc,
        "extract_pdf_pages",
        lambda _body: PdfText(
            pages=pages,
            native_pages=native if native is not None else pages,
            ocr_pages=0 if native is None else sum(1 for p in native if not p.strip()),
        ),
    )


def _use_ocr_text(monkeypatch, svc, text: str) -> None:
    monkeypatch.setattr(
        svc, "ocr_image_bytes", lambda _body: OcrResult(text=text, metrics=analyze_ocr_text(text))
    )


def _extract(svc, *, body: bytes, file_name: str, content_type: str | None = None):
    with SessionLocal() as session:
        return svc.extract_receipt(
            session,
            body=body,
            file_name=file_name,
            content_type=content_type,
            allowed_categories=["Dairy", "Fruits", "Bread & Bakery"],
        )


def test_pdf_with_known_store_is_parsed_deterministically(monkeypatch):
    from folio_receipts.modules.extraction import service as svc

    _use_pdf_text(monkeypatch, svc, [MERCADONA_TEXT])

    result = _extract(svc, body=b"%PDF-1.4 stub", file_name="mercadona.pdf")

    assert result.method == "mercadona_deterministic"
    assert result.parser == "mercadona"
    assert result.model is None
    assert result.extracted["total_amount"] == 5.40
    assert result.meta["quality"] == "high"
    assert result.meta["input_kind"] == "pdf"
    assert result.warnings == []


def test_incomplete_store_parse_falls_back_to_ai_text(monkeypatch):
    from folio_receipts.modules.extraction import service as svc

    _use_pdf_text(monkeypatch, svc, [MERCADONA_TEXT.replace("TOTAL (€) 5,40", "TOTAL (€) 25,40")])
    monkeypatch.setattr(svc, "receipt_ai_available", lambda: True)
    monkeypatch.setattr(svc, "extract_receipt_from_text", _ai_result)

    result = _extract(svc, body=b"%PDF-1.4 stub", file_name="mercadona.pdf")

    assert result.method == "ai_fallback"
    assert result.parser == "mercadona"
    assert result.model == "test-model"
    assert result.meta["ai_strategy"] == "ai_text"
    assert "mercadona:incomplete" in result.meta["failures"]
    assert [w["code"] for w in result.warnings] == ["PARSER_DETERMINISTIC_FAILED"]


def test_sparse_pdf_uses_ai_vision_on_page_image(monkeypatch):
    from folio_receipts.modules.extraction import service as svc

    _use_pdf_text(monkeypatch, svc, [""])
    monkeypatch.setattr(svc, "pdf_page_image", lambda _body: b"\x89PNG\r\n\x1a\nfake")
    monkeypatch.setattr(svc, "receipt_ai_available", lambda: True)
    monkeypatch.setattr(svc, "extract_receipt_from_image", _ai_result)

    def _no_text_call(**_kwargs):
        raise AssertionError("text strategy should not run")

    monkeypatch.setattr(svc, "extract_receipt_from_text", _no_text_call)

    result = _extract(svc, body=b"%PDF-1.4 stub", file_name="scan.pdf")

    assert result.method == "ai_only"
    assert result.parser is None
    assert result.meta["ai_strategy"] == "ai_vision"
    codes = [w["code"] for w in result.warnings]
    assert "LOW_TEXT_DENSITY" in codes
    assert "OCR_FAILED" in codes
    assert result.meta["quality"] == "medium"
    assert "Low PDF text density" in result.meta["quality_reasons"]


def test_pdf_ocr_pages_are_flagged(monkeypatch):
    from folio_receipts.modules.extraction import service as svc

    _use_pdf_text(monkeypatch, svc, [MERCADONA_TEXT], native=[""])

    result = _extract(svc, body=b"%PDF-1.4 stub", file_name="mercadona.pdf")

    assert result.method == "mercadona_deterministic"
    assert result.meta["ocr_used_for_pdf"] is True
    assert "PDF_OCR_USED" in [w["code"] for w in result.warnings]
    assert "OCR fallback used for PDF" in result.meta["quality_reasons"]


def test_everything_failing_raises_with_diagnostics(monkeypatch):
    from folio_receipts.modules.extraction import service as svc

    _use_pdf_text(monkeypatch, svc, [CORNER_SHOP_TEXT * 2])

    with pytest.raises(svc.ExtractionError) as excinfo:
        _extract(svc, body=b"%PDF-1.4 stub", file_name="corner.pdf")

    err = excinfo.value
    assert str(err) == "AI extraction is not configured"
    assert err.failures == ["ai_text:ai_unavailable"]
    assert err.meta["input_kind"] == "pdf"
    assert err.meta["failures"] == ["ai_text:ai_unavailable"]


def test_bank_statement_is_rejected(monkeypatch):
    from folio_receipts.modules.extraction import service as svc

    _use_pdf_text(monkeypatch, svc, [STATEMENT_TEXT])

    with pytest.raises(svc.ExtractionError, match="bank statement") as excinfo:
        _extract(svc, body=b"%PDF-1.4 stub", file_name="statement.pdf")

    assert [w["code"] for w in excinfo.value.warnings] == ["NOT_A_RECEIPT"]
    assert excinfo.value.meta["document_kind"]["kind"] == "statement"


def test_image_with_known_store_uses_ocr_parser(monkeypatch):
    from folio_receipts.modules.extraction import service as svc

    _use_ocr_text(monkeypatch, svc, MERCADONA_TEXT)

    result = _extract(svc, body=b"\xff\xd8\xff\xe0photo", file_name="ticket.jpg")

    assert result.method == "mercadona_deterministic"
    assert result.meta["ocr_used"] is True
    assert result.meta["input_kind"] == "image"


def test_unreadable_image_goes_to_ai_vision(monkeypatch):
    from folio_receipts.modules.extraction import service as svc

    _use_ocr_text(monkeypatch, svc, "")
    monkeypatch.setattr(svc, "receipt_ai_available", lambda: True)
    monkeypatch.setattr(svc, "extract_receipt_from_image", _ai_result)

    result = _extract(svc, body=b"\xff\xd8\xff\xe0photo", file_name="ticket.jpg")

    assert result.method == "ai_only"
    assert result.meta["ai_strategy"] == "ai_vision"
    assert result.warnings[0]["code"] == "OCR_FAILED"


def test_vision_failure_falls_back_to_ocr_text(monkeypatch):
    from folio_receipts.modules.extraction import service as svc

    _use_ocr_text(monkeypatch, svc, CORNER_SHOP_TEXT)
    monkeypatch.setattr(svc, "receipt_ai_available", lambda: True)

    def _vision_fails(**_kwargs):
        raise ReceiptAIError("OpenRouter error 503: busy")

    monkeypatch.setattr(svc, "extract_receipt_from_image", _vision_fails)
    monkeypatch.setattr(svc, "extract_receipt_from_text", _ai_result)

    result = _extract(svc, body=b"\xff\xd8\xff\xe0photo", file_name="ticket.jpg")

    assert result.meta["ai_strategy"] == "ai_ocr_text"
    assert "AI_FAILED" in [w["code"] for w in result.warnings]
    assert "ai_vision:OpenRouter error 503: busy" in result.meta["failures"]


@pytest.mark.parametrize(
    ("body", "file_name", "content_type", "message"),
    [
        (b"\x00\x01junk", "receipt.pdf", "application/pdf", "Uploaded file is not a valid PDF"),
        (b"hello", "notes.txt", "text/plain", "Unsupported file type: text/plain"),
    ],
)
def test_rejected_uploads(body, file_name, content_type, message):
    from folio_receipts.modules.extraction import service as svc

    with pytest.raises(svc.ExtractionError, match=message):
        _extract(svc, body=body, file_name=file_name, content_type=content_type)
