from __future__ import annotations

from folio_receipts.modules.extraction.documents import detect_document_kind
from folio_receipts.modules.extraction.quality import (
    add_warning,
    build_quality,
    build_validation,
    needs_repair,
    parse_amount,
    score_validation,
)

_ITEMS = [
    {"description": "LECHE", "quantity": 1, "price_per_unit": 0.95, "total_price": 0.95},
    {"description": "PAN", "quantity": 2, "price_per_unit": 0.60, "total_price": 1.20},
    {"description": "QUESO", "quantity": 1, "price_per_unit": "3,25", "total_price": "3,25"},
]


def test_parse_amount_is_forgiving():
    assert parse_amount(5) == 5.0
    assert parse_amount("12,50") == 12.5
    assert parse_amount("€ 3.20") == 3.2
    assert parse_amount("-1,10") == -1.1
    assert parse_amount(True) is None
    assert parse_amount("abc") is None
    assert parse_amount(float("nan")) is None
    assert parse_amount(None) is None


def test_consistent_receipt_scores_high():
    validation = build_validation({"total_amount": 5.40, "items": _ITEMS})
    assert validation.item_count == 3
    assert validation.line_items_total == 5.40
    assert validation.total_mismatch is False
    assert validation.missing_line_items is False
    assert score_validation(validation) == 100
    assert needs_repair(validation) is False
    assert build_quality(validation=validation, warnings=[]) == ("high", [])


def test_total_mismatch_needs_repair():
    validation = build_validation({"total_amount": 20.0, "items": _ITEMS})
    assert validation.total_mismatch is True
    assert validation.total_difference == 14.6
    assert needs_repair(validation) is True
    quality, reasons = build_quality(validation=validation, warnings=[])
    assert quality == "low"
    assert "Total mismatch vs line items" in reasons


def test_missing_line_items():
    validation = build_validation({"total_amount": 10, "items": []})
    assert validation.missing_line_items is True
    assert score_validation(validation) == 40


def test_line_item_mismatch_rate():
    items = [
        {"description": "A", "quantity": 2, "price_per_unit": 1.0, "total_price": 5.0},
        {"description": "B", "quantity": 1, "price_per_unit": 1.0, "total_price": 1.0},
    ]
    validation = build_validation({"total_amount": 6.0, "items": items})
    assert validation.line_item_mismatch_count == 1
    assert validation.line_item_mismatch_rate == 0.5
    assert needs_repair(validation) is True


def test_empty_extraction_has_no_validation():
    assert build_validation(None) is None
    assert build_validation({}) is None
    assert score_validation(None) == 0


def test_warnings_are_unique_by_code_and_lower_quality():
    warnings: list[dict[str, str]] = []
    add_warning(warnings, "PDF_OCR_USED")
    add_warning(warnings, "PDF_OCR_USED", "again")
    assert warnings == [{"code": "PDF_OCR_USED", "message": "OCR fallback was used to read this PDF."}]

    quality, reasons = build_quality(validation=None, warnings=warnings, ocr_used_for_pdf=True)
    assert quality == "medium"
    assert reasons == ["OCR fallback used for PDF"]


def test_document_kind_receipt():
    text = (
        "SUPERMERCADO EL SOL\n"
        "FACTURA SIMPLIFICADA\n"
        "LECHE 1 0,95 0,95\n"
        "PAN 2 0,60 1,20\n"
        "QUESO 1 3,25 3,25\n"
        "TOTAL 5,40\n"
        "IVA 0,49\n"
        "GRACIAS POR SU VISITA\n"
    )
    kind = detect_document_kind(text)
    assert kind.kind == "receipt"
    assert kind.receipt_score > kind.statement_score


def test_document_kind_statement():
    text = (
        "ACCOUNT STATEMENT\n"
        "IBAN ES12 3456 7890\n"
        "Opening balance 1.000,00\n"
        "01/01/2026 CARD PAYMENT 12,50 987,50\n"
        "02/01/2026 TRANSFER 100,00 887,50\n"
        "03/01/2026 DIRECT DEBIT 20,00 867,50\n"
        "Closing balance 867,50\n"
    )
    kind = detect_document_kind(text)
    assert kind.kind == "statement"


def test_document_kind_too_short_is_unknown():
    assert detect_document_kind("TOTAL 3,00").kind == "unknown"
