from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass
from typing import Any

ITEM_TOTAL_TOLERANCE_ABS = 0.05
ITEM_TOTAL_TOLERANCE_PCT = 0.05
RECEIPT_TOTAL_TOLERANCE_ABS = 0.5
RECEIPT_TOTAL_TOLERANCE_PCT = 0.05
MISMATCH_RATE_LIMIT = 0.3

WARNING_MESSAGES: dict[str, str] = {
    "LOW_TEXT_DENSITY": "Document text is sparse; results may be incomplete.",
    "PDF_OCR_USED": "OCR fallback was used to read this PDF.",
    "OCR_RETRY_USED": "OCR was retried to improve low-text scans.",
    "OCR_FAILED": "Could not read text from the document.",
    "NOT_A_RECEIPT": "This file looks like a bank statement, not a receipt.",
    "PARSER_DETERMINISTIC_FAILED": (
        "Store parser could not extract all required fields. Trying AI extraction..."
    ),
    "AI_FAILED": "AI extraction failed.",
    "MISSING_LINE_ITEMS": "Line items look incomplete compared to the receipt total.",
    "TOTAL_MISMATCH": "Line item totals do not match the receipt total.",
    "LINE_ITEM_MISMATCH": "Some line items have inconsistent quantity or unit pricing.",
}


@dataclass(frozen=True)
class Validation:
    item_count: int
    line_item_mismatch_count: int
    line_item_mismatch_rate: float
    total_amount: float | None
    line_items_total: float | None
    total_difference: float | None
    total_mismatch: bool
    missing_line_items: bool

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def parse_amount(value: Any) -> float | None:
    """Loose number coercion: first "," becomes ".", other non-numeric chars are dropped."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        normalized = re.sub(r"[^0-9.+-]", "", value.replace(",", ".", 1))
        try:
            parsed = float(normalized)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def add_warning(warnings: list[dict[str, str]], code: str, message: str | None = None) -> None:
    if any(w.get("code") == code for w in warnings):
        return
    warnings.append({"code": code, "message": message or WARNING_MESSAGES.get(code, code)})


def build_validation(extracted: dict[str, Any] | None) -> Validation | None:
    if not extracted:
        return None

    items = extracted.get("items")
    items = [i for i in items if isinstance(i, dict)] if isinstance(items, list) else []
    item_count = len(items)

    mismatch_count = 0
    line_items_total = 0.0
    for item in items:
        quantity = parse_amount(item.get("quantity"))
        unit = parse_amount(item.get("price_per_unit"))
        total = parse_amount(item.get("total_price"))
        line_items_total += total or 0.0
        if not quantity or not unit or not total:
            continue
        tolerance = max(ITEM_TOTAL_TOLERANCE_ABS, total * ITEM_TOTAL_TOLERANCE_PCT)
        if abs(quantity * unit - total) > tolerance:
            mismatch_count += 1

    total_amount = parse_amount(extracted.get("total_amount"))
    difference = None
    if total_amount is not None and line_items_total > 0:
        difference = abs(total_amount - line_items_total)
    total_mismatch = False
    if difference is not None and total_amount is not None:
        tolerance = max(RECEIPT_TOTAL_TOLERANCE_ABS, total_amount * RECEIPT_TOTAL_TOLERANCE_PCT)
        total_mismatch = difference > tolerance
    missing_line_items = (
        total_amount is not None and total_amount > 0 and (item_count == 0 or line_items_total <= 0)
    )

    return Validation(
        item_count=item_count,
        line_item_mismatch_count=mismatch_count,
        line_item_mismatch_rate=round(mismatch_count / item_count, 3) if item_count else 0.0,
        total_amount=total_amount,
        line_items_total=round(line_items_total, 2) if line_items_total > 0 else None,
        total_difference=round(difference, 2) if difference is not None else None,
        total_mismatch=total_mismatch,
        missing_line_items=missing_line_items,
    )


def score_validation(validation: Validation | None) -> int:
    if validation is None:
        return 0
    score = 100
    if validation.missing_line_items:
        score -= 40
    if validation.total_mismatch:
        score -= 30
    if validation.line_item_mismatch_count > 0:
        score -= min(20, validation.line_item_mismatch_count * 2)
    if validation.line_item_mismatch_rate > MISMATCH_RATE_LIMIT:
        score -= 10
    if not validation.total_amount:
        score -= 10
    if validation.item_count <= 0:
        score -= 20
    return score


def needs_repair(validation: Validation | None) -> bool:
    if validation is None:
        return False
    return (
        validation.missing_line_items
        or validation.total_mismatch
        or validation.line_item_mismatch_rate > MISMATCH_RATE_LIMIT
    )


def build_quality(
    *,
    validation: Validation | None,
    warnings: list[dict[str, str]],
    low_pdf_text_density: bool = False,
    ocr_used_for_pdf: bool = False,
) -> tuple[str, list[str]]:
    reasons: list[str] = []
    if low_pdf_text_density:
        reasons.append("Low PDF text density")
    if ocr_used_for_pdf:
        reasons.append("OCR fallback used for PDF")
    if validation is not None:
        if validation.missing_line_items:
            reasons.append("Missing line items detected")
        if validation.total_mismatch:
            reasons.append("Total mismatch vs line items")
        if validation.line_item_mismatch_count:
            reasons.append("Line item totals inconsistent")

    quality = "high"
    if validation is not None and (
        validation.missing_line_items
        or validation.total_mismatch
        or validation.line_item_mismatch_rate > MISMATCH_RATE_LIMIT
    ):
        quality = "low"
    elif reasons or warnings:
        quality = "medium"
    return quality, reasons


def add_validation_warnings(warnings: list[dict[str, str]], validation: Validation | None) -> None:
    if validation is None:
        return
    if validation.missing_line_items:
        add_warning(warnings, "MISSING_LINE_ITEMS")
    if validation.total_mismatch:
        add_warning(warnings, "TOTAL_MISMATCH")
    if validation.line_item_mismatch_count:
        add_warning(warnings, "LINE_ITEM_MISMATCH")
