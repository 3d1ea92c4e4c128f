from __future__ import annotations

import re

from folio_receipts.modules.extraction.parsers.common import (
    ParsedItem,
    ParsedReceipt,
    has_minimal_fields,
    normalize_ocr_text,
    parse_eu_money,
    parse_quantity_led_line,
    time_from_parts,
    to_iso_date,
)

PARSER_ID = "mercadona"
STORE_NAME = "MERCADONA, S.A"

_DATE_TIME_RE = re.compile(
    r"(\d{1,2})\s*[/-]\s*(\d{1,2})\s*[/-]\s*(\d{2,4})\s+(\d{1,2})\s*:\s*(\d{2})(?:\s*:\s*(\d{2}))?"
)


def can_parse(text: str) -> bool:
    upper = (text or "").upper()
    if "MERCADONA" not in upper:
        return False
    return (
        "FACTURA SIMPLIFICADA" in upper
        or "IVA BASE IMPONIBLE" in upper
        or "IVA BASEIMPONIBLE" in upper
    )


def normalize_ocr(text: str) -> str:
    t = re.sub(r"[ \t]+", " ", text or "")
    t = re.sub(r"TOTAL\s*\(\s*E\s*\)", "TOTAL (€)", t, flags=re.I)
    t = re.sub(r"(\d[.,]\d{2})\s*EUR\b", r"\1 €", t)
    return normalize_ocr_text(t)


def parse(text: str) -> ParsedReceipt:
    receipt_date, receipt_time = _extract_date_and_time(text)
    upper = text.upper()
    currency = (
        "EUR"
        if "€" in text or "TOTAL (E)" in upper or "EUR" in upper
        else None
    )
    return ParsedReceipt(
        parser=PARSER_ID,
        store_name=STORE_NAME,
        receipt_date=receipt_date,
        receipt_time=receipt_time,
        currency=currency,
        total_amount=_extract_total(text),
        taxes_total_cuota=_extract_taxes(text),
        items=_extract_items(text),
    )


def is_complete(receipt: ParsedReceipt) -> bool:
    return has_minimal_fields(
        receipt,
        store_ok=receipt.store_name == STORE_NAME,
        tolerance_pct=0.05,
        tolerance_abs=0.50,
    )


def try_parse(text: str, *, source: str) -> ParsedReceipt | None:
    normalized = normalize_ocr(text) if source == "ocr" else text
    receipt = parse(normalized)
    return receipt if is_complete(receipt) else None


def _extract_date_and_time(text: str) -> tuple[str | None, str | None]:
    m = _DATE_TIME_RE.search(text)
    if not m:
        return None, None
    day, month, year, hour, minute, second = m.groups()
    return to_iso_date(f"{day}/{month}/{year}"), time_from_parts(hour, minute, second)


def _extract_total(text: str) -> float | None:
    m = re.search(r"Importe\s*:\s*([0-9]{1,6}[.,][0-9]{2})", text, re.I)
    if m:
        return parse_eu_money(m.group(1))
    m = re.search(r"TOTAL\s*\([€E]\)\s*([0-9]{1,6}[.,][0-9]{2})", text, re.I)
    if m:
        return parse_eu_money(m.group(1))
    return None


def _extract_taxes(text: str) -> float | None:
    upper = text.upper()
    if "IVA" not in upper or ("BASE IMPONIBLE" not in upper and "BASEIMPONIBLE" not in upper):
        return None
    in_vat = False
    for line in text.splitlines():
        upper_line = line.upper()
        if "IVA" in upper_line and (
            "BASE IMPONIBLE" in upper_line or "BASEIMPONIBLE" in upper_line
        ):
            in_vat = True
            continue
        if in_vat and upper_line.strip().startswith("TOTAL"):
            m = re.match(
                r"^\s*TOTAL\s+([0-9]{1,6}[.,][0-9]{2})\s+([0-9]{1,6}[.,][0-9]{2})", line, re.I
            )
            if m:
                return parse_eu_money(m.group(2))
        if in_vat and ("IMPORTE:" in upper_line or "FORMA DE PAGO" in upper_line):
            break
    return None


def _extract_items(text: str) -> list[ParsedItem]:
    items: list[ParsedItem] = []
    in_items = False
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if re.match(r"^Descripci[oó]n", re.sub(r"\s+", "", line), re.I):
            in_items = True
            continue
        if in_items and re.match(r"^TOTAL\s*(\([€E]\)|$)", line, re.I):
            break
        if not in_items:
            continue
        if re.search(r"P\.?\s*Unit", line, re.I) or re.match(r"^Importe$", line, re.I):
            continue
        item = parse_quantity_led_line(line, allow_reversed=True)
        if item is not None:
            items.append(item)
    return items
