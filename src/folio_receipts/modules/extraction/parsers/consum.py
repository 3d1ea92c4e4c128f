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

PARSER_ID = "consum"
STORE_NAME = "CONSUM, S.COOP.V."

_VAT_ROW_RE = re.compile(
    r"^\s*([0-9]{1,6}[.,][0-9]{2})\s+([0-9]{1,3}[.,][0-9]{2})\s+"
    r"([0-9]{1,6}[.,][0-9]{2})\s+([0-9]{1,6}[.,][0-9]{2})\s*$"
)


def can_parse(text: str) -> bool:
    upper = (text or "").upper()
    return (
        "CONSUM" in upper
        and "FACTURA SIMPLIFICADA" in upper
        and ("CONSUM, S.COOP" in upper or "CONSUM S.COOP" in upper)
    )


def parse(text: str) -> ParsedReceipt:
    receipt_date = receipt_time = None
    m = re.search(r"(\d{1,2})\.(\d{1,2})\.(\d{4})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?", text)
    if m:
        day, month, year, hour, minute, second = m.groups()
        receipt_date = to_iso_date(f"{day}/{month}/{year}")
        receipt_time = time_from_parts(hour, minute, second)

    return ParsedReceipt(
        parser=PARSER_ID,
        store_name=STORE_NAME,
        receipt_date=receipt_date,
        receipt_time=receipt_time,
        currency="EUR" if "€" in text or "EUR" in text.upper() else None,
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
    normalized = normalize_ocr_text(text) if source == "ocr" else text
    receipt = parse(normalized)
    return receipt if is_complete(receipt) else None


def _extract_total(text: str) -> float | None:
    m = re.search(r"Total\s+factura\s*:\s*([0-9]{1,6}[.,][0-9]{2})", text, re.I)
    if m:
        return parse_eu_money(m.group(1))
    m = re.search(r"IMPORTE\s+A\s+ABONAR\s+([0-9]{1,6}[.,][0-9]{2})", text, re.I)
    if m:
        return parse_eu_money(m.group(1))
    return None


def _extract_taxes(text: str) -> float | None:
    if "FACTURA SIMPLIFICADA" not in text.upper():
        return None
    in_vat = False
    total = 0.0
    found = False
    for line in text.splitlines():
        upper_line = line.upper()
        if "BASE" in upper_line and "IVA" in upper_line and "CUOTA" in upper_line:
            in_vat = True
            continue
        if not in_vat:
            continue
        m = _VAT_ROW_RE.match(line)
        if m:
            total += parse_eu_money(m.group(3))
            found = True
        elif found and not re.match(r"^[0-9]", line.strip()):
            break
    return round(total, 2) if found else None


def _extract_items(text: str) -> list[ParsedItem]:
    items: list[ParsedItem] = []
    in_items = False
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if "---" in line:
            in_items = True
            continue
        lower = line.lower()
        if in_items and (
            lower.startswith("total factura")
            or lower.startswith("importe a abonar")
            or "socio-cliente" in lower
        ):
            break
        if not in_items:
            continue
        item = parse_quantity_led_line(line)
        if item is not None:
            items.append(item)
    return items
