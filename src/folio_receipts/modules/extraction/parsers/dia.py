"""
Dia receipts come in two layouts: the Spanish "factura simplificada" PDF with
a per-line VAT breakdown, and the English till printout.
"""

from __future__ import annotations

import re

from folio_receipts.core.text import collapse_spaces
from folio_receipts.modules.extraction.parsers.common import (
    ParsedItem,
    ParsedReceipt,
    has_minimal_fields,
    normalize_ocr_text,
    parse_eu_money,
    time_from_parts,
    to_iso_date,
)

PARSER_ID = "dia"
STORE_NAME = "DIA RETAIL ESPAÑA, S.A.U."

_EURO_AMOUNT_RE = re.compile(r"([0-9]{1,6}[.,][0-9]{2,5})\s*€")
_EURO_PREFIXED_RE = re.compile(r"€([0-9]{1,6}[.,][0-9]{2})")


def can_parse(text: str) -> bool:
    upper = (text or "").upper()
    if "DIA RETAIL" not in upper:
        return False
    english = (
        "SIMPLIFIED INVOICE" in upper
        or "VAT BREAKDOWN" in upper
        or "PRODUCTS SOLD BY DIA" in upper
    )
    spanish = (
        "FACTURA SIMPLIFICADA" in upper
        or "DESGLOSE DE IVA" in upper
        or "FECHA FACTURA" in upper
    )
    return english or spanish


def detect_layout(text: str) -> str:
    upper = text.upper()
    if (
        "FECHA FACTURA SIMPLIFICADA" in upper
        or "DESGLOSE DE IVA" in upper
        or "TOTAL BASE IMPONIBLE" in upper
    ):
        return "spanish"
    return "english"


def parse(text: str) -> ParsedReceipt:
    upper = text.upper()
    receipt_date, receipt_time = _extract_date_and_time(text)
    if detect_layout(text) == "spanish":
        items = _extract_items_spanish(text)
    else:
        items = _extract_items_english(text)
    return ParsedReceipt(
        parser=PARSER_ID,
        store_name=STORE_NAME if "DIA RETAIL" in upper else "DIA",
        receipt_date=receipt_date,
        receipt_time=receipt_time,
        currency="EUR" if "€" in text or "EUR" in upper else None,
        total_amount=_extract_total(text),
        taxes_total_cuota=_extract_taxes(text),
        items=items,
    )


def is_complete(receipt: ParsedReceipt) -> bool:
    return has_minimal_fields(
        receipt,
        store_ok="DIA" in (receipt.store_name or "").upper(),
        tolerance_pct=0.10,
        tolerance_abs=1.00,
    )


def try_parse(text: str, *, source: str) -> ParsedReceipt | None:
    normalized = normalize_ocr_text(text) if source == "ocr" else text
    receipt = parse(normalized)
    return receipt if is_complete(receipt) else None


def _extract_date_and_time(text: str) -> tuple[str | None, str | None]:
    m = re.search(
        r"Fecha\s+factura\s+simplificada\s*:\s*(\d{1,2})/(\d{1,2})/(\d{4})", text, re.I
    )
    if m:
        day, month, year = m.groups()
        receipt_time = None
        # The unique ticket id ends in -HHMMSS.
        t = re.search(r"ticket\s+[úu]nico\s*:\s*\S+-(\d{2})(\d{2})(\d{2})\s*$", text, re.I | re.M)
        if t:
            receipt_time = "{}:{}:{}".format(*t.groups())
        return to_iso_date(f"{day}/{month}/{year}"), receipt_time

    m = re.search(r"(\d{1,2})/(\d{1,2})/(\d{4})\s+(\d{1,2}):(\d{2})(?::(\d{2}))?", text)
    if m:
        day, month, year, hour, minute, second = m.groups()
        return to_iso_date(f"{day}/{month}/{year}"), time_from_parts(hour, minute, second)

    m = re.search(r"FECHA\s*:\s*(\d{1,2})/(\d{1,2})/(\d{4})", text, re.I)
    if m:
        day, month, year = m.groups()
        receipt_time = None
        h = re.search(r"HORA\s*:\s*(\d{1,2}):(\d{2})(?::(\d{2}))?", text, re.I)
        if h:
            receipt_time = time_from_parts(*h.groups())
        return to_iso_date(f"{day}/{month}/{year}"), receipt_time

    return None, None


def _extract_total(text: str) -> float | None:
    patterns = (
        r"Total\s+base\s+imponible\s+m[áa]s\s+IVA\s+([0-9]{1,6}[.,][0-9]{2})\s*€",
        r"Total\s+to\s+pay[─\-\s]*€?\s*([0-9]{1,6}[.,][0-9]{2})",
        r"Total\s+sale\s+Day[─\-\s]*€?\s*([0-9]{1,6}[.,][0-9]{2})",
        r"IMPORTE\s*:\s*([0-9]{1,6}[.,][0-9]{2})",
    )
    for pattern in patterns:
        m = re.search(pattern, text, re.I)
        if m:
            return parse_eu_money(m.group(1))
    return None


def _extract_taxes(text: str) -> float | None:
    m = re.search(r"Total\s+cuotas\s+de\s+IVA\s+([0-9]{1,6}[.,][0-9]{2})\s*€", text, re.I)
    if m:
        return parse_eu_money(m.group(1))

    upper = text.upper()
    if "VAT BREAKDOWN" not in upper and "IVA" not in upper:
        return None

    in_vat = False
    total = 0.0
    found = False
    for line in text.splitlines():
        upper_line = line.upper()
        if (
            "VAT BREAKDOWN" in upper_line
            or "DESGLOSE DE IVA" in upper_line
            or ("% IVA" in upper_line and "CUOTA" in upper_line)
        ):
            in_vat = True
            continue
        if not in_vat:
            continue
        row = re.search(
            r"(\d+)%\s+([0-9]{1,6}[.,][0-9]{2})\s*€?\s+([0-9]{1,6}[.,][0-9]{2})\s*€", line
        )
        if row:
            total += parse_eu_money(row.group(3))
            found = True
            continue
        quotas = _EURO_PREFIXED_RE.findall(line)
        if len(quotas) >= 2:
            total += parse_eu_money(quotas[-1])
            found = True
            continue
        if (
            "VAT INCLUDED" in upper_line
            or "TOTAL BASE IMPONIBLE" in upper_line
            or "DESCUENTOS APLICADOS" in upper_line
        ):
            break
    return round(total, 2) if found else None


def _extract_items_spanish(text: str) -> list[ParsedItem]:
    items: list[ParsedItem] = []
    in_items = False
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if ("Código" in line and "Descripción" in line) or (
            "PVP" in line and "Total sin IVA" in line
        ):
            in_items = True
            continue
        if in_items and any(
            marker in line
            for marker in (
                "Desglose de IVA",
                "Total base imponible",
                "Descuentos aplicados",
                "Sociedad inscrita",
            )
        ):
            break
        if not in_items or "Código" in line or "Precio Unit" in line:
            continue

        amounts = _EURO_AMOUNT_RE.findall(line)
        # unit price, VAT amount and net total at minimum
        if len(amounts) < 3:
            continue
        qty_match = re.search(r"(\d+)\s*unid", line, re.I)
        if not qty_match:
            continue
        quantity = int(qty_match.group(1))

        code_match = re.match(r"^(\d{5,6})\s+", line)
        head = line[code_match.end() :] if code_match else line
        qty_idx = head.find(qty_match.group(0))
        if qty_idx <= 0:
            continue
        description = collapse_spaces(head[:qty_idx])
        if not description:
            continue

        values = [parse_eu_money(a) for a in amounts]
        total = values[-1] + values[-2]
        unit = total / quantity if quantity > 0 else total
        items.append(
            ParsedItem(
                description=description,
                quantity=quantity,
                price_per_unit=round(unit, 2),
                total_price=round(total, 2),
            )
        )

    section = re.search(r"Descuentos aplicados a PVP[\s\S]*?(?=Sociedad inscrita|$)", text, re.I)
    if section:
        for line in section.group(0).splitlines():
            m = re.match(r"^([A-Z][A-Z\s/]+?)\s+([0-9]{1,6}[.,][0-9]{2})\s*€", line.strip(), re.I)
            if not m:
                continue
            description = collapse_spaces(m.group(1))
            amount = parse_eu_money(m.group(2))
            if description and amount > 0 and "Descuentos" not in description:
                items.append(
                    ParsedItem(
                        description=description,
                        quantity=1,
                        price_per_unit=-amount,
                        total_price=-amount,
                    )
                )
    return items


def _extract_items_english(text: str) -> list[ParsedItem]:
    items: list[ParsedItem] = []
    in_items = False
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        lower = line.lower()
        is_header = "DESCRIPTION" in line.upper() and "QUANTITY" in line.upper()
        if "products sold by dia" in lower or is_header:
            in_items = True
            continue
        if in_items and (
            "total sale day" in lower or "vat breakdown" in lower or "payment method" in lower
        ):
            break
        if not in_items:
            continue

        discount = re.match(r"^(.+?)\s+-€([0-9]{1,6}[.,][0-9]{2})(?:\s+[A-C])?$", line, re.I)
        if discount:
            description = collapse_spaces(discount.group(1))
            amount = parse_eu_money(discount.group(2))
            if description and amount > 0:
                items.append(
                    ParsedItem(
                        description=description,
                        quantity=1,
                        price_per_unit=-amount,
                        total_price=-amount,
                    )
                )
            continue

        values = [parse_eu_money(v) for v in _EURO_PREFIXED_RE.findall(line)]
        if not values:
            continue
        qty_match = re.search(r"(\d+)\s*ud", line, re.I)
        quantity = int(qty_match.group(1)) if qty_match else 1

        qty_idx = line.find(qty_match.group(0)) if qty_match else -1
        euro_idx = line.find("€")
        if qty_idx > 0:
            description = collapse_spaces(line[:qty_idx])
        elif euro_idx > 0:
            description = collapse_spaces(line[:euro_idx])
        else:
            description = ""
        if not description:
            continue

        if len(values) >= 2:
            unit, total = values[0], values[1]
            if abs(quantity * unit - total) > 0.02 and quantity > 1:
                total = values[-1]
                unit = total / quantity
        else:
            total = values[0]
            unit = total / quantity if quantity > 0 else total
        items.append(
            ParsedItem(
                description=description,
                quantity=quantity,
                price_per_unit=round(unit, 2),
                total_price=round(total, 2),
            )
        )
    return items
