from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from folio_receipts.core.text import collapse_spaces

MONEY_RE = re.compile(r"\d{1,6}[.,]\d{2}")
LEADING_QTY_RE = re.compile(r"^(\d+(?:[.,]\d+)?)\s+")
PRICE_TOLERANCE = 0.02


@dataclass(frozen=True)
class ParsedItem:
    description: str
    quantity: float
    price_per_unit: float
    total_price: float
    category: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "quantity": self.quantity,
            "price_per_unit": self.price_per_unit,
            "total_price": self.total_price,
            "category": self.category,
        }


@dataclass(frozen=True)
class ParsedReceipt:
    parser: str
    store_name: str | None
    receipt_date: str | None
    receipt_time: str | None
    currency: str | None
    total_amount: float | None
    taxes_total_cuota: float | None = None
    items: list[ParsedItem] = field(default_factory=list)

    @property
    def items_total(self) -> float:
        return round(sum(item.total_price for item in self.items), 2)

    def as_extracted(self) -> dict[str, Any]:
        return {
            "store_name": self.store_name,
            "receipt_date": self.receipt_date,
            "receipt_time": self.receipt_time,
            "currency": self.currency,
            "total_amount": self.total_amount,
            "taxes_total_cuota": self.taxes_total_cuota,
            "items": [item.as_dict() for item in self.items],
        }


def parse_eu_money(value: str | None) -> float:
    """
    "61,36" -> 61.36, "1.234,56" -> 1234.56, "61.36" -> 61.36.
    Unparseable input gives 0.0.
    """
    s = (value or "").strip()
    if not s:
        return 0.0
    dots = s.count(".")
    commas = s.count(",")
    if commas == 1 and dots == 0:
        normalized = s.replace(",", ".")
    elif commas == 1 and dots >= 1:
        normalized = s.replace(".", "").replace(",", ".")
    elif dots == 1 and commas == 0:
        normalized = s
    elif commas >= 1 and dots == 0:
        idx = s.rfind(",")
        normalized = s[:idx].replace(",", "") + "." + s[idx + 1 :]
    else:
        normalized = re.sub(r"[^0-9.]", "", s)
    try:
        return float(normalized)
    except ValueError:
        return 0.0


def to_iso_date(value: str | None) -> str | None:
    """Accepts YYYY-MM-DD, YYYY/MM/DD, DD/MM/YYYY, DD-MM-YYYY and DD/MM/YY."""
    s = (value or "").strip()
    if not s:
        return None
    m = re.match(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$", s)
    if m:
        year, month, day = m.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    m = re.match(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$", s)
    if m:
        day, month, year = m.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    m = re.match(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{2})$", s)
    if m:
        day, month, short_year = m.groups()
        year = f"19{short_year}" if int(short_year) >= 50 else f"20{short_year}"
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    return None


def normalize_time(value: str | None) -> str | None:
    s = (value or "").strip()
    m = re.match(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$", s)
    if not m:
        return None
    hour, minute, second = m.groups()
    return f"{hour.zfill(2)}:{minute}:{second or '00'}"


def time_from_parts(hour: str, minute: str, second: str | None) -> str | None:
    return normalize_time(f"{hour}:{minute}" + (f":{second}" if second else ""))


def money_tokens(line: str) -> list[float]:
    return [parse_eu_money(m) for m in MONEY_RE.findall(line)]


def normalize_ocr_text(text: str) -> str:
    """Fixes the usual OCR confusions, but only inside numbers."""
    t = re.sub(r"[ \t]+", " ", text or "")
    t = t.replace("\r\n", "\n").replace("\r", "\n")
    t = re.sub(r"(\d)O(\d)", r"\g<1>0\2", t)
    t = re.sub(r"(\d)O([.,])", r"\g<1>0\2", t)
    t = re.sub(r"O(\d)", r"0\1", t)
    t = re.sub(r"^l\s+", "1 ", t, flags=re.M)
    t = re.sub(r"(\d)\s*,\s*(\d)", r"\1,\2", t)
    t = re.sub(r"(\d)\s*\.\s*(\d)", r"\1.\2", t)
    return "\n".join(line.strip() for line in t.split("\n"))


def split_unit_and_total(
    quantity: float, tokens: list[float], *, allow_reversed: bool = False
) -> tuple[float, float]:
    """Reads (unit, total) off the right end of an item line's money tokens."""
    if len(tokens) >= 2:
        price_1, price_2 = tokens[-2], tokens[-1]
        if abs(quantity * price_1 - price_2) <= PRICE_TOLERANCE:
            return price_1, price_2
        if allow_reversed and abs(quantity * price_2 - price_1) <= PRICE_TOLERANCE:
            return price_2, price_1
        if quantity == 1:
            return price_2, price_2
        return (price_2 / quantity if quantity > 0 else price_2), price_2
    total = tokens[0]
    return (total / quantity if quantity > 0 else total), total


def parse_quantity_led_line(line: str, *, allow_reversed: bool = False) -> ParsedItem | None:
    """`<qty> <description> [<unit>] <total>` as printed by most Spanish tills."""
    tokens = money_tokens(line)
    if not tokens:
        return None
    qty_match = LEADING_QTY_RE.match(line)
    if not qty_match:
        return None
    quantity = parse_eu_money(qty_match.group(1)) or 1.0
    after_qty = line[qty_match.end() :]
    first_money = MONEY_RE.search(after_qty)
    if not first_money:
        return None
    description = collapse_spaces(after_qty[: first_money.start()])
    if not description:
        return None
    unit, total = split_unit_and_total(quantity, tokens, allow_reversed=allow_reversed)
    return ParsedItem(
        description=description,
        quantity=round(quantity, 2),
        price_per_unit=round(unit, 2),
        total_price=round(total, 2),
    )


def has_minimal_fields(
    receipt: ParsedReceipt,
    *,
    store_ok: bool,
    tolerance_pct: float,
    tolerance_abs: float,
) -> bool:
    if not store_ok or not receipt.receipt_date:
        return False
    if receipt.total_amount is None or receipt.total_amount <= 0:
        return False
    if not receipt.items:
        return False
    difference = abs(receipt.items_total - receipt.total_amount)
    return not (
        difference > receipt.total_amount * tolerance_pct and difference > tolerance_abs
    )
