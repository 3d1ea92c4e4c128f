from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from datetime import time as dt_time
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from folio_receipts.core.config import settings
from folio_receipts.core.db import SessionLocal
from folio_receipts.core.logging import (
    get_logger,
    log_event,
    log_exception,
    monotonic_ms,
    receipt_context,
)
from folio_receipts.core.storage import StorageError, get_storage
from folio_receipts.modules.categories.chain import CategoryChain, ItemContext
from folio_receipts.modules.categories.service import CategoryCatalog, ensure_receipt_categories
from folio_receipts.modules.extraction.quality import parse_amount
from folio_receipts.modules.extraction.service import ExtractionError, extract_receipt
from folio_receipts.modules.feedback.service import FeedbackLogger
from folio_receipts.modules.language.detector import UNKNOWN, detect_language
from folio_receipts.modules.preferences.service import (
    PreferenceMap,
    get_store_language_preference,
    load_item_category_preferences,
    normalize_description_key,
    normalize_store_key,
)
from folio_receipts.modules.receipts.models import Receipt, ReceiptFile
from folio_receipts.modules.receipts.persistence import (
    LineItem,
    ReceiptHeader,
    mark_receipt_failed,
    persist_receipt,
)
from folio_receipts.modules.rules.matcher import match_description

logger = get_logger(__name__)

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DMY_DATE_RE = re.compile(r"^(\d{2})[/-](\d{2})[/-](\d{4})$")
_TIME_RE = re.compile(r"^(\d{2}):(\d{2})(?::(\d{2}))?$")


@dataclass(frozen=True)
class NormalizedItem:
    description: str
    quantity: float
    price_per_unit: float
    total_price: float
    raw_category: str


@dataclass
class NormalizedReceipt:
    store_name: str | None
    receipt_date: str
    receipt_time: str
    currency: str
    total_amount: float
    items: list[NormalizedItem] = field(default_factory=list)


def parse_number(value: Any) -> float:
    return parse_amount(value) or 0.0


def normalize_date(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    m = _ISO_DATE_RE.match(trimmed)
    if m:
        year, month, day = m.groups()
    else:
        m = _DMY_DATE_RE.match(trimmed)
        if not m:
            return None
        day, month, year = m.groups()
    try:
        return date(int(year), int(month), int(day)).isoformat()
    except ValueError:
        return None


def normalize_time(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    m = _TIME_RE.match(value.strip())
    if not m:
        return None
    hour, minute, second = int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        return None
    return f"{hour:02d}:{minute:02d}:{second:02d}"


def normalize_item(raw: Any) -> NormalizedItem | None:
    """
    Coerce one raw item, deriving whichever of quantity/unit/total is missing.

    Quantity is at least 1. Any non-zero unit or total counts as present so
    negative discount lines survive.
    """
    if not isinstance(raw, dict):
        return None
    description = raw.get("description")
    description = description.strip() if isinstance(description, str) else ""
    if not description:
        return None

    quantity = parse_number(raw.get("quantity"))
    unit = parse_number(raw.get("price_per_unit"))
    total = parse_number(raw.get("total_price"))

    if quantity <= 0 and unit > 0 and total > 0:
        quantity = round(total / unit, 3)
    quantity = max(1.0, quantity or 1.0)
    if unit == 0 and total != 0:
        unit = total / quantity
    if total == 0 and unit != 0:
        total = unit * quantity

    category = raw.get("category")
    return NormalizedItem(
        description=description,
        quantity=quantity,
        price_per_unit=round(unit, 2),
        total_price=round(total, 2),
        raw_category=category.strip() if isinstance(category, str) else "",
    )


def normalize_extracted(
    extracted: dict[str, Any], *, now: datetime | None = None
) -> NormalizedReceipt:
    now = now or datetime.now(UTC)
    currency = extracted.get("currency")
    currency = (
        currency.strip().upper()[:3]
        if isinstance(currency, str) and currency.strip()
        else settings.receipt_default_currency
    )
    store_name = extracted.get("store_name")
    store_name = store_name.strip()[:200] if isinstance(store_name, str) and store_name.strip() else None

    raw_items = extracted.get("items")
    items = [
        item
        for item in (normalize_item(raw) for raw in (raw_items if isinstance(raw_items, list) else []))
        if item is not None
    ]
    summed = round(sum(item.total_price for item in items), 2)
    total_amount = max(parse_number(extracted.get("total_amount")), summed)

    return NormalizedReceipt(
        store_name=store_name,
        receipt_date=normalize_date(extracted.get("receipt_date")) or now.date().isoformat(),
        receipt_time=normalize_time(extracted.get("receipt_time")) or now.strftime("%H:%M:%S"),
        currency=currency,
        total_amount=round(total_amount, 2),
        items=items,
    )


def resolve_locale(
    session: Session, *, user_id: uuid.UUID, store_name: str | None, descriptions: list[str]
) -> tuple[str, str]:
    """Returns (locale, source); a store-language preference beats detection."""
    if store_name:
        try:
            forced = get_store_language_preference(session, user_id=user_id, store_name=store_name)
        except Exception:
            log_exception(logger, "receipt.store_language.load_failed")
            session.rollback()
            forced = None
        if forced:
            return forced, "preference"
    return detect_language(descriptions), "detected"


def _load_preferences(
    session: Session, *, user_id: uuid.UUID, catalog: CategoryCatalog
) -> PreferenceMap:
    try:
        return load_item_category_preferences(
            session,
            user_id=user_id,
            allowed_category_ids=catalog.ids,
        )
    except Exception:
        log_exception(logger, "receipt.preferences.load_failed")
        session.rollback()
        return PreferenceMap()


def process_receipt_now(*, receipt_id: str, user_id: str) -> None:
    """
    Extract, categorize and persist one receipt. Never raises.

    A receipt that does not exist for this user is skipped silently; every other
    failure ends with the receipt marked failed.
    """
    try:
        rid = uuid.UUID(str(receipt_id))
        uid = uuid.UUID(str(user_id))
    except ValueError:
        log_event(logger, "receipt.processing.skipped", reason="invalid_id")
        return
    with receipt_context(receipt_id=str(rid), user_id=str(uid)), SessionLocal() as session:
        start = time.monotonic()
        row = session.execute(
            select(Receipt, ReceiptFile)
            .join(ReceiptFile, ReceiptFile.id == Receipt.receipt_file_id)
            .where(Receipt.id == rid, Receipt.user_id == uid)
        ).first()
        if row is None:
            log_event(logger, "receipt.processing.skipped", reason="receipt_not_found")
            return
        receipt_file: ReceiptFile = row[1]
        file_name = receipt_file.file_name
        log_event(logger, "receipt.processing.start", file_name=file_name)

        failure_meta: dict[str, Any] = {
            "model": settings.receipt_ai_model,
            "fileName": file_name,
        }
        try:
            _process(
                session,
                receipt_id=rid,
                user_id=uid,
                receipt_file=receipt_file,
                failure_meta=failure_meta,
            )
        except Exception as e:
            if not isinstance(e, (ExtractionError, StorageError)):
                log_exception(logger, "receipt.processing.error", file_name=file_name)
            _mark_failed_quietly(
                session, receipt_id=rid, user_id=uid, error=str(e) or type(e).__name__, meta=failure_meta
            )
            return
        log_event(logger, "receipt.processing.finish", duration_ms=monotonic_ms(start))


def _mark_failed_quietly(
    session: Session, *, receipt_id: uuid.UUID, user_id: uuid.UUID, error: str, meta: dict[str, Any]
) -> None:
    try:
        mark_receipt_failed(session, receipt_id=receipt_id, user_id=user_id, error=error, meta=meta)
    except Exception:
        log_exception(logger, "receipt.processing.mark_failed_error")


def _process(
    session: Session,
    *,
    receipt_id: uuid.UUID,
    user_id: uuid.UUID,
    receipt_file: ReceiptFile,
    failure_meta: dict[str, Any],
) -> None:
    file_name = receipt_file.file_name
    body = get_storage().get(key=receipt_file.storage_key)

    catalog = ensure_receipt_categories(session, user_id=user_id)
    preferences = _load_preferences(session, user_id=user_id, catalog=catalog)

    try:
        extraction = extract_receipt(
            session,
            body=body,
            file_name=file_name,
            content_type=receipt_file.content_type,
            allowed_categories=catalog.prompt_names(),
        )
    except ExtractionError as e:
        failure_meta["warnings"] = e.warnings
        failure_meta["parseMeta"] = e.meta
        raise

    normalized = normalize_extracted(extraction.extracted)
    locale, locale_source = resolve_locale(
        session,
        user_id=user_id,
        store_name=normalized.store_name,
        descriptions=[item.description for item in normalized.items],
    )
    merchant = match_description(normalized.store_name, locale=locale)

    store_key = normalize_store_key(normalized.store_name)
    chain = CategoryChain(catalog=catalog, preferences=preferences)
    feedback = FeedbackLogger(user_id=user_id, receipt_id=receipt_id)
    line_items: list[LineItem] = []
    for item in normalized.items:
        decision = chain.resolve(
            ItemContext(
                description=item.description,
                raw_category=item.raw_category,
                store_key=store_key,
                description_key=normalize_description_key(item.description),
                locale=locale,
            )
        )
        if decision.unresolved:
            feedback.record(
                description=item.description,
                raw_category=item.raw_category,
                locale=locale,
                store_name=normalized.store_name,
                file_name=file_name,
            )
        category = decision.category
        line_items.append(
            LineItem(
                description=item.description,
                quantity=item.quantity,
                price_per_unit=item.price_per_unit,
                total_price=item.total_price,
                category_id=category.id if category else None,
                category_type_id=category.type_id if category else None,
                category_source=decision.source,
            )
        )

    diagnostics: dict[str, Any] = {
        "status": "completed",
        "model": extraction.model,
        "rawText": extraction.raw_text,
        "extracted": extraction.extracted,
        "normalized": {
            "storeName": normalized.store_name,
            "receiptDate": normalized.receipt_date,
            "receiptTime": normalized.receipt_time,
            "currency": normalized.currency,
            "totalAmount": normalized.total_amount,
            "itemCount": len(line_items),
        },
        "extractionMethod": extraction.method,
        "parser": extraction.parser,
        "warnings": extraction.warnings,
        "parseMeta": extraction.meta,
        "language": {"locale": locale, "source": locale_source},
        "merchant": (
            {
                "label": merchant.label,
                "category": merchant.category,
                "confidence": merchant.confidence,
                "rule": merchant.matched_rule,
            }
            if merchant
            else None
        ),
        "unresolvedCategories": len(feedback.entries) + feedback.dropped,
        "processedAt": datetime.now(UTC).isoformat(),
    }

    header = ReceiptHeader(
        store_name=normalized.store_name,
        receipt_date=date.fromisoformat(normalized.receipt_date),
        receipt_time=dt_time.fromisoformat(normalized.receipt_time),
        currency=normalized.currency,
        total_amount=normalized.total_amount,
    )
    persist_receipt(
        session,
        receipt_id=receipt_id,
        user_id=user_id,
        header=header,
        items=line_items,
        diagnostics=diagnostics,
    )
    log_event(
        logger,
        "receipt.processing.persisted",
        method=extraction.method,
        locale=locale if locale != UNKNOWN else None,
        item_count=len(line_items),
    )
    feedback.flush()
