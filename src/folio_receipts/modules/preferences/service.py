from __future__ import annotations

import re
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from folio_receipts.core.config import settings
from folio_receipts.core.logging import get_logger, log_event
from folio_receipts.core.text import strip_accents
from folio_receipts.modules.categories.models import ReceiptCategory
from folio_receipts.modules.language.detector import SUPPORTED_LOCALES
from folio_receipts.modules.preferences.models import (
    ItemCategoryPreference,
    StoreLanguagePreference,
)

logger = get_logger(__name__)

_NUMBER_RE = re.compile(r"\b\d+(?:[.,]\d+)?\b")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_UNIT_RE = re.compile(r"\b(kg|g|gr|l|ml|cl|oz|lb|x|pcs|pc|uds|ud|unit|units)\b")
_WS_RE = re.compile(r"\s+")


def normalize_store_key(store_name: str | None) -> str:
    return _WS_RE.sub(" ", (store_name or "").strip().lower())[:120]


def normalize_description_key(description: str | None) -> str:
    text = (description or "").strip()
    if not text:
        return ""
    text = strip_accents(text.lower())
    text = _NUMBER_RE.sub(" ", text)
    text = _NON_ALNUM_RE.sub(" ", text)
    text = _UNIT_RE.sub(" ", text)
    return _WS_RE.sub(" ", text).strip()[:160]


class PreferenceMap:
    """(store key, description key) -> category id, store-specific keys first."""

    def __init__(self, entries: dict[tuple[str, str], uuid.UUID] | None = None):
        self._entries = dict(entries or {})

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, store_key: str, description_key: str) -> uuid.UUID | None:
        if not description_key:
            return None
        found = self._entries.get((store_key, description_key))
        if found is None:
            found = self._entries.get(("", description_key))
        return found


def load_item_category_preferences(
    session: Session,
    *,
    user_id: uuid.UUID,
    allowed_category_ids: Iterable[uuid.UUID] | None = None,
    limit: int | None = None,
) -> PreferenceMap:
    effective_limit = min(max(limit or settings.receipt_preference_limit, 1), 2000)
    rows = session.execute(
        select(
            ItemCategoryPreference.store_key,
            ItemCategoryPreference.description_key,
            ItemCategoryPreference.category_id,
        )
        .where(ItemCategoryPreference.user_id == user_id)
        .order_by(ItemCategoryPreference.updated_at.desc())
        .limit(effective_limit)
    ).all()

    allowed = set(allowed_category_ids) if allowed_category_ids is not None else None
    entries: dict[tuple[str, str], uuid.UUID] = {}
    for store_key, description_key, category_id in rows:
        if allowed is not None and category_id not in allowed:
            continue
        entries.setdefault((store_key, description_key), category_id)
    return PreferenceMap(entries)


def upsert_item_category_preferences(
    session: Session,
    *,
    user_id: uuid.UUID,
    store_name: str | None,
    description: str,
    category_id: uuid.UUID,
) -> int:
    """
    Remember the user's category pick for an item.

    Writes the store-specific key and the store-agnostic key. Returns the number
    of preference rows touched (0 when the description normalizes to nothing).
    """
    description_key = normalize_description_key(description)
    if not description_key:
        return 0

    category = session.scalar(
        select(ReceiptCategory).where(
            ReceiptCategory.id == category_id, ReceiptCategory.user_id == user_id
        )
    )
    if category is None:
        raise ValueError("Unknown category")

    store_key = normalize_store_key(store_name)
    keys = [store_key, ""] if store_key else [""]
    now = datetime.now(UTC)
    for key in keys:
        pref = session.scalar(
            select(ItemCategoryPreference).where(
                ItemCategoryPreference.user_id == user_id,
                ItemCategoryPreference.store_key == key,
                ItemCategoryPreference.description_key == description_key,
            )
        )
        if pref is None:
            pref = ItemCategoryPreference(
                user_id=user_id,
                store_key=key,
                description_key=description_key,
                use_count=0,
            )
        pref.category_id = category_id
        pref.example_description = description.strip()[:500]
        pref.use_count = (pref.use_count or 0) + 1
        pref.last_used_at = now
        pref.updated_at = now
        session.add(pref)
    session.commit()
    log_event(
        logger,
        "receipt.preferences.item_category.upserted",
        store_key=store_key or None,
        description_key=description_key,
        category_id=str(category_id),
    )
    return len(keys)


def get_store_language_preference(
    session: Session, *, user_id: uuid.UUID, store_name: str | None
) -> str | None:
    store_key = normalize_store_key(store_name)
    if not store_key:
        return None
    return session.scalar(
        select(StoreLanguagePreference.language).where(
            StoreLanguagePreference.user_id == user_id,
            StoreLanguagePreference.store_key == store_key,
        )
    )


def upsert_store_language_preference(
    session: Session, *, user_id: uuid.UUID, store_name: str, language: str | None
) -> str | None:
    """Force a locale for a store; ``"auto"`` or empty removes the override."""
    store_key = normalize_store_key(store_name)
    if not store_key:
        raise ValueError("Store name is required")

    lang = (language or "").strip().lower()
    if not lang or lang == "auto":
        session.execute(
            delete(StoreLanguagePreference).where(
                StoreLanguagePreference.user_id == user_id,
                StoreLanguagePreference.store_key == store_key,
            )
        )
        session.commit()
        return None
    if lang not in SUPPORTED_LOCALES:
        raise ValueError(f"Unsupported language: {lang}")

    pref = session.scalar(
        select(StoreLanguagePreference).where(
            StoreLanguagePreference.user_id == user_id,
            StoreLanguagePreference.store_key == store_key,
        )
    )
    if pref is None:
        pref = StoreLanguagePreference(user_id=user_id, store_key=store_key, use_count=0)
    pref.store_name = store_name.strip()[:200]
    pref.language = lang
    pref.use_count = (pref.use_count or 0) + 1
    session.add(pref)
    session.commit()
    return lang
