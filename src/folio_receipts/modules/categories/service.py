from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from folio_receipts.core.logging import get_logger, log_event
from folio_receipts.modules.categories.defaults import (
    DEFAULT_RECEIPT_CATEGORIES,
    DEFAULT_RECEIPT_CATEGORY_TYPES,
    OTHER_CATEGORY,
)
from folio_receipts.modules.categories.models import ReceiptCategory, ReceiptCategoryType

logger = get_logger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    id: uuid.UUID
    name: str
    type_id: uuid.UUID
    broad_type: str


class CategoryCatalog:
    """Read-only snapshot of a user's categories, taken once per processing run."""

    def __init__(self, entries: Iterable[CatalogEntry]):
        self._entries = list(entries)
        self._by_lower: dict[str, CatalogEntry] = {}
        self._by_id: dict[uuid.UUID, CatalogEntry] = {}
        for entry in self._entries:
            self._by_lower.setdefault(entry.name.lower(), entry)
            self._by_id[entry.id] = entry

    @classmethod
    def from_rows(cls, rows: Iterable[ReceiptCategory]) -> CategoryCatalog:
        return cls(
            CatalogEntry(
                id=row.id,
                name=row.name,
                type_id=row.type_id,
                broad_type=row.broad_type or "Other",
            )
            for row in rows
        )

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def names(self) -> list[str]:
        return [entry.name for entry in self._entries]

    @property
    def ids(self) -> list[uuid.UUID]:
        return [entry.id for entry in self._entries]

    @property
    def other(self) -> CatalogEntry | None:
        return self._by_lower.get(OTHER_CATEGORY.lower())

    def by_name(self, name: str | None) -> CatalogEntry | None:
        if not name:
            return None
        return self._by_lower.get(name.strip().lower())

    def by_id(self, category_id: uuid.UUID | None) -> CatalogEntry | None:
        if category_id is None:
            return None
        return self._by_id.get(category_id)

    def names_by_lower(self) -> dict[str, str]:
        return {key: entry.name for key, entry in self._by_lower.items()}

    def prompt_names(self) -> list[str]:
        """Category names offered to the model; "Other" is kept out of the main list."""
        names = [entry.name for entry in self._entries if entry.name.lower() != "other"]
        return names or [OTHER_CATEGORY]


def ensure_receipt_category_types(
    session: Session, *, user_id: uuid.UUID
) -> list[ReceiptCategoryType]:
    types = list(
        session.scalars(
            select(ReceiptCategoryType).where(ReceiptCategoryType.user_id == user_id)
        ).all()
    )
    known = {t.name.lower() for t in types}
    missing = [t for t in DEFAULT_RECEIPT_CATEGORY_TYPES if t.name.lower() not in known]
    if not missing:
        return types

    for default in missing:
        try:
            with session.begin_nested():
                session.add(
                    ReceiptCategoryType(user_id=user_id, name=default.name, color=default.color)
                )
                session.flush()
        except IntegrityError:
            # Created concurrently by another run.
            continue
    session.commit()
    return list(
        session.scalars(
            select(ReceiptCategoryType).where(ReceiptCategoryType.user_id == user_id)
        ).all()
    )


def ensure_receipt_categories(session: Session, *, user_id: uuid.UUID) -> CategoryCatalog:
    types = ensure_receipt_category_types(session, user_id=user_id)
    type_id_by_name = {t.name.lower(): t.id for t in types}

    existing = list(
        session.scalars(select(ReceiptCategory).where(ReceiptCategory.user_id == user_id)).all()
    )
    existing_names = {c.name.lower() for c in existing}

    seeded = 0
    for default in DEFAULT_RECEIPT_CATEGORIES:
        if default.name.lower() in existing_names:
            continue
        type_id = type_id_by_name.get(default.type.lower())
        if not type_id:
            continue
        try:
            with session.begin_nested():
                session.add(
                    ReceiptCategory(
                        user_id=user_id,
                        type_id=type_id,
                        name=default.name,
                        color=default.color,
                        broad_type=default.broad_type,
                        is_default=True,
                    )
                )
                session.flush()
            seeded += 1
        except IntegrityError:
            continue

    _backfill_broad_types(existing)
    session.commit()

    if seeded:
        log_event(
            logger,
            "receipt.categories.seeded",
            count=seeded,
            first_run=not existing,
        )

    rows = session.scalars(
        select(ReceiptCategory)
        .where(ReceiptCategory.user_id == user_id)
        .order_by(ReceiptCategory.name)
    ).all()
    return CategoryCatalog.from_rows(rows)


def _backfill_broad_types(categories: list[ReceiptCategory]) -> None:
    default_broad_type = {c.name.lower(): c.broad_type for c in DEFAULT_RECEIPT_CATEGORIES}
    for category in categories:
        expected = default_broad_type.get(category.name.lower())
        if expected and category.broad_type != expected:
            category.broad_type = expected
