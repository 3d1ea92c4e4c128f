from __future__ import annotations

import uuid

from sqlalchemy import func, select

from folio_receipts.core.db import SessionLocal
from folio_receipts.modules.categories.defaults import (
    DEFAULT_RECEIPT_CATEGORIES,
    DEFAULT_RECEIPT_CATEGORY_TYPES,
)
from folio_receipts.modules.categories.models import ReceiptCategory, ReceiptCategoryType
from folio_receipts.modules.categories.service import ensure_receipt_categories


def test_seeding_is_idempotent_per_user():
    user_id = uuid.uuid4()
    with SessionLocal() as session:
        first = ensure_receipt_categories(session, user_id=user_id)
        second = ensure_receipt_categories(session, user_id=user_id)

        assert len(first) == len(DEFAULT_RECEIPT_CATEGORIES)
        assert sorted(first.names) == sorted(second.names)
        assert (
            session.scalar(
                select(func.count()).select_from(ReceiptCategoryType).where(
                    ReceiptCategoryType.user_id == user_id
                )
            )
            == len(DEFAULT_RECEIPT_CATEGORY_TYPES)
        )


def test_seeding_fills_gaps_without_touching_custom_categories():
    user_id = uuid.uuid4()
    with SessionLocal() as session:
        catalog = ensure_receipt_categories(session, user_id=user_id)
        session.delete(session.get(ReceiptCategory, catalog.by_name("Snacks").id))
        custom = ReceiptCategory(
            user_id=user_id,
            type_id=catalog.by_name("Dairy").type_id,
            name="Cheese Board",
            broad_type="Food",
        )
        session.add(custom)
        session.commit()

        reseeded = ensure_receipt_categories(session, user_id=user_id)
        assert reseeded.by_name("Snacks") is not None
        assert reseeded.by_name("cheese board") is not None
        assert len(reseeded) == len(DEFAULT_RECEIPT_CATEGORIES) + 1


def test_catalog_keeps_other_out_of_prompt_names():
    with SessionLocal() as session:
        catalog = ensure_receipt_categories(session, user_id=uuid.uuid4())
    assert catalog.other is not None
    assert "Other" not in catalog.prompt_names()
    assert "Dairy" in catalog.prompt_names()


def test_backfills_broad_type_on_existing_defaults():
    user_id = uuid.uuid4()
    with SessionLocal() as session:
        catalog = ensure_receipt_categories(session, user_id=user_id)
        water = session.get(ReceiptCategory, catalog.by_name("Water").id)
        water.broad_type = None
        session.commit()

        reseeded = ensure_receipt_categories(session, user_id=user_id)
        assert reseeded.by_name("Water").broad_type == "Drinks"
