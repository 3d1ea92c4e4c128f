from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select

from folio_receipts.core.db import SessionLocal
from folio_receipts.modules.categories.service import ensure_receipt_categories
from folio_receipts.modules.preferences.models import ItemCategoryPreference
from folio_receipts.modules.preferences.service import (
    get_store_language_preference,
    load_item_category_preferences,
    normalize_description_key,
    normalize_store_key,
    upsert_item_category_preferences,
    upsert_store_language_preference,
)


def test_normalize_keys():
    assert normalize_store_key("  Mercadona   Valencia ") == "mercadona valencia"
    assert normalize_store_key(None) == ""
    assert normalize_description_key("Leche Entera 1,5 L") == "leche entera"
    assert normalize_description_key("Plátano de Canarias 500g") == "platano de canarias 500g"
    assert normalize_description_key("  ") == ""


def test_upsert_writes_store_specific_and_generic_keys():
    user_id = uuid.uuid4()
    with SessionLocal() as session:
        catalog = ensure_receipt_categories(session, user_id=user_id)
        dairy = catalog.by_name("Dairy")

        touched = upsert_item_category_preferences(
            session,
            user_id=user_id,
            store_name="Mercadona",
            description="LECHE ENTERA",
            category_id=dairy.id,
        )
        assert touched == 2

        # A second pick bumps the counters instead of duplicating rows.
        upsert_item_category_preferences(
            session,
            user_id=user_id,
            store_name="Mercadona",
            description="LECHE ENTERA",
            category_id=dairy.id,
        )
        rows = session.scalars(
            select(ItemCategoryPreference).where(ItemCategoryPreference.user_id == user_id)
        ).all()
        assert sorted(r.store_key for r in rows) == ["", "mercadona"]
        assert all(r.use_count == 2 for r in rows)

        prefs = load_item_category_preferences(
            session, user_id=user_id, allowed_category_ids=catalog.ids
        )
        assert prefs.lookup("mercadona", "leche entera") == dairy.id
        assert prefs.lookup("lidl", "leche entera") == dairy.id
        assert prefs.lookup("lidl", "") is None


def test_upsert_rejects_unknown_category_and_skips_empty_description():
    user_id = uuid.uuid4()
    with SessionLocal() as session:
        catalog = ensure_receipt_categories(session, user_id=user_id)
        assert (
            upsert_item_category_preferences(
                session,
                user_id=user_id,
                store_name=None,
                description="123",
                category_id=catalog.by_name("Dairy").id,
            )
            == 0
        )
        with pytest.raises(ValueError):
            upsert_item_category_preferences(
                session,
                user_id=user_id,
                store_name=None,
                description="LECHE",
                category_id=uuid.uuid4(),
            )


def test_preferences_for_deleted_categories_are_filtered():
    user_id = uuid.uuid4()
    with SessionLocal() as session:
        catalog = ensure_receipt_categories(session, user_id=user_id)
        upsert_item_category_preferences(
            session,
            user_id=user_id,
            store_name=None,
            description="LECHE",
            category_id=catalog.by_name("Dairy").id,
        )
        prefs = load_item_category_preferences(
            session, user_id=user_id, allowed_category_ids=[catalog.by_name("Snacks").id]
        )
        assert len(prefs) == 0


def test_store_language_preference_roundtrip():
    user_id = uuid.uuid4()
    with SessionLocal() as session:
        assert (
            upsert_store_language_preference(
                session, user_id=user_id, store_name="Tesco Express", language="EN"
            )
            == "en"
        )
        assert (
            get_store_language_preference(session, user_id=user_id, store_name="tesco  express")
            == "en"
        )

        assert (
            upsert_store_language_preference(
                session, user_id=user_id, store_name="Tesco Express", language="auto"
            )
            is None
        )
        assert get_store_language_preference(session, user_id=user_id, store_name="Tesco Express") is None

        with pytest.raises(ValueError):
            upsert_store_language_preference(
                session, user_id=user_id, store_name="Tesco Express", language="xx"
            )
        with pytest.raises(ValueError):
            upsert_store_language_preference(session, user_id=user_id, store_name="  ", language="en")
