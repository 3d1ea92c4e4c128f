from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from folio_receipts.api.deps import get_current_user_id
from folio_receipts.core.db import db_session
from folio_receipts.modules.preferences.schemas import (
    ItemCategoryPreferenceIn,
    ItemCategoryPreferenceOut,
    StoreLanguagePreferenceIn,
    StoreLanguagePreferenceOut,
)
from folio_receipts.modules.preferences.service import (
    upsert_item_category_preferences,
    upsert_store_language_preference,
)

router = APIRouter(tags=["preferences"])


@router.put("/receipts/preferences/item-categories", response_model=ItemCategoryPreferenceOut)
def put_item_category_preference_endpoint(
    payload: ItemCategoryPreferenceIn,
    session: Session = Depends(db_session),
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> ItemCategoryPreferenceOut:
    try:
        updated = upsert_item_category_preferences(
            session,
            user_id=user_id,
            store_name=payload.store_name,
            description=payload.description,
            category_id=payload.category_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return ItemCategoryPreferenceOut(updated=updated)


@router.put("/receipts/preferences/store-language", response_model=StoreLanguagePreferenceOut)
def put_store_language_preference_endpoint(
    payload: StoreLanguagePreferenceIn,
    session: Session = Depends(db_session),
    user_id: uuid.UUID = Depends(get_current_user_id),
) -> StoreLanguagePreferenceOut:
    try:
        language = upsert_store_language_preference(
            session, user_id=user_id, store_name=payload.store_name, language=payload.language
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return StoreLanguagePreferenceOut(store_name=payload.store_name.strip(), language=language)
