from __future__ import annotations

import uuid

from pydantic import BaseModel, Field


class ItemCategoryPreferenceIn(BaseModel):
    store_name: str | None = None
    description: str = Field(min_length=1)
    category_id: uuid.UUID


class ItemCategoryPreferenceOut(BaseModel):
    updated: int


class StoreLanguagePreferenceIn(BaseModel):
    store_name: str = Field(min_length=1)
    language: str | None = None


class StoreLanguagePreferenceOut(BaseModel):
    store_name: str
    language: str | None
