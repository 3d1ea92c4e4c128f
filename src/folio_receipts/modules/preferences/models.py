from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from folio_receipts.core.models import Base, Timestamped, UserOwned, UUIDPrimaryKey


class ItemCategoryPreference(UUIDPrimaryKey, UserOwned, Timestamped, Base):
    __tablename__ = "receipt_item_category_preferences"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "store_key",
            "description_key",
            name="uq_receipt_item_category_preferences_key",
        ),
    )

    # Empty store key means "any store".
    store_key: Mapped[str] = mapped_column(String(120), default="")
    description_key: Mapped[str] = mapped_column(String(160))
    example_description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("receipt_categories.id", ondelete="CASCADE"), index=True
    )
    use_count: Mapped[int] = mapped_column(Integer, default=1)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class StoreLanguagePreference(UUIDPrimaryKey, UserOwned, Timestamped, Base):
    __tablename__ = "receipt_store_language_preferences"
    __table_args__ = (
        UniqueConstraint("user_id", "store_key", name="uq_receipt_store_language_preferences_key"),
    )

    store_key: Mapped[str] = mapped_column(String(120))
    store_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    language: Mapped[str] = mapped_column(String(10))
    use_count: Mapped[int] = mapped_column(Integer, default=1)
