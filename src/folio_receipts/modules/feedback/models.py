from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from folio_receipts.core.models import Base, Timestamped, UserOwned, UUIDPrimaryKey


class CategoryFeedback(UUIDPrimaryKey, UserOwned, Timestamped, Base):
    __tablename__ = "receipt_category_feedback"

    receipt_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("receipts.id", ondelete="SET NULL"), index=True, nullable=True
    )
    description: Mapped[str] = mapped_column(String(500))
    raw_category: Mapped[str] = mapped_column(String(200))
    locale: Mapped[str | None] = mapped_column(String(10), nullable=True)
    store_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
