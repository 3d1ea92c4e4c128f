from __future__ import annotations

import uuid

from sqlalchemy import Boolean, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from folio_receipts.core.models import Base, Timestamped, UserOwned, UUIDPrimaryKey


class ReceiptCategoryType(UUIDPrimaryKey, UserOwned, Timestamped, Base):
    __tablename__ = "receipt_category_types"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_receipt_category_types_user_name"),
    )

    name: Mapped[str] = mapped_column(String(100))
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)


class ReceiptCategory(UUIDPrimaryKey, UserOwned, Timestamped, Base):
    __tablename__ = "receipt_categories"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_receipt_categories_user_name"),)

    type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("receipt_category_types.id"), index=True
    )
    name: Mapped[str] = mapped_column(String(100))
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    broad_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)

    type = relationship("ReceiptCategoryType")
