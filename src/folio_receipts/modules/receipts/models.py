from __future__ import annotations

import enum
import uuid
from datetime import date, time
from decimal import Decimal

from sqlalchemy import JSON, Date, Enum, ForeignKey, Integer, Numeric, String, Text, Time, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from folio_receipts.core.models import Base, Timestamped, UserOwned, UUIDPrimaryKey


class ReceiptStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class ReceiptFile(UUIDPrimaryKey, UserOwned, Timestamped, Base):
    __tablename__ = "receipt_files"

    file_name: Mapped[str] = mapped_column(String(512))
    content_type: Mapped[str | None] = mapped_column(String(200), nullable=True)
    byte_size: Mapped[int] = mapped_column(Integer)
    sha256: Mapped[str] = mapped_column(String(64), index=True)
    storage_key: Mapped[str] = mapped_column(String(1024), unique=True)


class Receipt(UUIDPrimaryKey, UserOwned, Timestamped, Base):
    __tablename__ = "receipts"

    receipt_file_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("receipt_files.id"), index=True
    )

    store_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    receipt_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    receipt_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="EUR")
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))

    status: Mapped[ReceiptStatus] = mapped_column(
        Enum(ReceiptStatus, native_enum=False), index=True, default=ReceiptStatus.PENDING
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_extraction_data: Mapped[dict] = mapped_column(JSON, default=dict)

    receipt_file = relationship("ReceiptFile")
    transactions = relationship(
        "ReceiptTransaction", back_populates="receipt", cascade="all, delete-orphan"
    )


class ReceiptTransaction(UUIDPrimaryKey, UserOwned, Timestamped, Base):
    __tablename__ = "receipt_transactions"

    receipt_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("receipts.id", ondelete="CASCADE"), index=True
    )
    description: Mapped[str] = mapped_column(Text)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), default=Decimal("1"))
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2))

    category_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("receipt_categories.id", ondelete="SET NULL"), nullable=True
    )
    category_type_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("receipt_category_types.id", ondelete="SET NULL"),
        nullable=True,
    )
    category_source: Mapped[str | None] = mapped_column(String(20), nullable=True)

    receipt_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    receipt_time: Mapped[time | None] = mapped_column(Time, nullable=True)

    receipt = relationship("Receipt", back_populates="transactions")
    category = relationship("ReceiptCategory")
