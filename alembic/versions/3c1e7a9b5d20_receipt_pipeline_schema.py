"""receipt pipeline schema

Revision ID: 3c1e7a9b5d20
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "3c1e7a9b5d20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "receipt_category_types",
        *_base_columns(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=20), nullable=True),
        sa.UniqueConstraint("user_id", "name", name="uq_receipt_category_types_user_name"),
    )
    op.create_index("ix_receipt_category_types_user_id", "receipt_category_types", ["user_id"])

    op.create_table(
        "receipt_categories",
        *_base_columns(),
        sa.Column(
            "type_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("receipt_category_types.id"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=20), nullable=True),
        sa.Column("broad_type", sa.String(length=50), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.UniqueConstraint("user_id", "name", name="uq_receipt_categories_user_name"),
    )
    op.create_index("ix_receipt_categories_user_id", "receipt_categories", ["user_id"])
    op.create_index("ix_receipt_categories_type_id", "receipt_categories", ["type_id"])

    op.create_table(
        "receipt_files",
        *_base_columns(),
        sa.Column("file_name", sa.String(length=512), nullable=False),
        sa.Column("content_type", sa.String(length=200), nullable=True),
        sa.Column("byte_size", sa.Integer(), nullable=False),
        sa.Column("sha256", sa.String(length=64), nullable=False),
        sa.Column("storage_key", sa.String(length=1024), nullable=False),
        sa.UniqueConstraint("storage_key", name="uq_receipt_files_storage_key"),
    )
    op.create_index("ix_receipt_files_user_id", "receipt_files", ["user_id"])
    op.create_index("ix_receipt_files_sha256", "receipt_files", ["sha256"])

    op.create_table(
        "receipts",
        *_base_columns(),
        sa.Column(
            "receipt_file_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("receipt_files.id"),
            nullable=False,
        ),
        sa.Column("store_name", sa.String(length=200), nullable=True),
        sa.Column("receipt_date", sa.Date(), nullable=True),
        sa.Column("receipt_time", sa.Time(), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(length=9), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("ai_extraction_data", sa.JSON(), nullable=False),
    )
    op.create_index("ix_receipts_user_id", "receipts", ["user_id"])
    op.create_index("ix_receipts_receipt_file_id", "receipts", ["receipt_file_id"])
    op.create_index("ix_receipts_status", "receipts", ["status"])

    op.create_table(
        "receipt_transactions",
        *_base_columns(),
        sa.Column(
            "receipt_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("receipts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 3), nullable=False),
        sa.Column("price_per_unit", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "category_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("receipt_categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "category_type_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("receipt_category_types.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("category_source", sa.String(length=20), nullable=True),
        sa.Column("receipt_date", sa.Date(), nullable=True),
        sa.Column("receipt_time", sa.Time(), nullable=True),
    )
    op.create_index("ix_receipt_transactions_user_id", "receipt_transactions", ["user_id"])
    op.create_index("ix_receipt_transactions_receipt_id", "receipt_transactions", ["receipt_id"])

    op.create_table(
        "receipt_item_category_preferences",
        *_base_columns(),
        sa.Column("store_key", sa.String(length=120), nullable=False),
        sa.Column("description_key", sa.String(length=160), nullable=False),
        sa.Column("example_description", sa.String(length=500), nullable=True),
        sa.Column(
            "category_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("receipt_categories.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("use_count", sa.Integer(), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "user_id",
            "store_key",
            "description_key",
            name="uq_receipt_item_category_preferences_key",
        ),
    )
    op.create_index(
        "ix_receipt_item_category_preferences_user_id",
        "receipt_item_category_preferences",
        ["user_id"],
    )
    op.create_index(
        "ix_receipt_item_category_preferences_category_id",
        "receipt_item_category_preferences",
        ["category_id"],
    )

    op.create_table(
        "receipt_store_language_preferences",
        *_base_columns(),
        sa.Column("store_key", sa.String(length=120), nullable=False),
        sa.Column("store_name", sa.String(length=200), nullable=True),
        sa.Column("language", sa.String(length=10), nullable=False),
        sa.Column("use_count", sa.Integer(), nullable=False),
        sa.UniqueConstraint("user_id", "store_key", name="uq_receipt_store_language_preferences_key"),
    )
    op.create_index(
        "ix_receipt_store_language_preferences_user_id",
        "receipt_store_language_preferences",
        ["user_id"],
    )

    op.create_table(
        "receipt_category_feedback",
        *_base_columns(),
        sa.Column(
            "receipt_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("receipts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("raw_category", sa.String(length=200), nullable=False),
        sa.Column("locale", sa.String(length=10), nullable=True),
        sa.Column("store_name", sa.String(length=200), nullable=True),
        sa.Column("file_name", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_receipt_category_feedback_user_id", "receipt_category_feedback", ["user_id"])
    op.create_index(
        "ix_receipt_category_feedback_receipt_id", "receipt_category_feedback", ["receipt_id"]
    )

    op.create_table(
        "extraction_ai_cache",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cache_key", sa.String(length=64), nullable=False),
        sa.Column("strategy", sa.String(length=32), nullable=False),
        sa.Column("provider", sa.String(length=50), nullable=False),
        sa.Column("model", sa.String(length=100), nullable=False),
        sa.Column("schema_version", sa.Integer(), nullable=False),
        sa.Column("response_json", sa.JSON(), nullable=False),
        sa.Column("raw_text", sa.Text(), nullable=False),
    )
    op.create_index(
        "ix_extraction_ai_cache_cache_key",
        "extraction_ai_cache",
        ["cache_key"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_extraction_ai_cache_cache_key", table_name="extraction_ai_cache")
    op.drop_table("extraction_ai_cache")
    op.drop_table("receipt_category_feedback")
    op.drop_table("receipt_store_language_preferences")
    op.drop_table("receipt_item_category_preferences")
    op.drop_table("receipt_transactions")
    op.drop_table("receipts")
    op.drop_table("receipt_files")
    op.drop_table("receipt_categories")
    op.drop_table("receipt_category_types")
