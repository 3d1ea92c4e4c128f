"""
Alembic model import hook.

Importing this module ensures all SQLAlchemy models are registered on Base.metadata.
"""

from __future__ import annotations

from folio_receipts.modules.categories.models import (  # noqa: F401
    ReceiptCategory,
    ReceiptCategoryType,
)
from folio_receipts.modules.receipts.models import (  # noqa: F401
    Receipt,
    ReceiptFile,
    ReceiptTransaction,
)
from folio_receipts.modules.extraction.models import ExtractionAICache  # noqa: F401
from folio_receipts.modules.feedback.models import CategoryFeedback  # noqa: F401
from folio_receipts.modules.preferences.models import (  # noqa: F401
    ItemCategoryPreference,
    StoreLanguagePreference,
)
