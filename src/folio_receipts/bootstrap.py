from __future__ import annotations

import folio_receipts.models  # noqa: F401
from folio_receipts.core.config import settings
from folio_receipts.core.db import engine
from folio_receipts.core.models import Base


def bootstrap() -> None:
    # Deployed databases are migrated with Alembic.
    if settings.environment == "dev" and str(settings.database_url).startswith("sqlite"):
        Base.metadata.create_all(engine)
