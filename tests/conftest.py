from __future__ import annotations

import os
import shutil
from pathlib import Path

import pytest

# Set env before any folio_receipts imports (settings/engine are created at import time).
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./.folio_receipts_test.db")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("LOCAL_STORAGE_PATH", ".tmp_storage_test")
os.environ.setdefault("AI_API_KEY", "")
os.environ.setdefault("DISPATCH_BACKEND", "thread")


@pytest.fixture(autouse=True)
def _reset_db_and_storage() -> None:
    import folio_receipts.models  # noqa: F401
    import folio_receipts.core.storage as storage_mod
    from folio_receipts.core.db import engine
    from folio_receipts.core.models import Base

    # Reset storage cache and directory
    storage_mod._storage = None

    storage_path = Path(os.environ["LOCAL_STORAGE_PATH"])
    if storage_path.exists():
        shutil.rmtree(storage_path)

    # Reset DB schema
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)

    yield
