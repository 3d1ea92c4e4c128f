from __future__ import annotations

from fastapi import APIRouter

from folio_receipts.modules.preferences.api import router as preferences_router
from folio_receipts.modules.receipts.api import router as receipts_router

router = APIRouter()

router.include_router(preferences_router, prefix="/api")
router.include_router(receipts_router, prefix="/api")


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}
