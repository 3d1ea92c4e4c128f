from __future__ import annotations

from sqlalchemy import select

from folio_receipts.core.db import SessionLocal
from folio_receipts.modules.extraction.ai import AIExtraction
from folio_receipts.modules.extraction.models import ExtractionAICache

_EXTRACTED = {"store_name": "LIDL", "total_amount": 3.5, "items": []}


def _install_stub(monkeypatch, extraction_service) -> list[str]:
    calls: list[str] = []

    def _stub(*, text: str, file_name: str, allowed_categories: list[str]) -> AIExtraction:
        calls.append(text)
        return AIExtraction(extracted=dict(_EXTRACTED), raw_text='{"store_name": "LIDL"}', model="m")

    monkeypatch.setattr(extraction_service, "receipt_ai_available", lambda: True)
    monkeypatch.setattr(extraction_service, "extract_receipt_from_text", _stub)
    return calls


def test_ai_text_extraction_uses_cache(monkeypatch):
    from folio_receipts.modules.extraction import service as extraction_service

    calls = _install_stub(monkeypatch, extraction_service)
    text = "LIDL\nLECHE 3,50\nTOTAL 3,50\n"

    with SessionLocal() as session:
        first = extraction_service._ExtractionRun(
            session=session, file_name="a.jpg", allowed_categories=["Dairy"]
        )._ai_text(text, strategy="ai_text")
        second = extraction_service._ExtractionRun(
            session=session, file_name="b.jpg", allowed_categories=["Dairy"]
        )._ai_text(text, strategy="ai_text")

        assert first is not None
        assert second is not None
        assert second.extracted == _EXTRACTED
        assert second.raw_text == '{"store_name": "LIDL"}'
        assert len(calls) == 1

        cached = session.scalars(select(ExtractionAICache)).all()
        assert len(cached) == 1
        assert cached[0].strategy == "ai_text"


def test_cache_key_includes_category_list_and_strategy(monkeypatch):
    from folio_receipts.modules.extraction import service as extraction_service

    calls = _install_stub(monkeypatch, extraction_service)
    text = "LIDL\nTOTAL 3,50\n"

    with SessionLocal() as session:
        for categories, strategy in (
            (["Dairy"], "ai_text"),
            (["Dairy", "Snacks"], "ai_text"),
            (["Dairy"], "ai_ocr_text"),
        ):
            extraction_service._ExtractionRun(
                session=session, file_name="a.jpg", allowed_categories=categories
            )._ai_text(text, strategy=strategy)

    assert len(calls) == 3


def test_stale_schema_version_is_ignored(monkeypatch):
    from folio_receipts.modules.extraction import service as extraction_service

    calls = _install_stub(monkeypatch, extraction_service)
    text = "LIDL\nTOTAL 3,50\n"

    with SessionLocal() as session:
        run = extraction_service._ExtractionRun(
            session=session, file_name="a.jpg", allowed_categories=["Dairy"]
        )
        run._ai_text(text, strategy="ai_text")
        row = session.scalars(select(ExtractionAICache)).one()
        row.schema_version = extraction_service.AI_CACHE_SCHEMA_VERSION + 1
        session.flush()

        run._ai_text(text, strategy="ai_text")

    assert len(calls) == 2
