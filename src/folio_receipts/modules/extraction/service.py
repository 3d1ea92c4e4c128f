from __future__ import annotations

import hashlib
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from folio_receipts.core.config import settings
from folio_receipts.core.logging import get_logger, log_event, monotonic_ms
from folio_receipts.modules.extraction.ai import (
    AIExtraction,
    ReceiptAIError,
    extract_receipt_from_image,
    extract_receipt_from_text,
    receipt_ai_available,
)
from folio_receipts.modules.extraction.documents import (
    analyze_pdf_text,
    detect_document_kind,
    detect_file_kind,
    extract_pdf_pages,
    image_mime_type,
    ocr_image_bytes,
    pdf_page_image,
    to_data_url,
)
from folio_receipts.modules.extraction.models import ExtractionAICache
from folio_receipts.modules.extraction.parsers.registry import detect_parser
from folio_receipts.modules.extraction.quality import (
    add_validation_warnings,
    add_warning,
    build_quality,
    build_validation,
    needs_repair,
    score_validation,
)

logger = get_logger(__name__)

AI_CACHE_SCHEMA_VERSION = 1


class ExtractionError(RuntimeError):
    """Every extraction strategy was tried and none produced a receipt."""

    def __init__(
        self,
        message: str,
        *,
        failures: list[str] | None = None,
        warnings: list[dict[str, str]] | None = None,
        meta: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.failures = list(failures or [])
        self.warnings = list(warnings or [])
        self.meta = dict(meta or {})


@dataclass
class ExtractionResult:
    extracted: dict[str, Any]
    raw_text: str
    method: str
    parser: str | None
    model: str | None
    warnings: list[dict[str, str]] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)


def extract_receipt(
    session: Session,
    *,
    body: bytes,
    file_name: str,
    content_type: str | None,
    allowed_categories: list[str],
) -> ExtractionResult:
    """
    Run the extraction strategies for one uploaded file, stopping at the first success.

    PDFs: native text (with per-page OCR for image-only pages), then a store
    parser, then AI vision on the page image when the text layer is sparse, then
    AI over the text. Images: OCR, then a store parser, then AI vision, then AI
    over the OCR text. Raises ``ExtractionError`` when nothing works.
    """
    run = _ExtractionRun(session=session, file_name=file_name, allowed_categories=allowed_categories)
    kind = detect_file_kind(filename=file_name, content_type=content_type, body=body)
    run.meta["input_kind"] = kind
    if kind == "pdf":
        return run.extract_pdf(body)
    if kind == "image":
        mime = image_mime_type(filename=file_name, content_type=content_type, body=body)
        return run.extract_image(body, mime_type=mime)
    if kind == "bad_pdf_upload":
        raise run.exhausted("Uploaded file is not a valid PDF")
    raise run.exhausted(f"Unsupported file type: {content_type or 'unknown'}")


class _ExtractionRun:
    def __init__(self, *, session: Session, file_name: str, allowed_categories: list[str]):
        self.session = session
        self.file_name = file_name
        self.allowed_categories = list(allowed_categories)
        self.warnings: list[dict[str, str]] = []
        self.failures: list[str] = []
        self.meta: dict[str, Any] = {"merchant_detected": "unknown", "extraction_method": "ai_only"}
        self.last_error: str | None = None

    def extract_pdf(self, body: bytes) -> ExtractionResult:
        try:
            pdf = extract_pdf_pages(body)
        except Exception as e:
            self.failures.append(f"pdf:unreadable:{type(e).__name__}")
            add_warning(self.warnings, "OCR_FAILED", "PDF appears to be empty or unreadable.")
            raise self.exhausted("PDF could not be read") from e

        metrics = analyze_pdf_text(pdf.native_pages)
        self.meta["pdf_text"] = metrics.as_dict()
        if metrics.low_text_density:
            add_warning(self.warnings, "LOW_TEXT_DENSITY")
        if pdf.ocr_pages:
            self.meta["ocr_used"] = True
            self.meta["ocr_used_for_pdf"] = True
            self.meta["ocr_page_count"] = pdf.ocr_pages
            add_warning(self.warnings, "PDF_OCR_USED")

        text = pdf.text
        if not text.strip():
            add_warning(self.warnings, "OCR_FAILED", "PDF appears to be empty or unreadable.")
        else:
            self._reject_statement(text)

        source = "ocr" if pdf.ocr_pages else "pdf"
        result = self._deterministic(
            text, source=source, repair=lambda: self._ai_text(text, strategy="ai_text")
        )
        if result is not None:
            return result

        if metrics.low_text_density:
            image = pdf_page_image(body)
            if image is not None:
                ai = self._ai_vision(image, mime_type="image/png")
                if ai is not None:
                    return self._from_ai(ai, strategy="ai_vision")
            else:
                self.failures.append("ai_vision:no_page_image")

        if text.strip():
            ai = self._ai_text(text, strategy="ai_text")
            if ai is not None:
                return self._from_ai(ai, strategy="ai_text")

        raise self.exhausted()

    def extract_image(self, body: bytes, *, mime_type: str) -> ExtractionResult:
        ocr = ocr_image_bytes(body)
        self.meta["ocr_used"] = True
        self.meta["ocr_text"] = ocr.metrics.as_dict()
        if not ocr.text.strip():
            add_warning(
                self.warnings,
                "OCR_FAILED",
                "Could not read the receipt image (OCR failed). Trying AI vision extraction...",
            )
        elif ocr.metrics.low_text_density:
            add_warning(self.warnings, "LOW_TEXT_DENSITY")
        if ocr.retry_used:
            self.meta["ocr_retry_used"] = True
            add_warning(self.warnings, "OCR_RETRY_USED")

        if ocr.text.strip():
            self._reject_statement(ocr.text)

        result = self._deterministic(
            ocr.text, source="ocr", repair=lambda: self._ai_vision(body, mime_type=mime_type)
        )
        if result is not None:
            return result

        ai = self._ai_vision(body, mime_type=mime_type)
        if ai is not None:
            return self._from_ai(ai, strategy="ai_vision")

        if ocr.text.strip() and not ocr.metrics.low_text_density:
            ai = self._ai_text(ocr.text, strategy="ai_ocr_text")
            if ai is not None:
                return self._from_ai(ai, strategy="ai_ocr_text")

        raise self.exhausted()

    def exhausted(self, message: str | None = None) -> ExtractionError:
        quality, reasons = build_quality(
            validation=None,
            warnings=self.warnings,
            low_pdf_text_density=bool(self.meta.get("pdf_text", {}).get("low_text_density")),
            ocr_used_for_pdf=bool(self.meta.get("ocr_used_for_pdf")),
        )
        self.meta["quality"] = quality
        self.meta["quality_reasons"] = reasons
        self.meta["failures"] = list(self.failures)
        msg = message or self.last_error or "Could not extract receipt data"
        return ExtractionError(msg, failures=self.failures, warnings=self.warnings, meta=self.meta)

    def _reject_statement(self, text: str) -> None:
        document_kind = detect_document_kind(text)
        self.meta["document_kind"] = {
            "kind": document_kind.kind,
            "receipt_score": document_kind.receipt_score,
            "statement_score": document_kind.statement_score,
        }
        if document_kind.kind == "statement":
            add_warning(self.warnings, "NOT_A_RECEIPT")
            self.failures.append("document:statement")
            raise self.exhausted("This file looks like a bank statement, not a receipt")

    def _deterministic(
        self, text: str, *, source: str, repair: Callable[[], AIExtraction | None]
    ) -> ExtractionResult | None:
        if not text.strip():
            return None
        parser = detect_parser(text)
        if parser is None:
            return None

        self.meta["merchant_detected"] = parser.id
        start = time.monotonic()
        parsed = parser.try_parse(text, source=source)
        _log_strategy(
            strategy="deterministic",
            parser=parser.id,
            outcome="ok" if parsed is not None else "incomplete",
            duration_ms=monotonic_ms(start),
        )
        if parsed is None:
            self.failures.append(f"{parser.id}:incomplete")
            add_warning(self.warnings, "PARSER_DETERMINISTIC_FAILED")
            return None

        extracted = parsed.as_extracted()
        validation = build_validation(extracted)
        score = score_validation(validation)
        self.meta["repair_used"] = False
        if needs_repair(validation) and receipt_ai_available():
            self.meta["repair_attempted"] = True
            ai = repair()
            if ai is not None:
                ai_score = score_validation(build_validation(ai.extracted))
                if ai_score > score:
                    self.meta["repair_used"] = True
                    self.meta["repair_source"] = "ai"
                    return self._finish(
                        extracted=ai.extracted,
                        raw_text=ai.raw_text,
                        method="ai_fallback",
                        parser=parser.id,
                        model=ai.model,
                    )

        return self._finish(
            extracted=extracted,
            raw_text=text,
            method=f"{parser.id}_deterministic",
            parser=parser.id,
            model=None,
        )

    def _from_ai(self, ai: AIExtraction, *, strategy: str) -> ExtractionResult:
        parser = self.meta.get("merchant_detected")
        detected = parser if parser and parser != "unknown" else None
        if ai.repair:
            self.meta["json_repair"] = ai.repair
        self.meta["ai_strategy"] = strategy
        return self._finish(
            extracted=ai.extracted,
            raw_text=ai.raw_text,
            method="ai_fallback" if detected else "ai_only",
            parser=detected,
            model=ai.model,
        )

    def _finish(
        self,
        *,
        extracted: dict[str, Any],
        raw_text: str,
        method: str,
        parser: str | None,
        model: str | None,
    ) -> ExtractionResult:
        validation = build_validation(extracted)
        add_validation_warnings(self.warnings, validation)
        quality, reasons = build_quality(
            validation=validation,
            warnings=self.warnings,
            low_pdf_text_density=bool(self.meta.get("pdf_text", {}).get("low_text_density")),
            ocr_used_for_pdf=bool(self.meta.get("ocr_used_for_pdf")),
        )
        self.meta["extraction_method"] = method
        self.meta["validation"] = validation.as_dict() if validation else None
        self.meta["quality"] = quality
        self.meta["quality_reasons"] = reasons
        if self.failures:
            self.meta["failures"] = list(self.failures)
        return ExtractionResult(
            extracted=extracted,
            raw_text=raw_text,
            method=method,
            parser=parser,
            model=model,
            warnings=self.warnings,
            meta=self.meta,
        )

    def _ai_vision(self, body: bytes, *, mime_type: str) -> AIExtraction | None:
        data_url = to_data_url(body, mime_type)
        return self._ai(
            "ai_vision",
            content_hash=hashlib.sha256(body).hexdigest(),
            call=lambda: extract_receipt_from_image(
                data_url=data_url,
                file_name=self.file_name,
                allowed_categories=self.allowed_categories,
            ),
        )

    def _ai_text(self, text: str, *, strategy: str) -> AIExtraction | None:
        return self._ai(
            strategy,
            content_hash=hashlib.sha256(text.encode("utf-8")).hexdigest(),
            call=lambda: extract_receipt_from_text(
                text=text,
                file_name=self.file_name,
                allowed_categories=self.allowed_categories,
            ),
        )

    def _ai(
        self, strategy: str, *, content_hash: str, call: Callable[[], AIExtraction]
    ) -> AIExtraction | None:
        if not receipt_ai_available():
            self.failures.append(f"{strategy}:ai_unavailable")
            self.last_error = self.last_error or "AI extraction is not configured"
            return None

        model = str(settings.receipt_ai_model or "")
        cache_key = _ai_cache_key(
            strategy=strategy,
            model=model,
            content_hash=content_hash,
            allowed_categories=self.allowed_categories,
        )
        cached = _get_cached_receipt_ai(self.session, cache_key=cache_key)
        if cached is not None:
            _log_strategy(strategy=strategy, outcome="cache_hit", duration_ms=0)
            return AIExtraction(
                extracted=cached.response_json,
                raw_text=cached.raw_text or "",
                model=cached.model or model,
            )

        start = time.monotonic()
        try:
            result = call()
        except ReceiptAIError as e:
            message = str(e)
            self.failures.append(f"{strategy}:{message[:120]}")
            self.last_error = message
            add_warning(self.warnings, "AI_FAILED", f"AI extraction failed: {message[:100]}")
            _log_strategy(
                strategy=strategy,
                outcome="error",
                error=message[:200],
                duration_ms=monotonic_ms(start),
            )
            return None

        _log_strategy(
            strategy=strategy,
            outcome="ok",
            repair=result.repair,
            duration_ms=monotonic_ms(start),
        )
        _upsert_receipt_ai_cache(
            self.session,
            cache_key=cache_key,
            strategy=strategy,
            model=result.model,
            response_json=result.extracted,
            raw_text=result.raw_text,
        )
        return result


def _log_strategy(**fields: Any) -> None:
    log_event(logger, "receipt.extraction.strategy", **fields)


def _ai_cache_key(
    *, strategy: str, model: str, content_hash: str, allowed_categories: list[str]
) -> str:
    material = "|".join([strategy, model, content_hash, "\n".join(allowed_categories)])
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def _get_cached_receipt_ai(session: Session, *, cache_key: str) -> ExtractionAICache | None:
    cached = session.scalar(
        select(ExtractionAICache).where(ExtractionAICache.cache_key == cache_key)
    )
    if not cached:
        return None
    if cached.schema_version != AI_CACHE_SCHEMA_VERSION:
        return None
    if not isinstance(cached.response_json, dict):
        return None
    return cached


def _upsert_receipt_ai_cache(
    session: Session,
    *,
    cache_key: str,
    strategy: str,
    model: str,
    response_json: dict,
    raw_text: str,
) -> None:
    cached = session.scalar(
        select(ExtractionAICache).where(ExtractionAICache.cache_key == cache_key)
    )
    if not cached:
        candidate = ExtractionAICache(
            cache_key=cache_key,
            strategy=strategy,
            provider="openrouter",
            model=model,
            schema_version=AI_CACHE_SCHEMA_VERSION,
            response_json=response_json,
            raw_text=raw_text,
        )
        try:
            with session.begin_nested():
                session.add(candidate)
                session.flush()
            return
        except IntegrityError:
            cached = session.scalar(
                select(ExtractionAICache).where(ExtractionAICache.cache_key == cache_key)
            )
            if not cached:
                return
    cached.strategy = strategy
    cached.model = model
    cached.schema_version = AI_CACHE_SCHEMA_VERSION
    cached.response_json = response_json
    cached.raw_text = raw_text
    session.add(cached)
    session.flush()
