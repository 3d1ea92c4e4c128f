from __future__ import annotations

import base64
import os
import re
import unicodedata
from dataclasses import dataclass
from io import BytesIO

import pytesseract
from PIL import Image, ImageOps
from pypdf import PdfReader

from folio_receipts.core.logging import get_logger, log_event

logger = get_logger(__name__)

MIN_PDF_TEXT_CHARS_TOTAL = 60
MIN_PDF_TEXT_CHARS_PER_PAGE = 25
MIN_OCR_TEXT_CHARS = 80
MIN_OCR_TEXT_LINES = 4

_IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".webp", ".gif", ".bmp", ".tif", ".tiff", ".heic")


@dataclass(frozen=True)
class PdfText:
    pages: list[str]
    native_pages: list[str]
    ocr_pages: int

    @property
    def text(self) -> str:
        return "\n".join(self.pages)


@dataclass(frozen=True)
class TextMetrics:
    char_count: int
    line_count: int
    page_count: int
    low_text_density: bool

    def as_dict(self) -> dict:
        out = {
            "char_count": self.char_count,
            "line_count": self.line_count,
            "low_text_density": self.low_text_density,
        }
        if self.page_count:
            out["page_count"] = self.page_count
            out["chars_per_page"] = round(self.char_count / self.page_count, 2)
        return out


@dataclass(frozen=True)
class OcrResult:
    text: str
    metrics: TextMetrics
    retry_used: bool = False


@dataclass(frozen=True)
class DocumentKind:
    kind: str
    receipt_score: int
    statement_score: int


def detect_file_kind(*, filename: str, content_type: str | None, body: bytes) -> str:
    if _looks_like_pdf_bytes(body):
        return "pdf"
    if _looks_like_image_bytes(body):
        return "image"

    ctype = (content_type or "").lower()
    name = (filename or "").lower()
    if ctype.startswith("image/") or name.endswith(_IMAGE_EXTENSIONS):
        return "image"

    # Never hand non-PDF bytes to PdfReader.
    if name.endswith(".pdf") or ctype.endswith("/pdf"):
        return "bad_pdf_upload"

    return "unknown"


def image_mime_type(*, filename: str, content_type: str | None, body: bytes) -> str:
    ctype = (content_type or "").lower()
    if ctype.startswith("image/"):
        return ctype
    b = body.lstrip()
    if b.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if b.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if b.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if len(b) >= 12 and b.startswith(b"RIFF") and b[8:12] == b"WEBP":
        return "image/webp"
    if (filename or "").lower().endswith(".png"):
        return "image/png"
    return "image/jpeg"


def to_data_url(body: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(body).decode('ascii')}"


def _looks_like_pdf_bytes(body: bytes) -> bool:
    if not body:
        return False
    b = body.lstrip()
    if b.startswith(b"\xef\xbb\xbf"):
        b = b[3:].lstrip()
    return b.startswith(b"%PDF")


def _looks_like_image_bytes(body: bytes) -> bool:
    if not body:
        return False
    b = body.lstrip()
    return (
        b.startswith(b"\x89PNG\r\n\x1a\n")
        or b.startswith(b"\xff\xd8\xff")
        or b.startswith(b"II*\x00")
        or b.startswith(b"MM\x00*")
        or b.startswith(b"BM")
        or b.startswith((b"GIF87a", b"GIF89a"))
        or (len(b) >= 12 and b.startswith(b"RIFF") and b[8:12] == b"WEBP")
    )


def _clean_page_text(text: str) -> str:
    return (text or "").replace("\u202f", " ").replace("\xa0", " ")


def extract_pdf_pages(body: bytes) -> PdfText:
    reader = PdfReader(BytesIO(body))
    pages: list[str] = []
    native_pages: list[str] = []
    ocr_pages = 0
    for page in reader.pages:
        text = _clean_page_text(page.extract_text() or "")
        native_pages.append(text)
        if not text.strip():
            ocr_text = _clean_page_text(_ocr_pdf_page(page))
            if ocr_text.strip():
                ocr_pages += 1
                text = ocr_text
        pages.append(text)
    return PdfText(pages=pages, native_pages=native_pages, ocr_pages=ocr_pages)


def pdf_page_image(body: bytes) -> bytes | None:
    """PNG of the largest embedded image on the first page that has one."""
    try:
        reader = PdfReader(BytesIO(body))
    except Exception:
        return None
    for page in reader.pages:
        image = _largest_page_image(page)
        if image is None:
            continue
        if image.mode not in {"RGB", "L"}:
            image = image.convert("RGB")
        out = BytesIO()
        image.save(out, format="PNG")
        return out.getvalue()
    return None


def _largest_page_image(page) -> Image.Image | None:
    try:
        page_images = list(page.images)
    except Exception:
        return None

    best_image = None
    best_area = 0
    for image_file in page_images:
        try:
            image = image_file.image
            width = image.width
            height = image.height
        except Exception:
            continue
        area = width * height
        if area > best_area:
            best_area = area
            best_image = image
    return best_image


def _tesseract_lang() -> str:
    return os.getenv("TESSERACT_LANG", "eng")


def _ocr_pdf_page(page) -> str:
    best_image = _largest_page_image(page)
    if best_image is None:
        return ""
    try:
        if best_image.mode not in {"RGB", "L"}:
            best_image = best_image.convert("RGB")
        return pytesseract.image_to_string(best_image, lang=_tesseract_lang()) or ""
    except Exception as e:
        log_event(logger, "receipt.ocr.failed", target="pdf_page", error=str(e)[:200])
        return ""


def ocr_image_bytes(body: bytes) -> OcrResult:
    """
    OCR an uploaded photo.

    When the first pass reads too little text the image is retried once in
    grayscale, auto-contrasted and upscaled; the longer transcription wins.
    """
    try:
        image = Image.open(BytesIO(body))
        image.load()
    except Exception as e:
        log_event(logger, "receipt.ocr.failed", target="image", error=str(e)[:200])
        return OcrResult(text="", metrics=analyze_ocr_text(""))

    if image.mode not in {"RGB", "L"}:
        image = image.convert("RGB")
    text = _image_to_string(image)
    metrics = analyze_ocr_text(text)
    if not metrics.low_text_density:
        return OcrResult(text=text, metrics=metrics)

    retry_text = _image_to_string(_preprocess_for_retry(image))
    if len(retry_text.strip()) > len(text.strip()):
        return OcrResult(text=retry_text, metrics=analyze_ocr_text(retry_text), retry_used=True)
    return OcrResult(text=text, metrics=metrics)


def _image_to_string(image: Image.Image) -> str:
    try:
        return pytesseract.image_to_string(image, lang=_tesseract_lang()) or ""
    except Exception as e:
        log_event(logger, "receipt.ocr.failed", target="image", error=str(e)[:200])
        return ""


def _preprocess_for_retry(image: Image.Image) -> Image.Image:
    gray = ImageOps.autocontrast(ImageOps.grayscale(image))
    if gray.width < 1500:
        factor = 2
        gray = gray.resize((gray.width * factor, gray.height * factor))
    return gray


def _non_space_chars(text: str) -> int:
    return len(re.sub(r"\s+", "", text or ""))


def analyze_pdf_text(pages: list[str]) -> TextMetrics:
    page_count = len(pages) or 1
    combined = "\n".join(pages)
    char_count = _non_space_chars(combined)
    low = (
        char_count < MIN_PDF_TEXT_CHARS_TOTAL
        or char_count / page_count < MIN_PDF_TEXT_CHARS_PER_PAGE
    )
    lines = [ln for ln in combined.splitlines() if ln.strip()]
    return TextMetrics(
        char_count=char_count,
        line_count=len(lines),
        page_count=page_count,
        low_text_density=low,
    )


def analyze_ocr_text(text: str) -> TextMetrics:
    trimmed = (text or "").strip()
    lines = [ln for ln in trimmed.splitlines() if ln.strip()]
    char_count = _non_space_chars(trimmed)
    return TextMetrics(
        char_count=char_count,
        line_count=len(lines),
        page_count=0,
        low_text_density=char_count < MIN_OCR_TEXT_CHARS or len(lines) < MIN_OCR_TEXT_LINES,
    )


_STATEMENT_PATTERNS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(r"\baccount\s+statement\b"), 4),
    (re.compile(r"\bopening\s+balance\b"), 3),
    (re.compile(r"\bclosing\s+balance\b"), 3),
    (re.compile(r"\bavailable\s+balance\b"), 2),
    (re.compile(r"\baccount\s+number\b"), 2),
    (re.compile(r"\bvalue\s+date\b|\bbooking\s+date\b"), 2),
    (re.compile(r"\btransactions?\b"), 2),
    (re.compile(r"\bdebit\b|\bcredit\b"), 2),
    (re.compile(r"\biban\b"), 4),
    (re.compile(r"\bbic\b|\bswift\b"), 3),
    (re.compile(r"\bextracto\b|\bextract\b"), 2),
    (re.compile(r"\bsaldo\b"), 2),
    (re.compile(r"\bmovimientos?\b"), 2),
    (re.compile(r"\bbalance\b"), 1),
    (re.compile(r"\bstatement\b"), 2),
)

_RECEIPT_PATTERNS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(r"\breceipt\b|\brecibo\b|\bfactura\b"), 4),
    (re.compile(r"\bticket\b"), 3),
    (re.compile(r"\bsubtotal\b"), 2),
    (re.compile(r"\bvat\b|\biva\b"), 2),
    (re.compile(r"\btax\b"), 2),
    (re.compile(r"\bthank\s+you\b|\bthanks\b|\bgracias\b|\bmerci\b"), 3),
    (re.compile(r"\bcashier\b|\bcash\b|\bchange\b"), 2),
    (re.compile(r"\bcard\b|\bvisa\b|\bmastercard\b|\bamex\b"), 1),
    (re.compile(r"\bcaja\b"), 2),
    (re.compile(r"\bnif\b|\bcif\b"), 2),
    (re.compile(r"\bitem\b|\barticulo\b|\bproducto\b"), 1),
    (re.compile(r"\bqty\b|\bcant\b|\bquantity\b"), 1),
    (re.compile(r"\bimporte\b|\bprecio\b"), 1),
    (re.compile(r"\btotal\b"), 1),
)

_AMOUNT_RE = re.compile(r"\d+[.,]\d{2}")
_DATE_RE = re.compile(r"\b\d{1,2}[/.-]\d{1,2}[/.-]\d{2,4}\b")


def _score(text: str, patterns: tuple[tuple[re.Pattern[str], int], ...]) -> int:
    return sum(weight for pattern, weight in patterns if pattern.search(text))


def detect_document_kind(raw_text: str) -> DocumentKind:
    """Tell receipts apart from bank statements by weighted vocabulary and line shape."""
    if not raw_text or len(raw_text.strip()) < 20:
        return DocumentKind(kind="unknown", receipt_score=0, statement_score=0)

    normalized = unicodedata.normalize("NFKD", raw_text)
    normalized = "".join(ch for ch in normalized if not unicodedata.combining(ch)).lower()
    receipt_score = _score(normalized, _RECEIPT_PATTERNS)
    statement_score = _score(normalized, _STATEMENT_PATTERNS)

    lines = [ln.strip() for ln in raw_text.splitlines() if ln.strip()]
    line_items = sum(
        1 for ln in lines if len(_AMOUNT_RE.findall(ln)) >= 2 and re.search(r"[a-zA-Z]", ln)
    )
    if line_items >= 3:
        receipt_score += min(3, line_items // 3)

    date_amount_lines = sum(1 for ln in lines if _DATE_RE.search(ln) and _AMOUNT_RE.search(ln))
    if date_amount_lines >= 6:
        statement_score += 2
    elif date_amount_lines >= 3:
        statement_score += 1

    kind = "unknown"
    if statement_score >= 4 and statement_score >= receipt_score + 2:
        kind = "statement"
    elif receipt_score >= 4 and receipt_score >= statement_score + 1:
        kind = "receipt"
    return DocumentKind(kind=kind, receipt_score=receipt_score, statement_score=statement_score)
