from __future__ import annotations

from io import BytesIO

from PIL import Image

_DENSE_TEXT = "\n".join(
    [
        "MERCADONA, S.A. A-46103834",
        "15/01/2026 18:45 OP: 12345",
        "1 LECHE ENTERA 0,95",
        "2 PAN BARRA 0,60 1,20",
        "TOTAL (E) 2,15",
    ]
)


def _png_bytes() -> bytes:
    buf = BytesIO()
    Image.new("RGB", (120, 200), "white").save(buf, format="PNG")
    return buf.getvalue()


def test_extract_pdf_pages_uses_ocr_fallback(monkeypatch):
    from folio_receipts.modules.extraction import documents

    class _Page:
        def __init__(self, text: str) -> None:
            self._text = text

        def extract_text(self) -> str:
            return self._text

    class _Reader:
        def __init__(self, _stream) -> None:
            self.pages = [_Page(""), _Page("hello")]

    ocr_calls: list[object] = []

    def _ocr(page) -> str:
        ocr_calls.append(page)
        return "ocr text"

    monkeypatch.setattr(documents, "PdfReader", _Reader)
    monkeypatch.setattr(documents, "_ocr_pdf_page", _ocr)

    pdf = documents.extract_pdf_pages(b"%PDF-1.4 stub")
    assert pdf.pages == ["ocr text", "hello"]
    assert pdf.native_pages == ["", "hello"]
    assert pdf.ocr_pages == 1
    assert len(ocr_calls) == 1


def test_extract_pdf_pages_keeps_empty_when_ocr_empty(monkeypatch):
    from folio_receipts.modules.extraction import documents

    class _Page:
        def extract_text(self) -> str:
            return ""

    class _Reader:
        def __init__(self, _stream) -> None:
            self.pages = [_Page()]

    monkeypatch.setattr(documents, "PdfReader", _Reader)
    monkeypatch.setattr(documents, "_ocr_pdf_page", lambda _page: "")

    pdf = documents.extract_pdf_pages(b"%PDF-1.4 stub")
    assert pdf.pages == [""]
    assert pdf.ocr_pages == 0


def test_ocr_retries_preprocessed_image_when_text_is_sparse(monkeypatch):
    from folio_receipts.modules.extraction import documents

    sizes: list[tuple[int, int]] = []
    outputs = iter(["TOTAL", _DENSE_TEXT])

    def _image_to_string(image, lang=None):
        sizes.append(image.size)
        return next(outputs)

    monkeypatch.setattr(documents.pytesseract, "image_to_string", _image_to_string)

    result = documents.ocr_image_bytes(_png_bytes())

    assert result.retry_used is True
    assert result.text == _DENSE_TEXT
    assert result.metrics.low_text_density is False
    # The retry pass runs on an upscaled copy.
    assert sizes == [(120, 200), (240, 400)]


def test_ocr_does_not_retry_dense_text(monkeypatch):
    from folio_receipts.modules.extraction import documents

    calls: list[str] = []

    def _image_to_string(image, lang=None):
        calls.append(image.mode)
        return _DENSE_TEXT

    monkeypatch.setattr(documents.pytesseract, "image_to_string", _image_to_string)

    result = documents.ocr_image_bytes(_png_bytes())
    assert result.retry_used is False
    assert len(calls) == 1


def test_ocr_of_unreadable_bytes_is_empty():
    from folio_receipts.modules.extraction import documents

    result = documents.ocr_image_bytes(b"not an image")
    assert result.text == ""
    assert result.metrics.low_text_density is True


def test_pdf_text_density_thresholds():
    from folio_receipts.modules.extraction import documents

    sparse = documents.analyze_pdf_text(["TOTAL 3,00", ""])
    assert sparse.low_text_density is True
    assert sparse.as_dict()["page_count"] == 2

    dense = documents.analyze_pdf_text([_DENSE_TEXT * 2])
    assert dense.low_text_density is False
