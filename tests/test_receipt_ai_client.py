from __future__ import annotations

import json

import httpx
import pytest

_RECEIPT_JSON = json.dumps(
    {
        "store_name": "LIDL",
        "receipt_date": "2026-01-15",
        "receipt_time": "10:00:00",
        "currency": "EUR",
        "total_amount": 3.5,
        "items": [
            {
                "description": "LECHE",
                "quantity": 1,
                "price_per_unit": 3.5,
                "total_price": 3.5,
                "category": "Dairy",
            }
        ],
    }
)


class _Response:
    def __init__(self, status_code: int, payload=None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text or json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def ai(monkeypatch):
    from folio_receipts.modules.extraction import ai as ai_mod

    monkeypatch.setattr(ai_mod.settings, "ai_api_key", "test-key")
    monkeypatch.setattr(ai_mod.settings, "receipt_ai_enabled", True)
    return ai_mod


def _install(monkeypatch, responses):
    calls: list[dict] = []
    queue = list(responses)

    def _post(url, *, headers, json, timeout, follow_redirects):
        calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    monkeypatch.setattr(httpx, "post", _post)
    return calls


def test_text_extraction_sends_structured_output_request(ai, monkeypatch):
    calls = _install(monkeypatch, [_Response(200, _completion(_RECEIPT_JSON))])

    result = ai.extract_receipt_from_text(
        text="LIDL\nLECHE 3,50\nTOTAL 3,50",
        file_name="ticket.jpg",
        allowed_categories=["Dairy", "Snacks", "Other"],
    )

    assert result.extracted["store_name"] == "LIDL"
    assert result.repair is None
    assert result.model == ai.settings.receipt_ai_model
    assert len(calls) == 1
    call = calls[0]
    assert call["url"].endswith("/chat/completions")
    assert call["headers"]["Authorization"] == "Bearer test-key"
    assert call["headers"]["X-Title"] == ai.settings.site_name
    assert call["json"]["response_format"]["type"] == "json_schema"
    prompt = call["json"]["messages"][0]["content"]
    assert "choose exactly one from this list: Dairy, Snacks." in prompt
    assert prompt.endswith("Receipt text:\nLIDL\nLECHE 3,50\nTOTAL 3,50")


def test_image_extraction_sends_data_url(ai, monkeypatch):
    calls = _install(monkeypatch, [_Response(200, _completion(_RECEIPT_JSON))])

    ai.extract_receipt_from_image(
        data_url="data:image/png;base64,aGk=", file_name="t.png", allowed_categories=["Dairy"]
    )

    content = calls[0]["json"]["messages"][0]["content"]
    assert content[0]["type"] == "text"
    assert "receipt image" in content[0]["text"]
    assert content[1] == {"type": "image_url", "image_url": {"url": "data:image/png;base64,aGk="}}


def test_structured_output_rejection_falls_back_to_json_mode(ai, monkeypatch):
    calls = _install(
        monkeypatch,
        [_Response(400, text="response_format not supported"), _Response(200, _completion(_RECEIPT_JSON))],
    )

    result = ai.extract_receipt_from_text(text="LIDL", file_name="t.jpg", allowed_categories=["Dairy"])

    assert result.extracted["total_amount"] == 3.5
    assert len(calls) == 2
    assert calls[1]["json"]["response_format"] == {"type": "json_object"}


def test_provider_error_is_raised(ai, monkeypatch):
    _install(monkeypatch, [_Response(500, text="upstream exploded")])

    with pytest.raises(ai.ReceiptAIError, match="OpenRouter error 500: upstream exploded"):
        ai.extract_receipt_from_text(text="LIDL", file_name="t.jpg", allowed_categories=["Dairy"])


def test_empty_completion_is_an_error(ai, monkeypatch):
    _install(monkeypatch, [_Response(200, {"choices": [{"message": {"content": "  "}}]})])

    with pytest.raises(ai.ReceiptAIError, match="AI response was empty"):
        ai.extract_receipt_from_text(text="LIDL", file_name="t.jpg", allowed_categories=["Dairy"])


def test_timeout_is_wrapped(ai, monkeypatch):
    _install(monkeypatch, [httpx.TimeoutException("slow")])

    with pytest.raises(ai.ReceiptAIError, match="AI request timed out"):
        ai.extract_receipt_from_text(text="LIDL", file_name="t.jpg", allowed_categories=["Dairy"])


def test_fenced_json_is_repaired_locally(ai, monkeypatch):
    calls = _install(monkeypatch, [_Response(200, _completion(f"```json\n{_RECEIPT_JSON}\n```"))])

    result = ai.extract_receipt_from_text(text="LIDL", file_name="t.jpg", allowed_categories=["Dairy"])

    assert result.repair == "local"
    assert result.extracted["currency"] == "EUR"
    assert len(calls) == 1


def test_unparseable_output_gets_one_ai_repair_pass(ai, monkeypatch):
    calls = _install(
        monkeypatch,
        [
            _Response(200, _completion("store LIDL, total 3.50")),
            _Response(200, _completion(_RECEIPT_JSON)),
        ],
    )

    result = ai.extract_receipt_from_text(text="LIDL", file_name="t.jpg", allowed_categories=["Dairy"])

    assert result.repair == "ai"
    assert result.extracted["store_name"] == "LIDL"
    assert calls[1]["json"]["temperature"] == 0.0
    assert "Invalid output:\nstore LIDL, total 3.50" in calls[1]["json"]["messages"][0]["content"]


def test_failed_ai_repair_is_reported(ai, monkeypatch):
    _install(
        monkeypatch,
        [_Response(200, _completion("nope")), _Response(200, _completion("still nope"))],
    )

    with pytest.raises(ai.ReceiptAIError, match="AI response was not valid JSON"):
        ai.extract_receipt_from_text(text="LIDL", file_name="t.jpg", allowed_categories=["Dairy"])


def test_unconfigured_client_and_empty_text(ai, monkeypatch):
    with pytest.raises(ai.ReceiptAIError, match="No text to extract from"):
        ai.extract_receipt_from_text(text="   ", file_name="t.jpg", allowed_categories=["Dairy"])

    monkeypatch.setattr(ai.settings, "ai_api_key", None)
    assert ai.receipt_ai_available() is False
    with pytest.raises(ai.ReceiptAIError, match="AI extraction is not configured"):
        ai.extract_receipt_from_text(text="LIDL", file_name="t.jpg", allowed_categories=["Dairy"])
