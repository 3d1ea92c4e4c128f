from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import httpx

from folio_receipts.core.config import settings
from folio_receipts.core.logging import get_logger, log_event, monotonic_ms
from folio_receipts.modules.extraction.json_repair import parse_with_repairs

logger = get_logger(__name__)

_RECEIPT_RESPONSE_FORMAT: dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": "receipt_extraction",
        "strict": False,
        "schema": {
            "type": "object",
            "properties": {
                "store_name": {"type": ["string", "null"]},
                "receipt_date": {"type": ["string", "null"]},
                "receipt_time": {"type": ["string", "null"]},
                "currency": {"type": ["string", "null"]},
                "total_amount": {"type": ["number", "null"]},
                "items": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "description": {"type": "string"},
                            "quantity": {"type": "number"},
                            "price_per_unit": {"type": "number"},
                            "total_price": {"type": "number"},
                            "category": {"type": "string"},
                        },
                        "required": ["description", "total_price", "category"],
                    },
                },
            },
            "required": ["items"],
        },
    },
}

_SCHEMA_PROMPT = "\n".join(
    [
        "JSON schema to return:",
        "{",
        '  "store_name": string | null,',
        '  "receipt_date": "YYYY-MM-DD" | null,',
        '  "receipt_time": "HH:MM:SS" | null,',
        '  "currency": string | null,',
        '  "total_amount": number | null,',
        '  "items": [',
        "    {",
        '      "description": string,',
        '      "quantity": number,',
        '      "price_per_unit": number,',
        '      "total_price": number,',
        '      "category": string',
        "    }",
        "  ]",
        "}",
    ]
)


class ReceiptAIError(RuntimeError):
    pass


@dataclass(frozen=True)
class AIExtraction:
    extracted: dict[str, Any]
    raw_text: str
    model: str
    repair: str | None = None


def receipt_ai_available() -> bool:
    return bool(settings.receipt_ai_enabled and settings.ai_api_key)


def build_receipt_prompt(*, allowed_categories: list[str], file_name: str, source: str) -> str:
    """
    Instruction prompt shared by the vision and text strategies.

    ``source`` is "image" or "text". "Other" is left out of the category list
    and only named as the fallback for unclear items.
    """
    allowed = [c for c in allowed_categories if c.strip().lower() != "other"]
    if source == "image":
        intro = "You extract structured data from a grocery store receipt image."
    else:
        intro = "You extract structured data from the text content of a grocery store receipt."
    return "\n".join(
        [
            intro,
            "Return ONLY valid JSON (no markdown, no code fences).",
            "",
            "Rules:",
            "- receipt_date must be YYYY-MM-DD.",
            "- receipt_time must be HH:MM or HH:MM:SS (24h).",
            "- All money values must be numbers (use . as decimal separator).",
            f"- For item.category, choose exactly one from this list: {', '.join(allowed)}.",
            "- Choose the closest matching category based on the item description "
            "(what the item is).",
            "- ONLY choose a drinks category for beverages/liquids meant to drink "
            "(water, soda, juice, coffee, tea, beer, wine, energy drinks).",
            "- Food staples like rice/pasta/bread are NOT drinks.",
            '- If you are unsure, choose "Other" instead of guessing.',
            "",
            _SCHEMA_PROMPT,
            "",
            f"Receipt file name: {file_name}",
        ]
    )


def build_repair_prompt(*, raw_text: str, allowed_categories: list[str], file_name: str) -> str:
    allowed = [c for c in allowed_categories if c.strip().lower() != "other"]
    return "\n".join(
        [
            "The following receipt extraction output is not valid JSON.",
            "Fix it and return ONLY valid JSON (no markdown, no code fences).",
            "",
            "Rules:",
            "- receipt_date must be YYYY-MM-DD.",
            "- receipt_time must be HH:MM or HH:MM:SS (24h).",
            "- All money values must be numbers (use . as decimal separator).",
            f"- For item.category, choose exactly one from this list: {', '.join(allowed)}.",
            "",
            _SCHEMA_PROMPT,
            "",
            f"Receipt file name: {file_name}",
            "",
            "Invalid output:",
            raw_text,
        ]
    )


def extract_receipt_from_image(
    *, data_url: str, file_name: str, allowed_categories: list[str]
) -> AIExtraction:
    prompt = build_receipt_prompt(
        allowed_categories=allowed_categories, file_name=file_name, source="image"
    )
    content = [
        {"type": "text", "text": prompt},
        {"type": "image_url", "image_url": {"url": data_url}},
    ]
    raw_text = _chat(content, strategy="ai_vision")
    return _decode(raw_text, file_name=file_name, allowed_categories=allowed_categories)


def extract_receipt_from_text(
    *, text: str, file_name: str, allowed_categories: list[str]
) -> AIExtraction:
    cleaned = _truncate_text(text, max_chars=int(settings.receipt_ai_max_chars or 0) or 12000)
    if not cleaned:
        raise ReceiptAIError("No text to extract from")
    prompt = build_receipt_prompt(
        allowed_categories=allowed_categories, file_name=file_name, source="text"
    )
    raw_text = _chat(f"{prompt}\n\nReceipt text:\n{cleaned}", strategy="ai_text")
    return _decode(raw_text, file_name=file_name, allowed_categories=allowed_categories)


def repair_receipt_json(
    *, raw_text: str, file_name: str, allowed_categories: list[str]
) -> dict[str, Any]:
    """Last resort: ask the model to fix its own malformed output."""
    prompt = build_repair_prompt(
        raw_text=raw_text, allowed_categories=allowed_categories, file_name=file_name
    )
    try:
        repaired = _chat(prompt, strategy="ai_repair", temperature=0.0)
    except ReceiptAIError as e:
        raise ReceiptAIError(f"AI repair failed: {e}") from e
    obj, _ = parse_with_repairs(repaired)
    if obj is None:
        raise ReceiptAIError("AI repair response was not valid JSON")
    return obj


def _decode(raw_text: str, *, file_name: str, allowed_categories: list[str]) -> AIExtraction:
    model = str(settings.receipt_ai_model or "")
    obj, candidate = parse_with_repairs(raw_text)
    if obj is not None:
        repair = "local" if candidate is not None else None
        if repair:
            log_event(logger, "receipt.ai.repair", method="local", file_name=file_name)
        return AIExtraction(extracted=obj, raw_text=raw_text, model=model, repair=repair)

    log_event(logger, "receipt.ai.repair", method="ai", file_name=file_name)
    try:
        obj = repair_receipt_json(
            raw_text=raw_text, file_name=file_name, allowed_categories=allowed_categories
        )
    except ReceiptAIError as e:
        raise ReceiptAIError(f"AI response was not valid JSON ({e})") from e
    return AIExtraction(extracted=obj, raw_text=raw_text, model=model, repair="ai")


def _chat(content: Any, *, strategy: str, temperature: float | None = None) -> str:
    if not receipt_ai_available():
        raise ReceiptAIError("AI extraction is not configured")

    payload: dict[str, Any] = {
        "model": settings.receipt_ai_model,
        "temperature": (
            settings.receipt_ai_temperature if temperature is None else temperature
        ),
        "max_tokens": int(settings.receipt_ai_max_tokens or 1200),
        "response_format": _RECEIPT_RESPONSE_FORMAT,
        "messages": [{"role": "user", "content": content}],
    }
    headers = {
        "Authorization": f"Bearer {settings.ai_api_key}",
        "HTTP-Referer": settings.site_url,
        "X-Title": settings.site_name,
        "Content-Type": "application/json",
    }
    url = settings.ai_base_url.rstrip("/") + "/chat/completions"

    start = time.monotonic()
    log_event(logger, "receipt.ai.request", strategy=strategy, model=settings.receipt_ai_model)
    resp = _post(url, headers=headers, payload=payload)
    if resp.status_code in {400, 422}:
        # Some models/endpoints don't support Structured Outputs; fall back to JSON mode.
        payload["response_format"] = {"type": "json_object"}
        resp = _post(url, headers=headers, payload=payload)

    if resp.status_code < 200 or resp.status_code >= 300:
        log_event(
            logger,
            "receipt.ai.error",
            strategy=strategy,
            status_code=resp.status_code,
            duration_ms=monotonic_ms(start),
        )
        raise ReceiptAIError(f"OpenRouter error {resp.status_code}: {resp.text[:500]}")

    try:
        raw = resp.json()
    except ValueError as e:
        raise ReceiptAIError("AI response was empty") from e

    content_text = _message_content(raw)
    log_event(
        logger,
        "receipt.ai.response",
        strategy=strategy,
        chars=len(content_text),
        duration_ms=monotonic_ms(start),
    )
    if not content_text.strip():
        raise ReceiptAIError("AI response was empty")
    return content_text.strip()


def _post(url: str, *, headers: dict[str, str], payload: dict[str, Any]) -> httpx.Response:
    try:
        return httpx.post(
            url,
            headers=headers,
            json=payload,
            timeout=float(settings.receipt_ai_timeout_seconds or 60.0),
            follow_redirects=True,
        )
    except httpx.TimeoutException as e:
        raise ReceiptAIError("AI request timed out") from e
    except httpx.HTTPError as e:
        raise ReceiptAIError(f"AI request failed: {e}") from e


def _message_content(raw: Any) -> str:
    try:
        choice = raw["choices"][0]
    except (KeyError, IndexError, TypeError):
        return ""
    if not isinstance(choice, dict):
        return ""
    for key in ("message", "delta"):
        msg = choice.get(key)
        if isinstance(msg, dict) and isinstance(msg.get("content"), str) and msg["content"]:
            return msg["content"]
    return ""


def _truncate_text(text: str, *, max_chars: int) -> str:
    t = (text or "").replace("\u202f", " ").replace("\xa0", " ").strip()
    if not t:
        return ""
    if max_chars <= 0:
        return t
    if len(t) <= max_chars:
        return t
    return t[: max_chars - 20].rstrip() + "\n\n[TRUNCATED]"
