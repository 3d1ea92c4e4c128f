"""
Local fixes for almost-JSON model output.

``repair_candidates`` returns progressively more aggressive rewrites of the
raw text, de-duplicated and in the order they should be tried.
"""

from __future__ import annotations

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")
# `"a": 1\n "b"` or `} {` / `] "x"` with the comma missing between them
_MISSING_COMMA_RE = re.compile(
    r'("|\d|true|false|null|\}|\])(\s*\n\s*|\s+)(?=("[^"\n]*"\s*:|\{|\[))'
)
_ADJACENT_OBJECTS_RE = re.compile(r"\}(\s*)\{")
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", (text or "").strip()).strip()


def slice_object(text: str) -> str | None:
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last <= first:
        return None
    return text[first : last + 1]


def insert_missing_commas(text: str) -> str:
    fixed = _ADJACENT_OBJECTS_RE.sub(r"},\1{", text)
    return _MISSING_COMMA_RE.sub(r"\1,\2", fixed)


def strip_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def repair_candidates(text: str) -> list[str]:
    out: list[str] = []

    def _add(candidate: str | None) -> None:
        if candidate and candidate not in out:
            out.append(candidate)

    unfenced = strip_code_fences(text)
    _add(unfenced)
    sliced = slice_object(unfenced) or unfenced
    _add(sliced)
    _add(strip_trailing_commas(sliced))
    with_commas = insert_missing_commas(sliced)
    _add(with_commas)
    _add(strip_trailing_commas(with_commas))
    return out


def parse_json_object(text: str) -> dict[str, Any] | None:
    try:
        obj = json.loads(text)
    except (TypeError, ValueError):
        return None
    return obj if isinstance(obj, dict) else None


def parse_with_repairs(text: str) -> tuple[dict[str, Any] | None, str | None]:
    """Returns the parsed object and the candidate that parsed, strict first."""
    stripped = (text or "").strip()
    obj = parse_json_object(stripped)
    if obj is not None:
        return obj, None
    for candidate in repair_candidates(stripped):
        obj = parse_json_object(candidate)
        if obj is not None:
            return obj, candidate
    return None, None
