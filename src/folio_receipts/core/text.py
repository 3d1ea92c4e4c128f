from __future__ import annotations

import re
import unicodedata

_WS_RE = re.compile(r"\s+")


def strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def collapse_spaces(value: str) -> str:
    return _WS_RE.sub(" ", value or "").strip()


def fold(value: str) -> str:
    """Lowercase, accent-free form used for keyword matching."""
    return strip_accents((value or "").lower())
