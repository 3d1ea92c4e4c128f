"""
Merchant and operation lookup for free text such as a store name.

The locale's own table is scanned before the international one; within a
table the first matching pattern wins. Merchant hits beat operation hits.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from folio_receipts.modules.language.detector import UNKNOWN
from folio_receipts.modules.rules.base import MerchantRule, OperationRule, RuleSet
from folio_receipts.modules.rules.common import COMMON_MERCHANTS, COMMON_OPERATIONS
from folio_receipts.modules.rules.en import EN_RULES
from folio_receipts.modules.rules.es import ES_RULES
from folio_receipts.modules.rules.fr import FR_RULES

DEFAULT_LOCALE = "es"

LOCALE_RULES: dict[str, RuleSet] = {
    "es": ES_RULES,
    "en": EN_RULES,
    "fr": FR_RULES,
}

MERCHANT_CONFIDENCE = 0.9
TRANSFER_CONFIDENCE = 0.85
OPERATION_CONFIDENCE = 0.85

HONORIFICS = frozenset(
    {
        "MR", "MRS", "MS", "MISS", "SIR", "MADAM",
        "MONSIEUR", "MME", "MLLE", "M",
        "SR", "SRA", "SRTA", "DON", "DOÑA", "D", "DA", "DN", "DNA",
        "DR", "DRA", "PROF", "ING", "LIC",
        "HERR", "FRAU",
    }
)
_CONNECTORS = frozenset({"A", "DE", "DESDE", "VERS", "TO", "FROM", "FOR"})
_TRANSFER_KEYWORD_RE = re.compile(
    r"\b(?:bizum|transferencia|transf|virement|transfer|payment)\b\s+(.*)", re.I | re.S
)
_WORD_RE = re.compile(r"[^\W\d_]+")


@dataclass(frozen=True)
class RuleMatch:
    label: str
    category: str
    confidence: float
    matched_rule: str
    type_hint: str


def rules_for_locale(locale: str | None) -> tuple[tuple[MerchantRule, ...], tuple[OperationRule, ...]]:
    code = (locale or "").lower()
    if code == UNKNOWN or code not in LOCALE_RULES:
        code = DEFAULT_LOCALE
    rule_set = LOCALE_RULES[code]
    return (
        rule_set.merchants + COMMON_MERCHANTS,
        rule_set.operations + COMMON_OPERATIONS,
    )


def extract_first_name(text: str) -> str | None:
    match = _TRANSFER_KEYWORD_RE.search(text or "")
    if not match:
        return None
    for word in _WORD_RE.findall(match.group(1)):
        upper = word.upper()
        if upper in _CONNECTORS or upper in HONORIFICS:
            continue
        if len(word) < 2:
            continue
        return word[:1].upper() + word[1:].lower()
    return None


def match_description(text: str | None, *, locale: str | None) -> RuleMatch | None:
    if not text or not text.strip():
        return None
    merchants, operations = rules_for_locale(locale)

    for rule in merchants:
        if not rule.pattern.search(text):
            continue
        if rule.extract_name:
            first_name = extract_first_name(text)
            if first_name:
                return RuleMatch(
                    label=f"{rule.merchant} {first_name}",
                    category=rule.category,
                    confidence=TRANSFER_CONFIDENCE,
                    matched_rule=f"transfer:{rule.merchant.lower()}",
                    type_hint="transfer",
                )
        return RuleMatch(
            label=rule.merchant,
            category=rule.category,
            confidence=MERCHANT_CONFIDENCE,
            matched_rule=f"merchant:{rule.merchant.lower()}",
            type_hint="merchant",
        )

    for rule in operations:
        if rule.pattern.search(text):
            return RuleMatch(
                label=rule.label,
                category=rule.category,
                confidence=OPERATION_CONFIDENCE,
                matched_rule=f"operation:{rule.category.lower()}",
                type_hint="other",
            )
    return None
