"""
Dominant-language guess for a receipt's line items.

Samples are upper-cased and accent-folded, joined, and scored against each
locale's weighted keyword signature. Below ``MIN_SCORE`` the result is
``UNKNOWN``. Ties go to the locale listed first in ``SUPPORTED_LOCALES``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from folio_receipts.core.text import strip_accents

SUPPORTED_LOCALES: tuple[str, ...] = ("es", "en", "fr", "pt", "it", "de", "nl", "ca")
UNKNOWN = "unknown"
MIN_SCORE = 3
MAX_SAMPLES = 100


@dataclass(frozen=True)
class Signature:
    pattern: re.Pattern[str]
    weight: int = 1


def _s(pattern: str, weight: int = 1) -> Signature:
    return Signature(re.compile(rf"\b(?:{pattern})\b"), weight)


SIGNATURES: dict[str, tuple[Signature, ...]] = {
    "es": (
        _s(r"FACTURA SIMPLIFICADA|IMPORTE|TOTAL A PAGAR", 3),
        _s(r"LECHE|HUEVOS?|POLLO|PAN|QUESO|TERNERA|CERDO|MANZANAS?|PLATANOS?", 2),
        _s(r"ZUMO|CERVEZA|AGUA|AZUCAR|ARROZ|ACEITE|GALLETAS|NARANJAS?|PATATAS?", 2),
        _s(r"DE|CON|SIN|BOLSA|ENTERA|DESNATADA|NATURAL|TOMATE"),
    ),
    "en": (
        _s(r"SUBTOTAL|TOTAL DUE|CHANGE DUE|THANK YOU", 3),
        _s(r"MILK|EGGS?|CHICKEN|BREAD|CHEESE|BEEF|PORK|APPLES?|BANANAS?", 2),
        _s(r"JUICE|BEER|WATER|SUGAR|RICE|BUTTER|COOKIES|ORANGES?|POTATOES", 2),
        _s(r"THE|AND|WITH|BAG|WHOLE|SKIMMED|FRESH|ORGANIC"),
    ),
    "fr": (
        _s(r"TICKET DE CAISSE|MONTANT|TOTAL TTC|A PAYER", 3),
        _s(r"LAIT|OEUFS?|POULET|PAIN|FROMAGE|BOEUF|PORC|POMMES?|BANANES?", 2),
        _s(r"JUS|BIERE|EAU|SUCRE|RIZ|BEURRE|BISCUITS|ORANGES|BAGUETTE", 2),
        _s(r"DE|DU|DES|AVEC|SANS|SAC|ENTIER|ECREME"),
    ),
    "pt": (
        _s(r"FATURA SIMPLIFICADA|CONTRIBUINTE|TOTAL A PAGAR", 3),
        _s(r"LEITE|OVOS?|FRANGO|PAO|QUEIJO|CARNE|PORCO|MACAS?|BANANAS?", 2),
        _s(r"SUMO|CERVEJA|AGUA|ACUCAR|ARROZ|AZEITE|BOLACHAS|LARANJAS?|BATATAS?", 2),
        _s(r"DE|COM|SEM|SACO|INTEIRO|MAGRO|NATURAL"),
    ),
    "it": (
        _s(r"SCONTRINO|DOCUMENTO COMMERCIALE|IMPORTO|TOTALE COMPLESSIVO", 3),
        _s(r"LATTE|UOVA|POLLO|PANE|FORMAGGIO|MANZO|MAIALE|MELE|BANANE", 2),
        _s(r"SUCCO|BIRRA|ACQUA|ZUCCHERO|RISO|BURRO|BISCOTTI|ARANCE|PATATE", 2),
        _s(r"DI|CON|SENZA|SACCHETTO|INTERO|SCREMATO|FRESCO"),
    ),
    "de": (
        _s(r"SUMME|KASSENBON|ZU ZAHLEN|MWST|RUCKGELD", 3),
        _s(r"MILCH|EIER|HAHNCHEN|BROT|KASE|RIND|SCHWEIN|APFEL|BANANEN", 2),
        _s(r"SAFT|BIER|WASSER|ZUCKER|REIS|BUTTER|KEKSE|ORANGEN|KARTOFFELN", 2),
        _s(r"UND|MIT|OHNE|TUTE|VOLLMILCH|FRISCH"),
    ),
    "nl": (
        _s(r"TOTAAL|TE BETALEN|BONNETJE|WISSELGELD", 3),
        _s(r"MELK|EIEREN|KIP|BROOD|KAAS|RUNDVLEES|VARKEN|APPELS|BANANEN", 2),
        _s(r"SAP|BIER|WATER|SUIKER|RIJST|BOTER|KOEKJES|SINAASAPPELS|AARDAPPELEN", 2),
        _s(r"EN|MET|ZONDER|TAS|VOLLE|HALFVOLLE|VERS"),
    ),
    "ca": (
        _s(r"FACTURA SIMPLIFICADA|IMPORT|TOTAL A PAGAR", 2),
        _s(r"LLET|OUS?|POLLASTRE|PA|FORMATGE|VEDELLA|PORC|POMES|PLATANS", 2),
        _s(r"SUC|CERVESA|AIGUA|SUCRE|ARROS|OLI|GALETES|TARONGES|PATATES", 2),
        _s(r"DE|AMB|SENSE|BOSSA|SENCERA|DESNATADA"),
    ),
}


def normalize_sample(sample: str) -> str:
    return strip_accents(sample or "").upper()


def score_locales(samples: Iterable[str]) -> dict[str, int]:
    text = "\n".join(normalize_sample(s) for s in list(samples)[:MAX_SAMPLES] if s)
    scores: dict[str, int] = {}
    for locale in SUPPORTED_LOCALES:
        scores[locale] = sum(
            len(sig.pattern.findall(text)) * sig.weight for sig in SIGNATURES[locale]
        )
    return scores


def detect_language(samples: Sequence[str]) -> str:
    scores = score_locales(samples)
    best = UNKNOWN
    best_score = 0
    for locale in SUPPORTED_LOCALES:
        if scores[locale] > best_score:
            best, best_score = locale, scores[locale]
    if best_score < MIN_SCORE:
        return UNKNOWN
    return best
