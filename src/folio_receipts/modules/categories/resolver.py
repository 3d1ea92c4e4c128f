"""
Map free-form category labels (from the model or a parser) onto a user's catalog.

Labels are compared on a normalized key: lowercase, accent-free, "&" spelled as
"and", punctuation turned into spaces. When the direct key misses, the resolver
retries without stopwords, then with naive singular forms, then both.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from folio_receipts.core.text import strip_accents

STOPWORDS = frozenset(
    {
        # en
        "and", "the", "for", "of", "with",
        # es / pt / it / ca
        "y", "e", "de", "del", "la", "las", "el", "los", "por", "para", "con",
        "da", "do", "das", "dos",
        # fr
        "du", "des", "le", "les", "au", "aux", "et", "en",
        # de
        "und", "oder", "mit", "von", "der", "die", "den", "dem", "im", "zum", "zur",
        "ein", "eine",
        # nl
        "van", "het", "een",
    }
)  # fmt: skip

CATEGORY_SYNONYMS: dict[str, tuple[str, ...]] = {
    "Meat": (
        "meat", "meats", "poultry", "carne", "carnes", "pollo", "beef", "pork", "chicken",
        "turkey", "viande", "frango", "fleisch", "geflugel", "kip", "pollastre",
        "meat and poultry",
    ),
    "Fish & Seafood": (
        "fish", "seafood", "pescado", "marisco", "mariscos", "poisson", "pesce", "fisch",
        "vis", "peix",
    ),
    "Deli": (
        "deli", "cold cuts", "charcuterie", "fiambre", "embutido", "embutidos", "jamon",
        "ham", "salami", "chorizo", "deli meats", "wurst", "vleeswaren", "embotit",
        "deli cold cuts",
    ),
    "Eggs": ("egg", "eggs", "huevo", "huevos", "oeufs", "ovos", "uova", "eier", "eieren", "ous"),
    "Plant-Based Protein": ("tofu", "tempeh", "seitan", "vegan protein", "legumes", "legumbres"),
    "Bread & Bakery": (
        "bread", "bakery", "pan", "panaderia", "bolleria", "pastries", "pastry", "pain",
        "pane", "brot", "brood", "pa", "baguette", "croissant",
    ),
    "Pasta, Rice & Cereal": (
        "pasta", "rice", "cereal", "cereals", "grains", "arroz", "noodles", "oats",
        "pasta rice and grains",
    ),
    "Snacks": ("snack", "snacks", "chips", "crisps", "aperitivos", "salty snacks"),
    "Baking": ("baking", "flour", "harina", "levadura", "yeast", "baking ingredients"),
    "Dairy": (
        "dairy", "milk", "yogurt", "yoghurt", "yogur", "leche", "lacteos", "lait", "latte",
        "milch", "melk", "llet", "cheese", "queso", "fromage", "dairy milk yogurt",
    ),
    "Condiments & Spices": (
        "condiments", "condiment", "spices", "spice", "seasoning", "sauces", "sauce",
        "salsa", "salsas", "especias", "condimentos",
    ),
    "Oils & Fats": ("oil", "oils", "aceite", "aceites", "butter", "mantequilla", "oils and vinegars"),
    "Fruits": ("fruit", "fruits", "fruta", "frutas", "frutta", "obst", "fruita"),
    "Vegetables": (
        "vegetable", "vegetables", "veg", "veggies", "verdura", "verduras", "vegetales",
        "verdure", "gemuse", "groente", "verdures", "hortalizas",
    ),
    "Canned Goods": (
        "canned", "canned and jarred", "jarred", "tinned", "conserva", "conservas",
        "enlatados",
    ),
    "Frozen Foods": ("frozen", "frozen food", "frozen meals", "congelados", "surgeles"),
    "Water": ("water", "agua", "eau", "acqua", "wasser", "aigua"),
    "Soda & Cola": ("soda", "sodas", "soft drinks", "soft drink", "refresco", "refrescos", "cola"),
    "Energy Drinks": ("energy drink", "energy and sports drinks", "sports drinks", "isotonica"),
    "Juice": ("juice", "juices", "zumo", "zumos", "jugo", "suco", "succo", "jus", "saft", "sap"),
    "Coffee & Tea": ("coffee", "tea", "cafe", "te", "caffe", "the", "cha", "infusiones"),
    "Alcohol": (
        "alcohol", "beer", "cerveza", "wine", "vino", "spirits", "liquor", "licor", "biere",
        "bier", "wein", "vin",
    ),
    "Health Care": ("health", "pharmacy", "farmacia", "medicine", "otc medicine", "first aid"),
    "Personal Care": (
        "hygiene", "toiletries", "higiene", "aseo", "hair care", "skin care", "oral care",
        "cosmetics", "hygiene and toiletries",
    ),
    "Household & Cleaning Supplies": (
        "cleaning", "cleaning supplies", "limpieza", "household", "hogar", "laundry",
        "detergent", "paper goods", "kitchen consumables",
    ),
    "Baby Items": ("baby", "bebe", "diapers", "panales", "baby food", "baby diapers and wipes"),
    "Pet Care": ("pet", "pets", "mascota", "mascotas", "pet food", "pet supplies"),
    "Bags": ("bag", "bags", "bolsa", "bolsas"),
    "Other": ("other", "otros", "varios", "misc", "miscellaneous"),
}  # fmt: skip

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_WS_RE = re.compile(r"\s+")


def normalize_category_key(value: str) -> str:
    key = value.lower()
    key = key.replace("ß", "ss").replace("æ", "ae").replace("œ", "oe")
    key = strip_accents(key)
    key = key.replace("&", " and ")
    key = _NON_ALNUM_RE.sub(" ", key)
    return _WS_RE.sub(" ", key).strip()


def strip_stopwords(key: str) -> str:
    return " ".join(token for token in key.split(" ") if token and token not in STOPWORDS)


def singularize_token(token: str) -> str:
    if token.endswith("ies") and len(token) > 3:
        return token[:-3] + "y"
    if token.endswith("es") and len(token) > 3:
        return token[:-2]
    if token.endswith("s") and len(token) > 3:
        return token[:-1]
    return token


def singularize_key(key: str) -> str:
    if not key:
        return ""
    return " ".join(singularize_token(token) for token in key.split(" "))


def _key_variants(key: str) -> list[str]:
    no_stop = strip_stopwords(key)
    variants = [key, no_stop, singularize_key(key), singularize_key(no_stop)]
    seen: set[str] = set()
    out: list[str] = []
    for variant in variants:
        if variant and variant not in seen:
            seen.add(variant)
            out.append(variant)
    return out


class CategoryResolver:
    def __init__(self, category_names: Iterable[str]):
        names = list(category_names)
        self._by_key: dict[str, str] = {}
        for name in names:
            self._add_label(name, name)

        allowed = {name.lower(): name for name in names}
        for canonical, synonyms in CATEGORY_SYNONYMS.items():
            target = allowed.get(canonical.lower())
            if target is None:
                continue
            for label in synonyms:
                self._add_label(label, target)

    def _add_label(self, label: str, category: str) -> None:
        key = normalize_category_key(label)
        if not key:
            return
        for variant in _key_variants(key):
            self._by_key.setdefault(variant, category)

    def resolve(self, raw_label: str | None) -> str | None:
        """Return the canonical category name for ``raw_label``, or ``None``."""
        if not raw_label or not isinstance(raw_label, str):
            return None
        key = normalize_category_key(raw_label)
        if not key:
            return None
        for variant in _key_variants(key):
            found = self._by_key.get(variant)
            if found:
                return found
        return None
