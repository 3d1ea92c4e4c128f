from __future__ import annotations

from folio_receipts.modules.language.detector import UNKNOWN, detect_language, score_locales


def test_detects_spanish_grocery_lines():
    assert detect_language(["LECHE ENTERA", "PAN BARRA", "HUEVOS L"]) == "es"


def test_detects_english_grocery_lines():
    assert detect_language(["WHOLE MILK", "FREE RANGE EGGS", "WHITE BREAD"]) == "en"


def test_accents_are_folded_before_scoring():
    assert detect_language(["Plátanos de Canarias", "Azúcar blanco"]) == "es"


def test_low_signal_returns_unknown():
    assert detect_language(["XK-2291", "ITEM 44"]) == UNKNOWN
    assert detect_language([]) == UNKNOWN


def test_ties_go_to_first_supported_locale():
    scores = score_locales(["DE DE DE"])
    assert scores["es"] == scores["fr"] == scores["pt"] == 3
    assert detect_language(["DE DE DE"]) == "es"
